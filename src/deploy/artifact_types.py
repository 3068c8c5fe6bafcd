"""Typed artifact lifecycle models and validation helpers.

This module defines the per-call artifact state machine and the result
object returned across the loader boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from core.errors import NativeLoadError

ArtifactState = Literal[
    "unresolved",
    "found_system",
    "found_installed",
    "extracting",
    "staged",
    "installed",
    "missing",
]
LoadErrorKind = Literal["missing_artifact", "install_error", "activation_error"]
ALLOWED_STATE_TRANSITIONS: dict[ArtifactState, tuple[ArtifactState, ...]] = {
    "unresolved": ("found_system", "found_installed", "extracting", "missing"),
    "extracting": ("staged", "missing"),
    "staged": ("installed", "missing"),
    "found_system": (),
    "found_installed": (),
    "installed": ("missing",),
    "missing": (),
}


def validate_transition(current: ArtifactState, next_state: ArtifactState) -> None:
    """Validate one artifact transition against allowed state machine edges."""
    allowed_states = ALLOWED_STATE_TRANSITIONS[current]
    if next_state not in allowed_states:
        raise NativeLoadError(
            f"Invalid artifact state transition {current!r} -> {next_state!r}. "
            f"Allowed: {', '.join(allowed_states) or 'none'}."
        )


@dataclass
class ArtifactRecord:
    """Mutable per-call tracking record for one library."""

    name: str
    file_name: str
    resolved_path: Path | None = None
    state: ArtifactState = "unresolved"

    def advance(self, next_state: ArtifactState, resolved_path: Path | None = None) -> None:
        """Move to the next state, recording the resolved path when given."""
        validate_transition(self.state, next_state)
        self.state = next_state
        if resolved_path is not None:
            self.resolved_path = resolved_path


@dataclass(frozen=True)
class LoadResult:
    """Outcome of one ensure_loaded call.

    Attributes:
        ok: Whether the library is loaded and usable.
        library_name: Logical library name requested by the caller.
        path: Path or file name the library was activated from.
        state: Terminal artifact state reached.
        error_kind: Failure classification, None on success.
        message: Human-readable failure detail.
        handle: Opaque native handle returned by the activator.
    """

    ok: bool
    library_name: str
    path: str | None
    state: ArtifactState
    error_kind: LoadErrorKind | None = None
    message: str | None = None
    handle: Any = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, object]:
        """Serialize the result without the native handle."""
        return {
            "ok": self.ok,
            "library_name": self.library_name,
            "path": self.path,
            "state": self.state,
            "error_kind": self.error_kind,
            "message": self.message,
        }


def success_result(record: ArtifactRecord, path: str, handle: Any) -> LoadResult:
    """Build a successful result from a terminal record."""
    return LoadResult(
        ok=True,
        library_name=record.name,
        path=path,
        state=record.state,
        handle=handle,
    )


def failure_result(record: ArtifactRecord, error_kind: LoadErrorKind, message: str) -> LoadResult:
    """Build a failed result from a terminal record."""
    return LoadResult(
        ok=False,
        library_name=record.name,
        path=str(record.resolved_path) if record.resolved_path is not None else None,
        state=record.state,
        error_kind=error_kind,
        message=message,
    )
