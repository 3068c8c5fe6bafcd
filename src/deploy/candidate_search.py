"""Ordered directory probing for pre-installed native libraries.

This module checks a declarative list of app-private, vendor and system
directories for a library file and optionally rejects files older than
the current package update.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from core.constants import (
    LIB64_DIR_NAME,
    LIB_DIR_NAME,
    UPDATE_EPSILON_MS,
    VENDOR_ROOT_DIR_NAME,
)
from core.logging_config import get_logger
from deploy.version_tag import VersionTag

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class CandidateDirectory:
    """One probe location with a label used in log events."""

    label: str
    path: Path


def default_candidate_directories(
    native_library_dir: Path | None,
    system_root: Path,
) -> tuple[CandidateDirectory, ...]:
    """Build the standard probe order for one host.

    Args:
        native_library_dir: App-private native directory, probed first when set.
        system_root: Root of the system image.

    Returns:
        Ordered candidate directories.
    """
    vendor_root = system_root / VENDOR_ROOT_DIR_NAME
    directories: list[CandidateDirectory] = []
    if native_library_dir is not None:
        directories.append(CandidateDirectory("app_native", native_library_dir))
    directories.extend(
        (
            CandidateDirectory("vendor_lib64", vendor_root / LIB64_DIR_NAME),
            CandidateDirectory("vendor_lib", vendor_root / LIB_DIR_NAME),
            CandidateDirectory("system_lib64", system_root / LIB64_DIR_NAME),
            CandidateDirectory("system_lib", system_root / LIB_DIR_NAME),
        )
    )
    return tuple(directories)


def modified_millis(path: Path) -> int:
    """Return a file's modification time in epoch milliseconds."""
    return path.stat().st_mtime_ns // 1_000_000


def is_fresh(path: Path, version_tag: VersionTag, epsilon_ms: int = UPDATE_EPSILON_MS) -> bool:
    """Return whether a file is not older than the package update minus epsilon."""
    try:
        return modified_millis(path) >= version_tag.update_epoch_millis - epsilon_ms
    except OSError:
        return False


class CandidatePathSearch:
    """Probe candidate directories in order for a library file."""

    def __init__(
        self,
        directories: Sequence[CandidateDirectory],
        version_tag: VersionTag | None = None,
        epsilon_ms: int = UPDATE_EPSILON_MS,
    ) -> None:
        self._directories = tuple(directories)
        self._version_tag = version_tag
        self._epsilon_ms = epsilon_ms

    def with_version_tag(self, version_tag: VersionTag) -> "CandidatePathSearch":
        """Return a copy of this search that checks freshness against a tag."""
        return CandidatePathSearch(self._directories, version_tag, self._epsilon_ms)

    def find(self, file_name: str, check_freshness: bool = False) -> Path | None:
        """Return the first existing, and if requested fresh, candidate file."""
        return next(self.iter_matches(file_name, check_freshness), None)

    def iter_matches(self, file_name: str, check_freshness: bool = False) -> Iterator[Path]:
        """Yield every existing candidate file in probe order.

        Args:
            file_name: Platform library file name.
            check_freshness: Skip files older than the package update time.

        Yields:
            Absolute candidate paths.
        """
        for directory in self._directories:
            candidate = directory.path / file_name
            if not candidate.is_file():
                continue
            if check_freshness and self._version_tag is not None:
                if not is_fresh(candidate, self._version_tag, self._epsilon_ms):
                    _LOGGER.warning(
                        "stale_library_skipped",
                        path=str(candidate),
                        location=directory.label,
                        tag=self._version_tag.directory_name,
                    )
                    continue
            _LOGGER.debug("library_candidate_found", path=str(candidate), location=directory.label)
            yield candidate
