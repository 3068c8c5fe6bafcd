"""Process-level switch for native acceleration.

Higher-level APIs consult this gate once and then either call into the
loaded libraries or take their pure-Python path.
"""

from __future__ import annotations

import threading
from typing import Literal, Sequence

from core.errors import NativeLoadUnavailableError
from core.logging_config import get_logger
from deploy.artifact_types import LoadResult
from deploy.orchestrator import NativeLibraryLoader

_LOGGER = get_logger(__name__)

NativeStatus = Literal["uninitialized", "enabled", "disabled"]


class NativeCapability:
    """Memoized availability of a fixed set of native libraries."""

    def __init__(self, library_names: Sequence[str], loader: NativeLibraryLoader) -> None:
        self._library_names = tuple(library_names)
        self._loader = loader
        self._status: NativeStatus = "uninitialized"
        self._results: tuple[LoadResult, ...] = ()
        self._lock = threading.Lock()

    @property
    def status(self) -> NativeStatus:
        return self._status

    @property
    def results(self) -> tuple[LoadResult, ...]:
        return self._results

    def initialize(self) -> bool:
        """Load every library once and record whether all succeeded."""
        with self._lock:
            if self._status == "uninitialized":
                self._results = self._loader.ensure_loaded_all(self._library_names)
                loaded = len(self._results) == len(self._library_names) and all(
                    result.ok for result in self._results
                )
                self._status = "enabled" if loaded else "disabled"
                _LOGGER.info(
                    "native_capability_initialized",
                    status=self._status,
                    libraries=list(self._library_names),
                )
            return self._status == "enabled"

    def is_available(self) -> bool:
        """Return True when native support is usable; never raises."""
        return self.initialize()

    def require(self) -> tuple[LoadResult, ...]:
        """Return load results, raising when native support is unavailable.

        Raises:
            NativeLoadUnavailableError: If any library failed to load.
        """
        if self.initialize():
            return self._results
        failed = next((result for result in self._results if not result.ok), None)
        detail = f"{failed.library_name}: {failed.error_kind}" if failed is not None else "unknown"
        raise NativeLoadUnavailableError(
            f"Native libraries unavailable ({detail}). "
            "Check NATIVELOAD_BUNDLE_PATH and the package ABI list."
        )
