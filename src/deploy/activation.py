"""Dynamic activation of shared libraries.

This module wraps the platform dynamic loader behind a small protocol so
the orchestrator can be exercised without real native binaries.
"""

from __future__ import annotations

import ctypes
from typing import Any, Protocol

from core.errors import NativeLoadActivationError


class LibraryActivator(Protocol):
    """Loads a shared library by file name or absolute path."""

    def load(self, target: str) -> Any:
        """Load one library and return its opaque handle.

        Raises:
            NativeLoadActivationError: If the library cannot be loaded.
        """
        ...


class CtypesActivator:
    """Activator backed by ctypes.CDLL with global symbol visibility."""

    def __init__(self, mode: int = ctypes.RTLD_GLOBAL) -> None:
        self._mode = mode

    def load(self, target: str) -> Any:
        try:
            return ctypes.CDLL(target, mode=self._mode)
        except OSError as error:
            raise NativeLoadActivationError(f"Failed to load library {target}: {error}.") from error
