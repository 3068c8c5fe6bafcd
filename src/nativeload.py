"""Public SDK surface for nativeload.

This module provides a stable import path for library consumers.
It re-exports the loader, typed results and a process-wide default loader.
"""

from __future__ import annotations

from functools import lru_cache

from core.config import NativeLoadConfig
from deploy.artifact_types import LoadResult
from deploy.native_capability import NativeCapability
from deploy.orchestrator import NativeLibraryLoader
from deploy.package_metadata import PackageMetadata
from deploy.version_tag import VersionTag


@lru_cache(maxsize=1)
def default_loader() -> NativeLibraryLoader:
    """Return the process-wide loader built from environment configuration."""
    return NativeLibraryLoader.from_config(NativeLoadConfig.from_env())


def ensure_loaded(library_name: str) -> LoadResult:
    """Load one native library through the process-wide default loader."""
    return default_loader().ensure_loaded(library_name)


__all__ = [
    "LoadResult",
    "NativeCapability",
    "NativeLibraryLoader",
    "NativeLoadConfig",
    "PackageMetadata",
    "VersionTag",
    "default_loader",
    "ensure_loaded",
]
