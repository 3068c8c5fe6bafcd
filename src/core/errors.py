"""Nativeload exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each deployment step raises a specific error type for debuggability.
"""

from __future__ import annotations


class NativeLoadError(Exception):
    """Base exception for all nativeload failures."""


class NativeLoadConfigError(NativeLoadError):
    """Raised for invalid runtime configuration."""


class NativeLoadMetadataError(NativeLoadError):
    """Raised when package metadata cannot be read or parsed."""


class NativeLoadMissingArtifactError(NativeLoadError):
    """Raised when the bundle has no entry for any candidate ABI."""


class NativeLoadInstallError(NativeLoadError):
    """Raised for staging and install failures not caused by a lost race."""


class NativeLoadActivationError(NativeLoadError):
    """Raised when a present library file fails to load or link."""


class NativeLoadUnavailableError(NativeLoadError):
    """Raised when a caller requires native support that could not be loaded."""
