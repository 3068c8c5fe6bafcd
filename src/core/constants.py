"""Core constants used across nativeload modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in deployment logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_INSTALL_ROOT = Path(".nativeload") / "lib"
DEFAULT_SYSTEM_ROOT = Path("/system")
VENDOR_ROOT_DIR_NAME = "vendor"
LIB_DIR_NAME = "lib"
LIB64_DIR_NAME = "lib64"
BUNDLE_LIB_PREFIX = "lib"
BUNDLE_KIND_ARCHIVE = "archive"
BUNDLE_KIND_ASSETS = "assets"
SUPPORTED_BUNDLE_KINDS = (BUNDLE_KIND_ARCHIVE, BUNDLE_KIND_ASSETS)
UPDATE_EPSILON_MS = 60 * 1000
COPY_BUFFER_SIZE = 16 * 1024
INSTALLED_FILE_MODE = 0o755
SENTINEL_VERSION_TAG = "0"
STAGING_SEPARATOR = "-"
