"""Runtime configuration model for nativeload.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    BUNDLE_KIND_ARCHIVE,
    DEFAULT_INSTALL_ROOT,
    DEFAULT_SYSTEM_ROOT,
    SUPPORTED_BUNDLE_KINDS,
)
from core.errors import NativeLoadConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class NativeLoadConfig:
    """Validated runtime configuration.

    Attributes:
        install_root: Private root holding versioned install directories.
        native_library_dir: App-private native directory probed first, if any.
        system_root: Root of the system image holding lib, lib64 and vendor.
        bundle_path: Application bundle (zip archive or asset directory).
        bundle_kind: Either "archive" or "assets".
        package_manifest: Optional YAML manifest with package version metadata.
        abis: Ordered ABI identifiers, or empty to detect from the host.
        check_system_freshness: Reject system candidates older than the package.
        prefer_bundle: Skip by-name and system lookups and install from bundle.
    """

    install_root: Path
    native_library_dir: Path | None = None
    system_root: Path = DEFAULT_SYSTEM_ROOT
    bundle_path: Path | None = None
    bundle_kind: str = BUNDLE_KIND_ARCHIVE
    package_manifest: Path | None = None
    abis: tuple[str, ...] = ()
    check_system_freshness: bool = False
    prefer_bundle: bool = False

    @classmethod
    def from_env(cls) -> "NativeLoadConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            NativeLoadConfigError: If environment values are invalid.
        """
        install_root_value = os.getenv("NATIVELOAD_INSTALL_ROOT", str(DEFAULT_INSTALL_ROOT))
        bundle_kind = os.getenv("NATIVELOAD_BUNDLE_KIND", BUNDLE_KIND_ARCHIVE).strip().lower()
        if bundle_kind not in SUPPORTED_BUNDLE_KINDS:
            raise NativeLoadConfigError(
                "Invalid NATIVELOAD_BUNDLE_KIND value: "
                f"expected one of {', '.join(SUPPORTED_BUNDLE_KINDS)}, got '{bundle_kind}'."
            )
        return cls(
            install_root=_resolve_path(install_root_value),
            native_library_dir=_optional_path(os.getenv("NATIVELOAD_NATIVE_LIB_DIR")),
            system_root=_resolve_path(os.getenv("NATIVELOAD_SYSTEM_ROOT", str(DEFAULT_SYSTEM_ROOT))),
            bundle_path=_optional_path(os.getenv("NATIVELOAD_BUNDLE_PATH")),
            bundle_kind=bundle_kind,
            package_manifest=_optional_path(os.getenv("NATIVELOAD_PACKAGE_MANIFEST")),
            abis=_parse_abis(os.getenv("NATIVELOAD_ABIS", "")),
            check_system_freshness=_parse_flag(
                "NATIVELOAD_CHECK_SYSTEM_FRESHNESS",
                os.getenv("NATIVELOAD_CHECK_SYSTEM_FRESHNESS", "false"),
            ),
            prefer_bundle=_parse_flag(
                "NATIVELOAD_PREFER_BUNDLE",
                os.getenv("NATIVELOAD_PREFER_BUNDLE", "false"),
            ),
        )


def _resolve_path(raw_value: str) -> Path:
    return Path(raw_value).expanduser().resolve()


def _optional_path(raw_value: str | None) -> Path | None:
    if raw_value is None or not raw_value.strip():
        return None
    return _resolve_path(raw_value.strip())


def _parse_abis(raw_value: str) -> tuple[str, ...]:
    """Split a comma-separated ABI list, keeping order and dropping blanks."""
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


def _parse_flag(variable_name: str, raw_value: str) -> bool:
    """Parse a boolean environment value.

    Args:
        variable_name: Environment variable name for error messages.
        raw_value: Raw string from environment.

    Returns:
        Parsed boolean flag.

    Raises:
        NativeLoadConfigError: If value is not a recognized boolean.
    """
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise NativeLoadConfigError(
        f"Invalid {variable_name} value: expected a boolean, got '{raw_value}'. "
        f"Use one of {', '.join(_TRUE_VALUES + _FALSE_VALUES[:-1])}."
    )
