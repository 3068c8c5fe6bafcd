"""Package metadata parsing for version tagging.

This module loads the application package manifest that carries the
build number and install/update timestamps used to namespace installs.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, cast

import yaml

from core.errors import NativeLoadMetadataError

_REQUIRED_KEYS = ("version_code",)


@dataclass(frozen=True)
class PackageMetadata:
    """Application package metadata.

    Attributes:
        version_code: Monotonic build number of the installed package.
        last_update_time: Epoch milliseconds of the last package update, 0 if unknown.
        first_install_time: Epoch milliseconds of the first install, 0 if unknown.
    """

    version_code: int
    last_update_time: int = 0
    first_install_time: int = 0


MetadataReader = Callable[[], PackageMetadata]


def read_package_manifest(manifest_path: Path) -> PackageMetadata:
    """Load and validate a YAML package manifest from disk.

    Args:
        manifest_path: Path to the YAML manifest.

    Returns:
        Parsed package metadata.

    Raises:
        NativeLoadMetadataError: If the file is unreadable or invalid.
    """
    try:
        payload = cast(object, yaml.safe_load(manifest_path.read_text(encoding="utf-8")))
    except OSError as error:
        raise NativeLoadMetadataError(
            f"Failed to read package manifest {manifest_path}: {error}."
        ) from error
    except yaml.YAMLError as error:
        raise NativeLoadMetadataError(
            f"Failed to parse package manifest {manifest_path}: {error}."
        ) from error
    if not isinstance(payload, Mapping):
        raise NativeLoadMetadataError(
            f"Invalid package manifest at {manifest_path}: expected a mapping at root."
        )
    for key in _REQUIRED_KEYS:
        if key not in payload:
            raise NativeLoadMetadataError(
                f"Invalid package manifest at {manifest_path}: missing required field {key!r}."
            )
    return PackageMetadata(
        version_code=_parse_int(payload, "version_code", manifest_path),
        last_update_time=_parse_int(payload, "last_update_time", manifest_path),
        first_install_time=_parse_int(payload, "first_install_time", manifest_path),
    )


def manifest_reader(manifest_path: Path) -> MetadataReader:
    """Return a zero-argument reader bound to one manifest path."""

    def _read() -> PackageMetadata:
        return read_package_manifest(manifest_path)

    return _read


def _parse_int(payload: Mapping[object, object], key: str, manifest_path: Path) -> int:
    raw_value = payload.get(key, 0)
    if raw_value is None:
        return 0
    if isinstance(raw_value, bool) or not isinstance(raw_value, (int, str)):
        raise NativeLoadMetadataError(
            f"Invalid package manifest at {manifest_path}: {key!r} must be an integer."
        )
    try:
        return int(raw_value)
    except ValueError as error:
        raise NativeLoadMetadataError(
            f"Invalid package manifest at {manifest_path}: {key!r} must be an integer, "
            f"got {raw_value!r}."
        ) from error
