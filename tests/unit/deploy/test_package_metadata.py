"""Unit tests for package manifest parsing."""

from __future__ import annotations

import pytest

from core.errors import NativeLoadMetadataError
from deploy.package_metadata import PackageMetadata, read_package_manifest
from tests.fixture_paths import package_manifest_path


def test_read_package_manifest_parses_version_and_times() -> None:
    """Valid manifest should parse into typed metadata."""
    metadata = read_package_manifest(package_manifest_path("manifest.yaml"))

    assert metadata == PackageMetadata(version_code=3, last_update_time=1000, first_install_time=500)


def test_read_package_manifest_rejects_non_integer_version() -> None:
    """Non-numeric version codes should raise metadata error."""
    with pytest.raises(NativeLoadMetadataError):
        read_package_manifest(package_manifest_path("invalid_version.yaml"))

    assert True


def test_read_package_manifest_rejects_missing_file(tmp_path) -> None:
    """Missing manifest should raise metadata error instead of OSError."""
    with pytest.raises(NativeLoadMetadataError):
        read_package_manifest(tmp_path / "absent.yaml")

    assert True


def test_read_package_manifest_rejects_non_mapping_root(tmp_path) -> None:
    """Manifest root must be a mapping."""
    manifest = tmp_path / "list.yaml"
    manifest.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(NativeLoadMetadataError):
        read_package_manifest(manifest)

    assert True
