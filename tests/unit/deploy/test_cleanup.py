"""Unit tests for stale install cleanup."""

from __future__ import annotations

from pathlib import Path

import pytest
from structlog.testing import capture_logs

from deploy.cleanup import purge_stale_installs
from deploy.version_tag import VersionTag
from tests.native_fakes import write_library

_TAG = VersionTag(build_number=3, update_epoch_millis=1000)


def test_purge_removes_other_versions_and_keeps_current(tmp_path) -> None:
    """Directories of other builds are removed; the current tag is untouched."""
    current = write_library(tmp_path / "3-1000" / "libfoo.so")
    write_library(tmp_path / "2-900" / "libfoo.so")
    write_library(tmp_path / "2-900-55" / "nested" / "libfoo.so")
    write_library(tmp_path / "loose-file.so")

    report = purge_stale_installs(tmp_path, _TAG)

    assert sorted(path.name for path in tmp_path.iterdir()) == ["3-1000"] and current.exists() and (
        tmp_path / "2-900" in report.removed
    )


def test_purge_never_touches_current_tag_even_when_incomplete(tmp_path) -> None:
    """An empty or partial current-tag directory and its staging dirs are kept."""
    (tmp_path / "3-1000").mkdir()
    in_progress = write_library(tmp_path / "3-1000-77" / "libfoo.so", payload=b"half")

    report = purge_stale_installs(tmp_path, _TAG)

    assert (tmp_path / "3-1000").is_dir() and in_progress.exists() and report.removed == []


def test_purge_tolerates_missing_root(tmp_path) -> None:
    """A missing install root is a no-op."""
    report = purge_stale_installs(tmp_path / "absent", _TAG)

    assert report.removed == [] and report.failed == []


def test_purge_logs_and_skips_deletion_failures(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Deletion failures should be logged as warnings and never raised."""
    stuck = write_library(tmp_path / "1-100" / "libstuck.so")
    write_library(tmp_path / "2-200" / "libfoo.so")
    original_unlink = Path.unlink

    def _failing_unlink(self: Path, missing_ok: bool = False) -> None:
        if self == stuck:
            raise PermissionError("read-only file")
        original_unlink(self, missing_ok=missing_ok)

    monkeypatch.setattr(Path, "unlink", _failing_unlink)

    with capture_logs() as captured:
        report = purge_stale_installs(tmp_path, _TAG)

    warnings = [entry for entry in captured if entry["event"] == "cleanup_warning"]
    assert (
        stuck in report.failed
        and not (tmp_path / "2-200").exists()
        and stuck.exists()
        and warnings
    )
