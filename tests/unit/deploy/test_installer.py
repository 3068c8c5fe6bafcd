"""Unit tests for atomic promotion of staged libraries."""

from __future__ import annotations

import errno
import os
import stat

import pytest

from core.errors import NativeLoadInstallError
from deploy.installer import AtomicInstaller
from tests.native_fakes import ELF_PAYLOAD, write_library


class _ModeRecordingInstaller(AtomicInstaller):
    """Installer that records the staging mode at promotion time."""

    def __init__(self) -> None:
        self.modes_at_promotion: list[int] = []

    def _promote(self, staging_file, destination) -> bool:
        self.modes_at_promotion.append(stat.S_IMODE(os.stat(staging_file).st_mode))
        return super()._promote(staging_file, destination)


def test_install_promotes_staging_file_and_removes_staging_dir(tmp_path) -> None:
    """Successful install should move content into place and drop staging."""
    staging = write_library(tmp_path / "root" / "3-1000-9" / "libfoo.so")

    installed = AtomicInstaller().install(staging, tmp_path / "root" / "3-1000", "libfoo.so")

    assert (
        installed == tmp_path / "root" / "3-1000" / "libfoo.so"
        and installed.read_bytes() == ELF_PAYLOAD
        and not staging.parent.exists()
    )


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
def test_install_sets_permissions_before_promotion(tmp_path) -> None:
    """Staging file should be rwxr-xr-x before it becomes visible."""
    staging = write_library(tmp_path / "root" / "3-1000-9" / "libfoo.so")
    os.chmod(staging, 0o600)
    installer = _ModeRecordingInstaller()

    installed = installer.install(staging, tmp_path / "root" / "3-1000", "libfoo.so")

    assert installer.modes_at_promotion == [0o755] and stat.S_IMODE(
        os.stat(installed).st_mode
    ) == 0o755


def test_install_adopts_existing_destination_when_race_is_lost(tmp_path) -> None:
    """An existing destination means another process won; it is kept as-is."""
    winner = write_library(tmp_path / "root" / "3-1000" / "libfoo.so", payload=b"\x7fELF winner")
    staging = write_library(tmp_path / "root" / "3-1000-9" / "libfoo.so", payload=b"\x7fELF loser")

    installed = AtomicInstaller().install(staging, tmp_path / "root" / "3-1000", "libfoo.so")

    assert installed == winner and winner.read_bytes() == b"\x7fELF winner" and not staging.exists()


def test_install_raises_for_non_race_failure(tmp_path) -> None:
    """A filesystem failure unrelated to a race should raise install error."""
    staging = write_library(tmp_path / "root" / "3-1000-9" / "libfoo.so")
    blocker = tmp_path / "root" / "3-1000"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(NativeLoadInstallError):
        AtomicInstaller().install(staging, blocker, "libfoo.so")

    assert not staging.exists()


def _refuse_hard_links(source, destination, *args, **kwargs) -> None:
    raise OSError(errno.EPERM, "hard links unsupported")


def test_install_renames_when_hard_links_are_unsupported(tmp_path, monkeypatch) -> None:
    """Filesystems without hard links should still promote through rename."""
    monkeypatch.setattr(os, "link", _refuse_hard_links)
    staging = write_library(tmp_path / "root" / "3-1000-9" / "libfoo.so")

    installed = AtomicInstaller().install(staging, tmp_path / "root" / "3-1000", "libfoo.so")

    assert installed.read_bytes() == ELF_PAYLOAD and not staging.parent.exists()


def test_install_without_hard_links_adopts_existing_destination(tmp_path, monkeypatch) -> None:
    """Without hard links an existing destination is kept and staging is dropped."""
    monkeypatch.setattr(os, "link", _refuse_hard_links)
    winner = write_library(tmp_path / "root" / "3-1000" / "libfoo.so", payload=b"\x7fELF winner")
    staging = write_library(tmp_path / "root" / "3-1000-9" / "libfoo.so", payload=b"\x7fELF loser")

    installed = AtomicInstaller().install(staging, tmp_path / "root" / "3-1000", "libfoo.so")

    assert installed == winner and winner.read_bytes() == b"\x7fELF winner" and not staging.exists()


def test_install_without_hard_links_adopts_destination_created_during_rename(
    tmp_path, monkeypatch
) -> None:
    """A rename that fails after a racing writer lands its file counts as a lost race."""
    monkeypatch.setattr(os, "link", _refuse_hard_links)
    destination = tmp_path / "root" / "3-1000" / "libfoo.so"

    def _racing_rename(source, target) -> None:
        write_library(destination, payload=b"\x7fELF racer")
        raise OSError(errno.EACCES, "destination busy")

    monkeypatch.setattr(os, "rename", _racing_rename)
    staging = write_library(tmp_path / "root" / "3-1000-9" / "libfoo.so", payload=b"\x7fELF loser")

    installed = AtomicInstaller().install(staging, tmp_path / "root" / "3-1000", "libfoo.so")

    assert installed.read_bytes() == b"\x7fELF racer" and not staging.exists()


def test_install_without_hard_links_raises_when_rename_fails(tmp_path, monkeypatch) -> None:
    """A rename failure with no destination in place should raise install error."""
    monkeypatch.setattr(os, "link", _refuse_hard_links)

    def _failing_rename(source, target) -> None:
        raise OSError(errno.EACCES, "permission denied")

    monkeypatch.setattr(os, "rename", _failing_rename)
    staging = write_library(tmp_path / "root" / "3-1000-9" / "libfoo.so")

    with pytest.raises(NativeLoadInstallError):
        AtomicInstaller().install(staging, tmp_path / "root" / "3-1000", "libfoo.so")

    assert not staging.exists()
