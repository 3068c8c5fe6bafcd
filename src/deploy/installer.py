"""Atomic promotion of staged libraries into the versioned install directory.

Promotion never replaces an existing destination. When another process has
already installed the same file, the staged copy is discarded and the
existing file is adopted.
"""

from __future__ import annotations

import errno
import os
from pathlib import Path

from core.constants import INSTALLED_FILE_MODE
from core.errors import NativeLoadInstallError
from core.logging_config import get_logger
from deploy.extraction import discard_file

_LOGGER = get_logger(__name__)

_LINK_UNSUPPORTED_ERRNOS = frozenset(
    code
    for code in (
        getattr(errno, "EPERM", None),
        getattr(errno, "ENOTSUP", None),
        getattr(errno, "EOPNOTSUPP", None),
        getattr(errno, "ENOSYS", None),
        getattr(errno, "EMLINK", None),
    )
    if code is not None
)


class AtomicInstaller:
    """Promote staging files with a single no-replace filesystem operation."""

    def install(self, staging_file: Path, install_dir: Path, file_name: str) -> Path:
        """Install a staged library.

        Args:
            staging_file: Fully written, process-private staging file.
            install_dir: Versioned install directory shared across processes.
            file_name: Platform library file name.

        Returns:
            Path of the installed library, whether promoted here or by a racing process.

        Raises:
            NativeLoadInstallError: If promotion fails for a reason other than a lost race.
        """
        destination = install_dir / file_name
        try:
            os.chmod(staging_file, INSTALLED_FILE_MODE)
            install_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            discard_file(staging_file)
            raise NativeLoadInstallError(
                f"Failed to prepare {staging_file} for install: {error}."
            ) from error
        promoted = self._promote(staging_file, destination)
        if promoted:
            _LOGGER.info("library_installed", path=str(destination))
        else:
            _LOGGER.info("install_race_lost", path=str(destination), staging_path=str(staging_file))
        discard_file(staging_file)
        _remove_empty_dir(staging_file.parent)
        return destination

    def _promote(self, staging_file: Path, destination: Path) -> bool:
        """Return True if this process placed the file, False if it already existed."""
        try:
            os.link(staging_file, destination)
            return True
        except FileExistsError:
            return False
        except OSError as error:
            if error.errno not in _LINK_UNSUPPORTED_ERRNOS:
                discard_file(staging_file)
                raise NativeLoadInstallError(
                    f"Failed to install {staging_file} to {destination}: {error}."
                ) from error
        return self._rename_without_replace(staging_file, destination)

    def _rename_without_replace(self, staging_file: Path, destination: Path) -> bool:
        # Filesystems without hard links: the existence check and rename are not one step.
        if destination.exists():
            return False
        try:
            os.rename(staging_file, destination)
        except FileExistsError:
            return False
        except OSError as error:
            if destination.exists():
                return False
            discard_file(staging_file)
            raise NativeLoadInstallError(
                f"Failed to install {staging_file} to {destination}: {error}."
            ) from error
        return True


def _remove_empty_dir(directory: Path) -> None:
    try:
        directory.rmdir()
    except OSError:
        _LOGGER.debug("staging_dir_retained", path=str(directory))
