"""Bundle extraction into process-private staging files.

This module finds the best ABI entry for a library inside the application
bundle and streams it into a staging file owned by the current process.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence
import zipfile
import zlib

from core.constants import COPY_BUFFER_SIZE
from core.errors import NativeLoadInstallError, NativeLoadMissingArtifactError
from core.logging_config import get_logger
from deploy.bundle import Bundle, OpenedEntry
from deploy.naming import bundle_entry_name, bundle_entry_names

_LOGGER = get_logger(__name__)

BundleFactory = Callable[[], Bundle]
_ENTRY_READ_ERRORS = (
    OSError,
    EOFError,
    RuntimeError,
    NotImplementedError,
    zipfile.BadZipFile,
    zlib.error,
)


class ExtractionEngine:
    """Extract library entries from an application bundle."""

    def __init__(self, bundle_factory: BundleFactory, buffer_size: int = COPY_BUFFER_SIZE) -> None:
        self._bundle_factory = bundle_factory
        self._buffer_size = buffer_size

    def extract(self, file_name: str, abis: Sequence[str], staging_dir: Path) -> Path:
        """Stream the first matching ABI entry into a staging file.

        Args:
            file_name: Platform library file name.
            abis: Ordered ABI identifiers, primary first.
            staging_dir: Process-private staging directory.

        Returns:
            Path of the fully written staging file.

        Raises:
            NativeLoadMissingArtifactError: If no ABI has an entry in the bundle.
            NativeLoadInstallError: If the bundle cannot be read or the copy fails.
        """
        with self._bundle_factory() as bundle:
            entry, abi = _open_first_entry(bundle, file_name, abis)
            if entry is None:
                raise NativeLoadMissingArtifactError(
                    f"Bundle is missing library {file_name} for ABIs {', '.join(abis) or 'none'}."
                )
            if abi != abis[0]:
                _LOGGER.warning("abi_fallback", primary=abis[0], fallback=abi, file_name=file_name)
            staging_file = staging_dir / file_name
            try:
                _prepare_staging_file(staging_file)
                self._copy_entry(entry, staging_file)
            finally:
                entry.close()
        _LOGGER.info(
            "library_staged",
            entry=bundle_entry_name(abi, file_name),
            staging_path=str(staging_file),
        )
        return staging_file

    def _copy_entry(self, entry: OpenedEntry, staging_file: Path) -> None:
        written = 0
        try:
            with staging_file.open("xb") as output:
                while True:
                    chunk = entry.stream.read(self._buffer_size)
                    if not chunk:
                        break
                    output.write(chunk)
                    written += len(chunk)
        except _ENTRY_READ_ERRORS as error:
            discard_file(staging_file)
            raise NativeLoadInstallError(
                f"Failed to extract library to {staging_file}: {error}."
            ) from error
        if written != entry.size:
            discard_file(staging_file)
            raise NativeLoadInstallError(
                f"Truncated bundle entry for {staging_file.name}: "
                f"expected {entry.size} bytes, read {written}."
            )


def _open_first_entry(
    bundle: Bundle,
    file_name: str,
    abis: Sequence[str],
) -> tuple[OpenedEntry | None, str]:
    for abi, entry_name in zip(abis, bundle_entry_names(file_name, abis)):
        entry = bundle.open_entry(entry_name)
        if entry is not None:
            return entry, abi
    return None, ""


def _prepare_staging_file(staging_file: Path) -> None:
    """Create the staging directory and drop any leftover file from a dead process."""
    try:
        staging_file.parent.mkdir(parents=True, exist_ok=True)
        staging_file.unlink(missing_ok=True)
    except OSError as error:
        raise NativeLoadInstallError(
            f"Failed to prepare staging file {staging_file}: {error}."
        ) from error


def discard_file(path: Path) -> None:
    """Remove a file, logging instead of raising on failure."""
    try:
        path.unlink(missing_ok=True)
    except OSError as error:
        _LOGGER.warning("discard_failed", path=str(path), error=str(error))
