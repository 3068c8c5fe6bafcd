"""Application bundle readers.

This module exposes zip archives and asset directory trees through one
entry-lookup interface so extraction does not care how the bundle is stored.
"""

from __future__ import annotations

from pathlib import Path
from types import TracebackType
from typing import BinaryIO, Protocol
import zipfile
import zlib

from core.constants import BUNDLE_KIND_ARCHIVE, BUNDLE_KIND_ASSETS
from core.errors import NativeLoadConfigError, NativeLoadInstallError


class OpenedEntry:
    """Open stream for one bundle entry."""

    def __init__(self, stream: BinaryIO, size: int) -> None:
        self.stream = stream
        self.size = size

    def close(self) -> None:
        self.stream.close()


class Bundle(Protocol):
    """Context-managed source of bundle entries."""

    def __enter__(self) -> "Bundle": ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None: ...

    def open_entry(self, entry_name: str) -> OpenedEntry | None: ...


class ArchiveBundle:
    """Bundle backed by a zip archive such as a packaged application."""

    def __init__(self, archive_path: Path) -> None:
        self._archive_path = archive_path
        self._archive: zipfile.ZipFile | None = None

    def __enter__(self) -> "ArchiveBundle":
        try:
            self._archive = zipfile.ZipFile(self._archive_path, mode="r")
        except (OSError, zipfile.BadZipFile) as error:
            raise NativeLoadInstallError(
                f"Failed to open application bundle {self._archive_path}: {error}."
            ) from error
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if self._archive is not None:
            self._archive.close()
            self._archive = None

    def open_entry(self, entry_name: str) -> OpenedEntry | None:
        """Open one archive member, or return None when it is absent."""
        if self._archive is None:
            raise NativeLoadInstallError("Archive bundle used outside of its context.")
        try:
            info = self._archive.getinfo(entry_name)
        except KeyError:
            return None
        try:
            stream = self._archive.open(info, mode="r")
        except (OSError, RuntimeError, NotImplementedError, zipfile.BadZipFile, zlib.error) as error:
            raise NativeLoadInstallError(
                f"Failed to open bundle entry {entry_name}: {error}."
            ) from error
        return OpenedEntry(stream, info.file_size)


class AssetTreeBundle:
    """Bundle backed by an unpacked asset directory."""

    def __init__(self, asset_root: Path) -> None:
        self._asset_root = asset_root

    def __enter__(self) -> "AssetTreeBundle":
        if not self._asset_root.is_dir():
            raise NativeLoadInstallError(
                f"Asset bundle directory {self._asset_root} does not exist."
            )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        return None

    def open_entry(self, entry_name: str) -> OpenedEntry | None:
        """Open one asset file, or return None when it is absent."""
        asset_path = self._asset_root.joinpath(*entry_name.split("/"))
        if not asset_path.is_file():
            return None
        try:
            stream = asset_path.open("rb")
            size = asset_path.stat().st_size
        except OSError as error:
            raise NativeLoadInstallError(f"Failed to open asset {asset_path}: {error}.") from error
        return OpenedEntry(stream, size)


def open_bundle(bundle_path: Path, bundle_kind: str) -> Bundle:
    """Build the bundle reader for a configured kind.

    Raises:
        NativeLoadConfigError: If the kind is not supported.
    """
    if bundle_kind == BUNDLE_KIND_ARCHIVE:
        return ArchiveBundle(bundle_path)
    if bundle_kind == BUNDLE_KIND_ASSETS:
        return AssetTreeBundle(bundle_path)
    raise NativeLoadConfigError(f"Unsupported bundle kind {bundle_kind!r}.")
