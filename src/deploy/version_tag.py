"""Version tag derivation for install namespacing.

This module turns package metadata into a stable identifier of the current
application build. The tag names install directories and anchors the
freshness check for previously installed libraries.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.constants import SENTINEL_VERSION_TAG, STAGING_SEPARATOR
from core.errors import NativeLoadMetadataError
from core.logging_config import get_logger
from deploy.package_metadata import MetadataReader, PackageMetadata

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class VersionTag:
    """Identifier of the running application build.

    Attributes:
        build_number: Package version code.
        update_epoch_millis: Last update time, or first install time as fallback.
        degraded: True when metadata was unreadable and the sentinel is used.
    """

    build_number: int
    update_epoch_millis: int
    degraded: bool = False

    @property
    def directory_name(self) -> str:
        """Name of the install directory owned by this build."""
        if self.degraded:
            return SENTINEL_VERSION_TAG
        return f"{self.build_number}{STAGING_SEPARATOR}{self.update_epoch_millis}"

    def staging_name(self, process_id: int) -> str:
        """Name of the process-private staging directory for this build."""
        return f"{self.directory_name}{STAGING_SEPARATOR}{process_id}"

    def owns(self, entry_name: str) -> bool:
        """Return True for the install directory or any staging directory of this build."""
        tag = self.directory_name
        return entry_name == tag or entry_name.startswith(tag + STAGING_SEPARATOR)

    def __str__(self) -> str:
        return self.directory_name


SENTINEL_TAG = VersionTag(build_number=0, update_epoch_millis=0, degraded=True)


def version_tag_from_metadata(metadata: PackageMetadata) -> VersionTag:
    """Derive a version tag, falling back to first-install time when needed."""
    updated_time = metadata.last_update_time
    if updated_time <= 0:
        updated_time = metadata.first_install_time
    return VersionTag(build_number=metadata.version_code, update_epoch_millis=max(updated_time, 0))


class VersionTagResolver:
    """Memoizing resolver for the current build's version tag."""

    def __init__(self, metadata_reader: MetadataReader | None) -> None:
        self._metadata_reader = metadata_reader
        self._tag: VersionTag | None = None

    def resolve(self) -> VersionTag:
        """Return the version tag, reading metadata only on the first call."""
        if self._tag is None:
            self._tag = self._compute()
        return self._tag

    def _compute(self) -> VersionTag:
        if self._metadata_reader is None:
            _LOGGER.warning("package_metadata_unavailable", reason="no metadata source configured")
            return SENTINEL_TAG
        try:
            metadata = self._metadata_reader()
        except NativeLoadMetadataError as error:
            _LOGGER.error("package_metadata_unreadable", error=str(error))
            return SENTINEL_TAG
        tag = version_tag_from_metadata(metadata)
        _LOGGER.info(
            "version_tag_resolved",
            tag=tag.directory_name,
            build_number=tag.build_number,
            update_epoch_millis=tag.update_epoch_millis,
        )
        return tag
