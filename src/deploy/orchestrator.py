"""Load orchestration across the native library fallback chain.

The loader tries, in order: the platform loader's default search by file
name, pre-installed copies in app/vendor/system directories, a previously
installed copy for the current build, and finally extraction from the
application bundle into the versioned install directory. Every outcome is
returned as a LoadResult; no exception escapes ensure_loaded.
"""

from __future__ import annotations

import os
from pathlib import Path
import threading
from typing import Any, Iterable, Sequence

from core.config import NativeLoadConfig
from core.errors import (
    NativeLoadActivationError,
    NativeLoadError,
    NativeLoadMissingArtifactError,
)
from core.logging_config import get_logger
from deploy.activation import CtypesActivator, LibraryActivator
from deploy.artifact_types import ArtifactRecord, LoadResult, failure_result, success_result
from deploy.bundle import open_bundle
from deploy.candidate_search import (
    CandidatePathSearch,
    default_candidate_directories,
    is_fresh,
)
from deploy.cleanup import purge_stale_installs
from deploy.extraction import ExtractionEngine, discard_file
from deploy.installer import AtomicInstaller
from deploy.naming import detect_abis, platform_library_name
from deploy.package_metadata import MetadataReader, manifest_reader
from deploy.version_tag import VersionTag, VersionTagResolver

_LOGGER = get_logger(__name__)


class NativeLibraryLoader:
    """Resolve, install and activate bundled native libraries."""

    def __init__(
        self,
        install_root: Path,
        search: CandidatePathSearch,
        version_resolver: VersionTagResolver,
        abis: Sequence[str],
        extraction: ExtractionEngine | None = None,
        activator: LibraryActivator | None = None,
        installer: AtomicInstaller | None = None,
        check_system_freshness: bool = False,
        prefer_bundle: bool = False,
        process_id: int | None = None,
        library_platform: str | None = None,
    ) -> None:
        self._install_root = install_root
        self._search = search
        self._version_resolver = version_resolver
        self._abis = tuple(abis)
        self._extraction = extraction
        self._activator = activator or CtypesActivator()
        self._installer = installer or AtomicInstaller()
        self._check_system_freshness = check_system_freshness
        self._prefer_bundle = prefer_bundle
        self._process_id = process_id
        self._library_platform = library_platform
        self._loaded: dict[str, LoadResult] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: NativeLoadConfig,
        activator: LibraryActivator | None = None,
        metadata_reader: MetadataReader | None = None,
    ) -> "NativeLibraryLoader":
        """Build a loader from validated runtime configuration.

        Args:
            config: Runtime configuration.
            activator: Optional activator override, ctypes by default.
            metadata_reader: Optional metadata source overriding the configured manifest.

        Returns:
            Configured loader.
        """
        reader = metadata_reader
        if reader is None and config.package_manifest is not None:
            reader = manifest_reader(config.package_manifest)
        extraction = None
        if config.bundle_path is not None:
            bundle_path = config.bundle_path
            bundle_kind = config.bundle_kind
            extraction = ExtractionEngine(lambda: open_bundle(bundle_path, bundle_kind))
        return cls(
            install_root=config.install_root,
            search=CandidatePathSearch(
                default_candidate_directories(config.native_library_dir, config.system_root)
            ),
            version_resolver=VersionTagResolver(reader),
            abis=config.abis or detect_abis(),
            extraction=extraction,
            activator=activator,
            check_system_freshness=config.check_system_freshness,
            prefer_bundle=config.prefer_bundle,
        )

    def version_tag(self) -> VersionTag:
        """Return the memoized version tag of the running build."""
        return self._version_resolver.resolve()

    def ensure_loaded(self, library_name: str) -> LoadResult:
        """Make one library available, returning a typed result.

        Repeated calls for a library that already loaded return the cached
        result without touching the filesystem.
        """
        with self._lock:
            cached = self._loaded.get(library_name)
            if cached is not None:
                return cached
            record = ArtifactRecord(
                name=library_name,
                file_name=platform_library_name(library_name, self._library_platform),
            )
            result = self._resolve(record)
            if result.ok:
                self._loaded[library_name] = result
                _LOGGER.info(
                    "library_loaded",
                    library=library_name,
                    path=result.path,
                    state=result.state,
                )
            else:
                _LOGGER.error(
                    "library_load_failed",
                    library=library_name,
                    error_kind=result.error_kind,
                    message=result.message,
                )
            return result

    def ensure_loaded_all(self, library_names: Iterable[str]) -> tuple[LoadResult, ...]:
        """Load libraries in order, stopping at the first failure."""
        results: list[LoadResult] = []
        for library_name in library_names:
            result = self.ensure_loaded(library_name)
            results.append(result)
            if not result.ok:
                break
        return tuple(results)

    def _resolve(self, record: ArtifactRecord) -> LoadResult:
        if not self._prefer_bundle:
            result = self._try_default_search(record)
            if result is not None:
                return result
            result = self._try_system_candidates(record)
            if result is not None:
                return result
        version_tag = self.version_tag()
        result = self._try_installed(record, version_tag)
        if result is not None:
            return result
        return self._extract_and_activate(record, version_tag)

    def _try_default_search(self, record: ArtifactRecord) -> LoadResult | None:
        handle = self._activate(record.file_name)
        if handle is None:
            return None
        record.advance("found_system")
        return success_result(record, record.file_name, handle)

    def _try_system_candidates(self, record: ArtifactRecord) -> LoadResult | None:
        search = self._search
        if self._check_system_freshness:
            search = search.with_version_tag(self.version_tag())
        for candidate in search.iter_matches(record.file_name, self._check_system_freshness):
            handle = self._activate(str(candidate))
            if handle is not None:
                record.advance("found_system", candidate)
                return success_result(record, str(candidate), handle)
        return None

    def _try_installed(self, record: ArtifactRecord, version_tag: VersionTag) -> LoadResult | None:
        installed = self._install_root / version_tag.directory_name / record.file_name
        if not installed.is_file():
            return None
        if not is_fresh(installed, version_tag):
            _LOGGER.warning("stale_install_discarded", path=str(installed), tag=str(version_tag))
            discard_file(installed)
            return None
        handle = self._activate(str(installed))
        if handle is None:
            _LOGGER.warning("unloadable_install_discarded", path=str(installed))
            discard_file(installed)
            return None
        record.advance("found_installed", installed)
        return success_result(record, str(installed), handle)

    def _extract_and_activate(self, record: ArtifactRecord, version_tag: VersionTag) -> LoadResult:
        record.advance("extracting")
        purge_stale_installs(self._install_root, version_tag)
        if self._extraction is None:
            record.advance("missing")
            return failure_result(
                record,
                "missing_artifact",
                f"No application bundle configured to extract {record.file_name}.",
            )
        process_id = self._process_id if self._process_id is not None else os.getpid()
        staging_dir = self._install_root / version_tag.staging_name(process_id)
        try:
            staging_file = self._extraction.extract(record.file_name, self._abis, staging_dir)
        except NativeLoadMissingArtifactError as error:
            record.advance("missing")
            return failure_result(record, "missing_artifact", str(error))
        except NativeLoadError as error:
            record.advance("missing")
            return failure_result(record, "install_error", str(error))
        record.advance("staged", staging_file)
        try:
            installed = self._installer.install(
                staging_file,
                self._install_root / version_tag.directory_name,
                record.file_name,
            )
        except NativeLoadError as error:
            record.advance("missing")
            return failure_result(record, "install_error", str(error))
        record.advance("installed", installed)
        try:
            handle = self._activator.load(str(installed))
        except NativeLoadActivationError as error:
            record.advance("missing")
            return failure_result(record, "activation_error", str(error))
        return success_result(record, str(installed), handle)

    def _activate(self, target: str) -> Any | None:
        try:
            return self._activator.load(target)
        except NativeLoadActivationError as error:
            _LOGGER.debug("activation_attempt_failed", target=target, error=str(error))
            return None
