"""Best-effort removal of installs left behind by previous builds."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from core.logging_config import get_logger
from deploy.version_tag import VersionTag

_LOGGER = get_logger(__name__)


@dataclass
class CleanupReport:
    """Paths removed and paths that could not be removed during one purge."""

    removed: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)


def purge_stale_installs(install_root: Path, version_tag: VersionTag) -> CleanupReport:
    """Delete every top-level entry of the install root not owned by the current build.

    Entries named after the current tag, including other processes' staging
    directories for it, are skipped without inspecting their contents.
    Failures are logged and never raised.

    Args:
        install_root: Root holding versioned install directories.
        version_tag: Tag of the running build.

    Returns:
        Report of removed and failed paths.
    """
    report = CleanupReport()
    try:
        entries = sorted(install_root.iterdir())
    except FileNotFoundError:
        return report
    except OSError as error:
        _LOGGER.warning("cleanup_warning", path=str(install_root), error=str(error))
        report.failed.append(install_root)
        return report
    for entry in entries:
        if version_tag.owns(entry.name):
            continue
        _remove_tree(entry, report)
    return report


def _remove_tree(path: Path, report: CleanupReport) -> None:
    if path.is_dir() and not path.is_symlink():
        try:
            children = list(path.iterdir())
        except OSError as error:
            _record_failure(path, error, report)
            return
        for child in children:
            _remove_tree(child, report)
        try:
            path.rmdir()
        except OSError as error:
            _record_failure(path, error, report)
            return
    else:
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as error:
            _record_failure(path, error, report)
            return
    report.removed.append(path)
    _LOGGER.debug("stale_path_removed", path=str(path))


def _record_failure(path: Path, error: OSError, report: CleanupReport) -> None:
    report.failed.append(path)
    _LOGGER.warning("cleanup_warning", path=str(path), error=str(error))
