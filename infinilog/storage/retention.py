"""Filesystem retention for dated archives, charts and diagnostic logs."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

DATED_NAME = re.compile(r'^\d{4}-\d{2}-\d{2}_')


@dataclass(slots=True)
class PurgeResult:
    removed: List[Path] = field(default_factory=list)
    kept: int = 0
    failed: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def retention_cutoff(now: datetime, retention_days: int) -> datetime:
    """Files modified strictly before this instant are expired."""

    return now - timedelta(days=retention_days)


def purge_expired(
    directory: Path,
    *,
    retention_days: int,
    suffixes: Iterable[str],
    now: Optional[datetime] = None,
) -> PurgeResult:
    """Delete dated artefacts in *directory* older than the retention window.

    Only files named ``YYYY-MM-DD_...`` and ending in one of *suffixes* are
    considered. A file exactly ``retention_days`` old is kept.
    """

    result = PurgeResult()
    directory = Path(directory)
    if not directory.is_dir():
        logger.debug("retention skipped, %s does not exist", directory)
        return result
    cutoff = retention_cutoff(now or datetime.now(), retention_days)
    endings = tuple(suffixes)
    for path in sorted(directory.iterdir()):
        if not path.is_file() or not DATED_NAME.match(path.name) or not path.name.endswith(endings):
            continue
        try:
            modified = datetime.fromtimestamp(path.stat().st_mtime)
            if modified >= cutoff:
                result.kept += 1
                continue
            path.unlink()
        except OSError as exc:
            logger.error("unable to purge %s: %s", path, exc)
            result.failed.append((path, str(exc)))
            continue
        result.removed.append(path)
    if result.removed:
        logger.info("purged %d artefact(s) older than %d days from %s", len(result.removed), retention_days, directory)
    return result


def purge_logs(directory: Path, pattern: str = '*.log') -> PurgeResult:
    """Delete every file matching *pattern* in *directory*, regardless of age."""

    result = PurgeResult()
    directory = Path(directory)
    if not directory.is_dir():
        logger.debug("log purge skipped, %s does not exist", directory)
        return result
    for path in sorted(directory.glob(pattern)):
        if not path.is_file():
            continue
        try:
            path.unlink()
        except OSError as exc:
            logger.error("unable to delete log file %s: %s", path, exc)
            result.failed.append((path, str(exc)))
            continue
        result.removed.append(path)
    logger.info("removed %d diagnostic log file(s) from %s", len(result.removed), directory)
    return result
