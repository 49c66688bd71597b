"""Bodies of the four scheduled jobs, bound to one configuration."""
from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional

from .. import __version__
from ..config import AppConfig
from ..reporting.charts import render_daily_chart
from ..reporting.index import chart_filter, write_index
from ..state.snapshots import LogScalars
from ..state.store import SnapshotStore
from ..storage.archive import load_daily_series
from ..storage.history_log import HistoryLog
from ..storage.retention import PurgeResult, purge_expired, purge_logs
from .scheduler import SchedulerEngine

logger = logging.getLogger(__name__)

JOB_APPEND = 'append'
JOB_ROTATION = 'rotation'
JOB_RETENTION = 'retention'
JOB_LOG_PURGE = 'log_purge'


class PipelineJobs:
    """Append, rotate/chart, retention/index and log purge."""

    def __init__(
        self,
        config: AppConfig,
        store: SnapshotStore,
        history: HistoryLog,
        *,
        clock: Callable[[], datetime] = datetime.now,
        version: str = __version__,
    ) -> None:
        self._config = config
        self._store = store
        self._history = history
        self._clock = clock
        self._version = version

    def chart_path(self, day: date) -> Path:
        storage = self._config.storage
        return storage.data_dir / f"{day:%Y-%m-%d}{storage.chart_suffix}"

    def append(self) -> str:
        return self._history.append(LogScalars.from_store(self._store), self._clock())

    def rotate(self, day: Optional[date] = None) -> Optional[Path]:
        """Archive the active log for *day* (default: today) and chart it."""

        day = day or self._clock().date()
        archive = self._history.rotate(day)
        if archive is None:
            return None
        return self.chart_archive(archive, day)

    def chart_archive(self, archive: Path, day: date) -> Optional[Path]:
        series = load_daily_series(archive)
        if not len(series):
            logger.warning("archive %s holds no records, chart skipped", archive)
            return None
        output = render_daily_chart(series, self.chart_path(day), day=day, source=archive, version=self._version)
        logger.info("rendered %d points from %s into %s", len(series), archive.name, output)
        return output

    def retention(self) -> Path:
        storage = self._config.storage
        result = purge_expired(
            storage.data_dir,
            retention_days=self._config.retention.retention_days,
            suffixes=(f"_{storage.active_log_name}", storage.chart_suffix),
            now=self._clock(),
        )
        if not result.ok:
            logger.warning("retention left %d artefact(s) in place after errors", len(result.failed))
        return self.rebuild_index()

    def rebuild_index(self) -> Path:
        storage = self._config.storage
        return write_index(
            storage.data_dir,
            storage.index_path,
            accept=chart_filter(storage.chart_suffix),
            generated_at=self._clock(),
        )

    def purge_logs(self) -> PurgeResult:
        return purge_logs(self._config.storage.log_dir)

    def recover_stale_log(self) -> Optional[Path]:
        """Rotate an active log still holding records from an earlier day."""

        first = self._history.first_record_date()
        if first is None or first >= self._clock().date():
            return None
        logger.warning("active log holds records from %s, rotating before start", first)
        return self.rotate(first)

    def register(self, engine: SchedulerEngine) -> None:
        schedule = self._config.schedule
        engine.add_job(JOB_APPEND, schedule.append, self.append)
        engine.add_job(JOB_ROTATION, schedule.rotation, self.rotate)
        engine.add_job(JOB_RETENTION, schedule.retention, self.retention)
        if self._config.retention.purge_logs:
            engine.add_job(JOB_LOG_PURGE, schedule.log_purge, self.purge_logs)
