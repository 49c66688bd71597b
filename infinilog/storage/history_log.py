"""Append-only daily history log.

File format (one header line, then one record per append tick)::

    Date,Time,FracTime,HeatSet,CoolSet,OutdoorTemp,CurrentTemp,BlowerRPM
    2024-01-05T12:00:00,0005.5000,0068,0076,0045,0071,0600,heat

Every numeric column is fixed width, so the character offsets of each field
are the same on every record (``FracTime`` at 20-28, ``OutdoorTemp`` at
40-43, ``CurrentTemp`` at 45-48, ``BlowerRPM`` at 50-53).

The active file is closed, renamed to ``<YYYY-MM-DD>_<name>`` and reopened by
:meth:`HistoryLog.rotate`. All writes and the whole rotation sequence run under
one lock, so an append can never land between the close and the reopen.
"""
from __future__ import annotations

import logging
import os
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional, TextIO

from ..constants import LOG_HEADER
from ..state.snapshots import LogScalars

logger = logging.getLogger(__name__)

RECORD_FIELDS = (
    'timestamp',
    'frac_day',
    'heat_setpoint',
    'cool_setpoint',
    'outdoor_temp',
    'current_temp',
    'blower_rpm',
    'mode',
)
TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%S'


class HistoryLogError(RuntimeError):
    """Raised when the active log cannot be created, written or rotated."""


def fractional_day(at: datetime) -> float:
    """Day of month plus the elapsed fraction of that day (minute resolution)."""

    return at.day + 4.16667 * (at.hour + at.minute / 60.0) / 100.0


def format_record(at: datetime, scalars: LogScalars) -> str:
    """Render one history record (without the trailing newline)."""

    return '%s,%09.4f,%04d,%04d,%04d,%04d,%04d,%s' % (
        at.strftime(TIMESTAMP_FORMAT),
        fractional_day(at),
        scalars.heat_setpoint,
        scalars.cool_setpoint,
        scalars.outdoor_temp,
        scalars.current_temp,
        scalars.blower_rpm,
        scalars.mode,
    )


def is_header(line: str) -> bool:
    return line.startswith('D')


class HistoryLog:
    """Owner of the active log file handle."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()
        self._handle: Optional[TextIO] = None
        self._appended = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    @property
    def appended(self) -> int:
        return self._appended

    def archive_path(self, day: date) -> Path:
        return self._path.with_name(f"{day:%Y-%m-%d}_{self._path.name}")

    def open(self) -> None:
        """Open the active log, writing the header only into a new or empty file."""

        with self._lock:
            if self._handle is not None:
                return
            self._open_locked()

    def close(self) -> None:
        with self._lock:
            self._close_locked()

    def append(self, scalars: LogScalars, at: Optional[datetime] = None) -> str:
        """Append one record built from *scalars* and return it."""

        line = format_record(at or datetime.now(), scalars)
        with self._lock:
            if self._handle is None:
                raise HistoryLogError(f"history log {self._path} is not open")
            try:
                self._handle.write(line + '\n')
                self._flush_locked()
            except OSError as exc:
                raise HistoryLogError(f"unable to append to {self._path}: {exc}") from exc
            self._appended += 1
        return line

    def rotate(self, day: date) -> Optional[Path]:
        """Archive the active log under *day* and start a fresh one.

        Returns the archive path, or ``None`` when there was no active file to
        archive. The active log is reopened even when archiving fails.
        """

        with self._lock:
            self._close_locked()
            try:
                return self._archive_locked(day)
            finally:
                self._open_locked()

    def first_record_date(self) -> Optional[date]:
        """Date of the first data record in the active file, if any."""

        with self._lock:
            if not self._path.exists():
                return None
            with self._path.open('r', encoding='utf-8') as handle:
                for line in handle:
                    if not line.strip() or is_header(line):
                        continue
                    try:
                        return datetime.strptime(line[:19], TIMESTAMP_FORMAT).date()
                    except ValueError:
                        logger.warning("unparseable record in %s: %r", self._path, line.rstrip())
                        return None
        return None

    def _open_locked(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            needs_header = not self._path.exists() or self._path.stat().st_size == 0
            handle = self._path.open('a', encoding='utf-8')
        except OSError as exc:
            raise HistoryLogError(f"unable to open history log {self._path}: {exc}") from exc
        self._handle = handle
        if needs_header:
            try:
                handle.write(LOG_HEADER + '\n')
                self._flush_locked()
            except OSError as exc:
                raise HistoryLogError(f"unable to write header to {self._path}: {exc}") from exc
            logger.info("started history log %s", self._path)

    def _close_locked(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.close()
        finally:
            self._handle = None

    def _flush_locked(self) -> None:
        assert self._handle is not None
        self._handle.flush()
        os.fsync(self._handle.fileno())

    def _archive_locked(self, day: date) -> Optional[Path]:
        if not self._path.exists():
            logger.warning("no active history log at %s to archive", self._path)
            return None
        target = self.archive_path(day)
        try:
            if target.exists():
                self._merge_into(target)
                self._path.unlink()
                logger.info("merged %s into existing archive %s", self._path.name, target)
            else:
                os.replace(self._path, target)
                logger.info("archived %s as %s", self._path.name, target)
        except OSError as exc:
            raise HistoryLogError(f"unable to archive {self._path} as {target}: {exc}") from exc
        return target

    def _merge_into(self, target: Path) -> None:
        with self._path.open('r', encoding='utf-8') as source, target.open('a', encoding='utf-8') as sink:
            for line in source:
                if line.strip() and not is_header(line):
                    sink.write(line if line.endswith('\n') else line + '\n')
