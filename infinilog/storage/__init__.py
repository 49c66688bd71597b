"""Durable storage: active history log, archives and retention."""
from __future__ import annotations

from .archive import DailySeries, fan_bucket, forward_fill, load_daily_series
from .history_log import HistoryLog, HistoryLogError, format_record, fractional_day
from .retention import PurgeResult, purge_expired, purge_logs

__all__ = [
    "DailySeries",
    "HistoryLog",
    "HistoryLogError",
    "PurgeResult",
    "fan_bucket",
    "format_record",
    "forward_fill",
    "fractional_day",
    "load_daily_series",
    "purge_expired",
    "purge_logs",
]
