"""Watchdog utilities for spotting a stale snapshot."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from ..constants import KEY_TSTAT
from ..state.store import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WatchdogEvent:
    """Represents a lifecycle event emitted by a watchdog."""

    kind: str
    message: str
    occurred_at: datetime
    payload: Optional[dict[str, Any]] = None


class SnapshotWatchdog:
    """Warn when a store slot has not been refreshed within *timeout_s*.

    The poller never reports its own failures, so this is where a silent
    device shows up.
    """

    def __init__(
        self,
        store: SnapshotStore,
        key: str = KEY_TSTAT,
        timeout_s: float = 30.0,
        poll_interval_s: float = 5.0,
        on_event: Optional[Callable[[WatchdogEvent], None]] = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError('timeout_s must be positive')
        if poll_interval_s <= 0:
            raise ValueError('poll_interval_s must be positive')
        self._store = store
        self._key = key
        self._timeout_s = timeout_s
        self._poll_interval_s = poll_interval_s
        self._on_event = on_event
        self._clock = clock
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._alert_active = False
        self._started_at = clock()

    @property
    def alert_active(self) -> bool:
        return self._alert_active

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._started_at = self._clock()
        self._thread = threading.Thread(target=self._run, name=f"{self._key}-watchdog", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)

    def check(self) -> Optional[WatchdogEvent]:
        """Evaluate staleness once; returns the emitted event, if any."""

        updated_at = self._store.updated_at(self._key)
        now = self._clock()
        elapsed = (now - (updated_at or self._started_at)).total_seconds()
        payload = {
            'key': self._key,
            'elapsed_s': elapsed,
            'updated_at': updated_at.isoformat() if updated_at else None,
        }
        if elapsed >= self._timeout_s:
            if self._alert_active:
                return None
            self._alert_active = True
            return self._emit('timeout', f"No {self._key} update within watchdog timeout", payload)
        if self._alert_active:
            self._alert_active = False
            return self._emit('recovery', f"{self._key} updates resumed", payload)
        return None

    def _emit(self, kind: str, message: str, payload: Optional[dict[str, Any]] = None) -> WatchdogEvent:
        event = WatchdogEvent(kind=kind, message=message, occurred_at=self._clock(), payload=payload)
        if self._on_event:
            try:
                self._on_event(event)
            except Exception:  # pylint: disable=broad-except
                logger.exception("watchdog event handler failed")
        return event

    def _run(self) -> None:
        while not self._stop.wait(self._poll_interval_s):
            self.check()
