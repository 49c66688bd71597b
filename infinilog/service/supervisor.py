"""Service supervisor wiring the device, store, poller, scheduler and watchdog."""
from __future__ import annotations

import logging
import threading
from contextlib import ExitStack
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..acquisition.poller import StatePoller
from ..config import AppConfig
from ..hardware.device import DeviceError, DeviceInterface, create_interface
from ..ingestion.decoders import AirHandlerDecoder, HeatPumpDecoder, attach_decoders
from ..state.store import SnapshotStore
from ..storage.history_log import HistoryLog
from .jobs import PipelineJobs
from .scheduler import SchedulerEngine
from .watchdog import SnapshotWatchdog, WatchdogEvent

logger = logging.getLogger(__name__)


class TelemetryService:
    """Own every long-lived worker of the logger and start/stop them together."""

    def __init__(
        self,
        config: AppConfig,
        device: Optional[DeviceInterface] = None,
        *,
        store: Optional[SnapshotStore] = None,
        clock: Callable[[], datetime] = datetime.now,
        on_watchdog_event: Optional[Callable[[WatchdogEvent], None]] = None,
    ) -> None:
        self.config = config
        self.device = device or create_interface(config.device)
        self.store = store or SnapshotStore.seeded(clock=clock)
        self.history = HistoryLog(config.storage.active_log_path)
        self.jobs = PipelineJobs(config, self.store, self.history, clock=clock)
        self.scheduler = SchedulerEngine(clock=clock)
        self.poller = StatePoller(self.device, self.store, interval_s=config.poller.interval_s)
        self.watchdog: Optional[SnapshotWatchdog] = None
        if config.monitoring.stale_after_s > 0:
            self.watchdog = SnapshotWatchdog(
                self.store,
                timeout_s=config.monitoring.stale_after_s,
                poll_interval_s=config.monitoring.watchdog_poll_s,
                on_event=on_watchdog_event or self.default_watchdog_handler,
                clock=clock,
            )
        # Handlers go in before open so no frame is delivered unobserved.
        self.decoders: tuple[HeatPumpDecoder, AirHandlerDecoder] = attach_decoders(self.device, self.store)
        self.jobs.register(self.scheduler)
        self._stop_requested = threading.Event()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def prepare(self) -> None:
        """Open the device and the active log; both failures abort startup."""

        storage = self.config.storage
        if storage.ensure_directories:
            storage.data_dir.mkdir(parents=True, exist_ok=True)
            storage.log_dir.mkdir(parents=True, exist_ok=True)

        try:
            self.device.open()
        except OSError as exc:
            raise DeviceError(f"unable to open HVAC transport: {exc}") from exc

        try:
            self.history.open()
        except Exception:
            self.device.close()
            raise

        try:
            self.jobs.recover_stale_log()
        except Exception:  # pylint: disable=broad-except
            logger.exception("unable to rotate stale active log at startup")

    def start(self) -> None:
        if self._started:
            return
        self.prepare()
        self.poller.start()
        self.scheduler.start()
        if self.watchdog is not None:
            self.watchdog.start()
        self._started = True
        logger.info(
            "telemetry service started (data_dir=%s, jobs=%s)",
            self.config.storage.data_dir,
            ', '.join(self.scheduler.job_names),
        )

    def stop(self) -> None:
        if not self._started:
            return
        if self.watchdog is not None:
            self.watchdog.stop()
        self.scheduler.stop()
        self.poller.stop()
        self.history.close()
        self.device.close()
        self._started = False
        logger.info("telemetry service stopped after %d appended records", self.history.appended)

    def request_stop(self) -> None:
        self._stop_requested.set()

    def run(self) -> None:
        """Start every worker and block until :meth:`request_stop` is called."""

        self._stop_requested.clear()
        with ExitStack() as stack:
            self.start()
            stack.callback(self.stop)
            self._stop_requested.wait()

    def status(self) -> Dict[str, Any]:
        heat_pump, air_handler = self.decoders
        return {
            'started': self._started,
            'poller': {'cycles': self.poller.cycles, 'failures': self.poller.failures},
            'decoders': {
                'heat_pump': {'decoded': heat_pump.decoded, 'ignored': heat_pump.ignored},
                'air_handler': {'decoded': air_handler.decoded, 'ignored': air_handler.ignored},
            },
            'history': {'path': str(self.history.path), 'appended': self.history.appended},
            'jobs': self.scheduler.status(),
            'watchdog_alert': self.watchdog.alert_active if self.watchdog else None,
        }

    @staticmethod
    def default_watchdog_handler(event: WatchdogEvent) -> None:
        """Log the watchdog event at a level matching its kind."""

        payload = f" payload={event.payload}" if event.payload else ""
        level = logging.WARNING if event.kind == 'timeout' else logging.INFO
        logger.log(level, "[watchdog] %s %s: %s%s", event.occurred_at.isoformat(), event.kind, event.message, payload)
