from __future__ import annotations

import threading
import time
from datetime import datetime
from pathlib import Path

import pytest

from infinilog.config import AppConfig
from infinilog.constants import AIR_HANDLER_RANGE, KEY_AIR_HANDLER, KEY_TSTAT, LOG_HEADER
from infinilog.hardware import DeviceError, InfinityFrame, SimulatedInterface
from infinilog.service import TelemetryService, WatchdogEvent
from infinilog.storage import HistoryLogError


def _wait_for(predicate, timeout=1.0, interval=0.01):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return False


def _config(tmp_path: Path, **monitoring) -> AppConfig:
    return AppConfig.from_dict({
        'poller': {'interval_s': 0.01},
        'storage': {'data_dir': str(tmp_path / 'data'), 'log_dir': str(tmp_path / 'logs')},
        'monitoring': {'stale_after_s': 0, **monitoring},
    })


class _FailingDevice(SimulatedInterface):
    def open(self) -> None:
        raise DeviceError('no transport')


class _RecordingDevice(SimulatedInterface):
    def __init__(self) -> None:
        super().__init__(seed=5)
        self.closed = False

    def close(self) -> None:
        self.closed = True
        super().close()


def test_service_start_polls_decodes_and_appends(tmp_path: Path) -> None:
    service = TelemetryService(_config(tmp_path), SimulatedInterface(seed=2))

    service.start()
    try:
        assert _wait_for(lambda: service.store.updated_at(KEY_TSTAT) is not None, timeout=2.0)
        assert _wait_for(lambda: service.store.updated_at(KEY_AIR_HANDLER) is not None, timeout=2.0)
        assert service.scheduler.job_names == ['append', 'rotation', 'retention', 'log_purge']
        assert service.scheduler.run_job('append') is True
        status = service.status()
    finally:
        service.stop()

    assert not service.started
    assert status['started'] is True
    assert status['poller']['cycles'] >= 1
    assert status['decoders']['air_handler']['decoded'] >= 1
    lines = (tmp_path / 'data' / 'Infinilog.csv').read_text(encoding='utf-8').splitlines()
    assert lines[0] == LOG_HEADER
    assert lines[1].endswith(',heatpump')
    assert (tmp_path / 'logs').is_dir()


def test_device_open_failure_is_fatal(tmp_path: Path) -> None:
    service = TelemetryService(_config(tmp_path), _FailingDevice())

    with pytest.raises(DeviceError):
        service.start()

    assert not service.started
    assert not service.history.is_open
    assert not service.poller.running


def test_history_open_failure_closes_device(tmp_path: Path) -> None:
    config = _config(tmp_path)
    config.storage.data_dir.mkdir(parents=True)
    config.storage.active_log_path.mkdir()
    device = _RecordingDevice()
    service = TelemetryService(config, device)

    with pytest.raises(HistoryLogError):
        service.start()

    assert device.closed
    assert not service.started


def test_startup_rotates_active_log_from_previous_day(tmp_path: Path) -> None:
    config = _config(tmp_path)
    config.storage.data_dir.mkdir(parents=True)
    config.storage.active_log_path.write_text(
        LOG_HEADER + '\n' + '2024-01-04T22:00:00,0004.9167,0068,0076,0045,0071,0600,heat\n',
        encoding='utf-8',
    )
    service = TelemetryService(config, SimulatedInterface(), clock=lambda: datetime(2024, 1, 5, 9, 0, 0))

    service.prepare()
    try:
        assert (config.storage.data_dir / '2024-01-04_Infinilog.csv').exists()
        assert (config.storage.data_dir / '2024-01-04_Temperature.html').exists()
        assert config.storage.active_log_path.read_text(encoding='utf-8').splitlines() == [LOG_HEADER]
    finally:
        service.history.close()
        service.device.close()


def test_run_blocks_until_stop_requested(tmp_path: Path) -> None:
    events: list[WatchdogEvent] = []
    service = TelemetryService(
        _config(tmp_path, stale_after_s=30, watchdog_poll_s=0.05),
        SimulatedInterface(),
        on_watchdog_event=events.append,
    )
    runner = threading.Thread(target=service.run)

    runner.start()
    assert _wait_for(lambda: service.started, timeout=2.0)
    service.request_stop()
    runner.join(timeout=5.0)

    assert not runner.is_alive()
    assert not service.started
    assert service.watchdog is not None
    assert events == []


def test_service_restarts_after_stop(tmp_path: Path) -> None:
    device = SimulatedInterface(seed=7)
    service = TelemetryService(_config(tmp_path), device)

    service.start()
    service.stop()
    service.start()
    try:
        assert service.started
        assert service.scheduler.job_names == ['append', 'rotation', 'retention', 'log_purge']
        assert service.scheduler.run_job('append') is True
    finally:
        service.stop()

    assert device.deliver(InfinityFrame(src=AIR_HANDLER_RANGE[0], dst=0x2001, data=bytes(3))) == 1
    lines = (tmp_path / 'data' / 'Infinilog.csv').read_text(encoding='utf-8').splitlines()
    assert lines.count(LOG_HEADER) == 1
