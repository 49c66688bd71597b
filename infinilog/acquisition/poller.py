"""Periodic thermostat poller publishing into the snapshot store."""
from __future__ import annotations

import logging
import threading
from typing import Optional

from ..constants import DEV_TSTAT, KEY_TSTAT
from ..hardware.device import (
    DeviceError,
    DeviceInterface,
    TStatCurrentParams,
    TStatSettings,
    TStatZoneParams,
)
from ..state.snapshots import ThermostatSnapshot, raw_fan_mode_to_mode, raw_mode_to_mode
from ..state.store import SnapshotStore

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (DeviceError, OSError, TimeoutError)


def read_thermostat(device: DeviceInterface) -> Optional[ThermostatSnapshot]:
    """Read both thermostat tables and build a snapshot, or ``None`` on failure."""

    try:
        cfg = device.read_table(DEV_TSTAT, TStatZoneParams)
        if cfg is None:
            return None
        params = device.read_table(DEV_TSTAT, TStatCurrentParams)
        if params is None:
            return None
    except _TRANSIENT_ERRORS as exc:
        logger.debug("thermostat read failed: %s", exc)
        return None

    return ThermostatSnapshot(
        current_temp=params.z1_current_temp,
        current_humidity=params.z1_current_humidity,
        outdoor_temp=params.outdoor_air_temp,
        mode=raw_mode_to_mode(params.mode),
        stage=params.mode >> 5,
        fan_mode=raw_fan_mode_to_mode(cfg.z1_fan_mode),
        hold=cfg.zone_hold & 0x01 == 1,
        heat_setpoint=cfg.z1_heat_setpoint,
        cool_setpoint=cfg.z1_cool_setpoint,
        raw_mode=params.mode,
    )


def read_settings(device: DeviceInterface) -> Optional[TStatSettings]:
    """Read the thermostat settings table for the request-serving layer."""

    try:
        return device.read_table(DEV_TSTAT, TStatSettings)
    except _TRANSIENT_ERRORS as exc:
        logger.debug("thermostat settings read failed: %s", exc)
        return None


class StatePoller:
    """Sole producer of the thermostat snapshot.

    A failed read skips the cycle; the previous snapshot stays visible and
    the failure only shows up as staleness of the ``tstat`` slot.
    """

    def __init__(self, device: DeviceInterface, store: SnapshotStore, interval_s: float = 1.0) -> None:
        if interval_s <= 0:
            raise ValueError('interval_s must be positive')
        self._device = device
        self._store = store
        self._interval_s = interval_s
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self.cycles = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def poll_once(self) -> bool:
        self.cycles += 1
        snapshot = read_thermostat(self._device)
        if snapshot is None:
            self.failures += 1
            return False
        self._store.update(KEY_TSTAT, snapshot)
        return True

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name='state-poller', daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=max(self._interval_s * 2, 2.0))

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception:  # pylint: disable=broad-except
                self.failures += 1
                logger.exception("unexpected error while polling thermostat")
            self._stop.wait(self._interval_s)
