"""State/store layer.

The store is the single source of truth shared by the event decoders, the
thermostat poller, the scheduled jobs and any request-serving layer.
"""
from __future__ import annotations

from .snapshots import (
    AirHandlerSnapshot,
    FanMode,
    HeatPumpSnapshot,
    HvacMode,
    LogScalars,
    ThermostatSnapshot,
    raw_fan_mode_to_mode,
    raw_mode_to_mode,
)
from .store import SnapshotStore, StoreEntry

__all__ = [
    "AirHandlerSnapshot",
    "FanMode",
    "HeatPumpSnapshot",
    "HvacMode",
    "LogScalars",
    "SnapshotStore",
    "StoreEntry",
    "ThermostatSnapshot",
    "raw_fan_mode_to_mode",
    "raw_mode_to_mode",
]
