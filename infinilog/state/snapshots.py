"""Typed snapshots of the three telemetry domains."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

from ..constants import KEY_AIR_HANDLER, KEY_TSTAT

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .store import SnapshotStore


class HvacMode(str, Enum):
    HEAT = 'heat'
    COOL = 'cool'
    AUTO = 'auto'
    ELECTRIC = 'electric'
    HEATPUMP = 'heatpump'
    OFF = 'off'
    UNKNOWN = 'unknown'


class FanMode(str, Enum):
    AUTO = 'auto'
    LOW = 'low'
    MED = 'med'
    HIGH = 'high'
    UNKNOWN = 'unknown'


_RAW_MODES = {
    0: HvacMode.HEAT,
    1: HvacMode.COOL,
    2: HvacMode.AUTO,
    3: HvacMode.ELECTRIC,
    4: HvacMode.HEATPUMP,
    5: HvacMode.OFF,
}

_RAW_FAN_MODES = {
    0: FanMode.AUTO,
    1: FanMode.LOW,
    2: FanMode.MED,
    3: FanMode.HIGH,
}


def raw_mode_to_mode(raw: int) -> HvacMode:
    """Map the low nibble of the thermostat mode byte to an :class:`HvacMode`."""

    return _RAW_MODES.get(raw & 0x0F, HvacMode.UNKNOWN)


def raw_fan_mode_to_mode(raw: int) -> FanMode:
    return _RAW_FAN_MODES.get(raw, FanMode.UNKNOWN)


@dataclass(frozen=True, slots=True)
class ThermostatSnapshot:
    current_temp: int = 0
    current_humidity: int = 0
    outdoor_temp: int = 0
    mode: HvacMode = HvacMode.UNKNOWN
    stage: int = 0
    fan_mode: FanMode = FanMode.UNKNOWN
    hold: Optional[bool] = None
    heat_setpoint: int = 0
    cool_setpoint: int = 0
    raw_mode: int = 0


@dataclass(frozen=True, slots=True)
class AirHandlerSnapshot:
    blower_rpm: int = 0
    airflow_cfm: int = 0
    elec_heat: bool = False


@dataclass(frozen=True, slots=True)
class HeatPumpSnapshot:
    coil_temp: float = 0.0
    outside_temp: float = 0.0
    stage: int = 0


@dataclass(frozen=True, slots=True)
class LogScalars:
    """Flat values written into one history log record."""

    current_temp: int = 0
    outdoor_temp: int = 0
    heat_setpoint: int = 0
    cool_setpoint: int = 0
    blower_rpm: int = 0
    mode: str = HvacMode.UNKNOWN.value

    @classmethod
    def from_store(cls, store: "SnapshotStore") -> "LogScalars":
        """Project the current thermostat and air handler snapshots."""

        tstat = store.get_typed(KEY_TSTAT, ThermostatSnapshot) or ThermostatSnapshot()
        blower = store.get_typed(KEY_AIR_HANDLER, AirHandlerSnapshot) or AirHandlerSnapshot()
        return cls(
            current_temp=tstat.current_temp,
            outdoor_temp=tstat.outdoor_temp,
            heat_setpoint=tstat.heat_setpoint,
            cool_setpoint=tstat.cool_setpoint,
            blower_rpm=blower.blower_rpm,
            mode=tstat.mode.value,
        )
