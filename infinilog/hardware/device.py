"""Device-facing types consumed by the core.

The bus transport itself (framing, checksums, table encoding) lives outside
this package. The core only needs something that satisfies
:class:`DeviceInterface`: it delivers decoded response frames to registered
handlers and answers synchronous table reads with populated table objects.
"""
from __future__ import annotations

import importlib
import random
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Type, TypeVar

from ..config import DeviceConfig
from ..constants import (
    AIR_HANDLER_RANGE,
    DEV_AIR_HANDLER,
    DEV_HEAT_PUMP,
    HEAT_PUMP_RANGE,
    SIG_AIR_HANDLER_AIRFLOW,
    SIG_AIR_HANDLER_BLOWER,
    SIG_HEAT_PUMP_STAGE,
    SIG_HEAT_PUMP_TEMPS,
)

T = TypeVar('T')


class DeviceError(RuntimeError):
    """Raised when the transport cannot be opened or a read fails hard."""


@dataclass(frozen=True, slots=True)
class InfinityFrame:
    """One response frame as delivered by the transport."""

    src: int
    dst: int
    data: bytes


FrameHandler = Callable[[InfinityFrame], None]


@dataclass(slots=True)
class TStatCurrentParams:
    """Thermostat current-parameters table."""

    z1_current_temp: int = 0
    z1_current_humidity: int = 0
    outdoor_air_temp: int = 0
    mode: int = 0


@dataclass(slots=True)
class TStatZoneParams:
    """Thermostat zone configuration table."""

    z1_fan_mode: int = 0
    zone_hold: int = 0
    z1_heat_setpoint: int = 0
    z1_cool_setpoint: int = 0


@dataclass(slots=True)
class TStatSettings:
    """Thermostat installer settings table."""

    backlight_setting: int = 0
    auto_mode: int = 0
    dead_band: int = 0
    cycles_per_hour: int = 0
    schedule_periods: int = 0
    programs_enabled: int = 0
    temp_units: int = 0
    dealer_name: str = ''
    dealer_phone: str = ''


class DeviceInterface(Protocol):
    """Contract the transport engine has to fulfil."""

    def open(self) -> None:  # pragma: no cover - protocol signature
        ...

    def close(self) -> None:  # pragma: no cover - protocol signature
        ...

    def read_table(self, device_id: int, table: Type[T]) -> Optional[T]:  # pragma: no cover - protocol signature
        ...

    def snoop_response(self, low: int, high: int, handler: FrameHandler) -> None:  # pragma: no cover - protocol signature
        ...


class SimulatedInterface:
    """In-memory simulation of an HVAC bus for bench runs and dry installs.

    Table reads return slowly drifting values. Every read also emits one air
    handler and one heat pump frame to the registered snoop handlers so the
    decoders see traffic.
    """

    def __init__(self, config: Optional[DeviceConfig] = None, *, seed: Optional[int] = None) -> None:
        self._config = config or DeviceConfig()
        self._random = random.Random(seed)
        self._lock = threading.Lock()
        self._snoops: list[tuple[int, int, FrameHandler]] = []
        self._opened = False
        self._reads = 0

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> None:
        self._opened = True

    def close(self) -> None:
        self._opened = False

    def snoop_response(self, low: int, high: int, handler: FrameHandler) -> None:
        with self._lock:
            self._snoops.append((low, high, handler))

    def read_table(self, device_id: int, table: Type[T]) -> Optional[T]:
        if not self._opened:
            raise DeviceError('simulated bus is not open')
        with self._lock:
            self._reads += 1
            tick = self._reads
        result: object
        if table is TStatCurrentParams:
            result = TStatCurrentParams(
                z1_current_temp=70 + (tick // 120) % 4,
                z1_current_humidity=40 + self._random.randint(0, 5),
                outdoor_air_temp=45 + (tick // 300) % 10,
                mode=(1 << 5) | 0x04,
            )
        elif table is TStatZoneParams:
            result = TStatZoneParams(z1_fan_mode=0, zone_hold=0, z1_heat_setpoint=68, z1_cool_setpoint=76)
        elif table is TStatSettings:
            result = TStatSettings(temp_units=0, dealer_name='Simulated', dealer_phone='555-0100')
        else:
            return None
        self._emit_traffic(tick)
        return result  # type: ignore[return-value]

    def deliver(self, frame: InfinityFrame) -> int:
        """Hand *frame* to every handler whose range covers its source."""

        with self._lock:
            targets = [handler for low, high, handler in self._snoops if low <= frame.src <= high]
        for handler in targets:
            handler(frame)
        return len(targets)

    def _emit_traffic(self, tick: int) -> None:
        rpm = 300 + 100 * (tick // 60 % 6)
        self.deliver(InfinityFrame(
            src=DEV_AIR_HANDLER,
            dst=AIR_HANDLER_RANGE[0],
            data=SIG_AIR_HANDLER_BLOWER + bytes((0x00,)) + rpm.to_bytes(2, 'big') + bytes(2),
        ))
        if tick % 10 == 0:
            self.deliver(InfinityFrame(
                src=DEV_AIR_HANDLER,
                dst=AIR_HANDLER_RANGE[0],
                data=SIG_AIR_HANDLER_AIRFLOW + bytes((0x00, 0x00, 0x00, 0x00)) + (rpm * 2).to_bytes(2, 'big') + bytes(2),
            ))
            outside = (45 * 16).to_bytes(2, 'big')
            coil = (38 * 16 + tick % 16).to_bytes(2, 'big')
            self.deliver(InfinityFrame(src=DEV_HEAT_PUMP, dst=HEAT_PUMP_RANGE[0], data=SIG_HEAT_PUMP_TEMPS + outside + coil))
            self.deliver(InfinityFrame(src=DEV_HEAT_PUMP, dst=HEAT_PUMP_RANGE[0], data=SIG_HEAT_PUMP_STAGE + bytes((0x02,))))


def create_interface(config: DeviceConfig) -> DeviceInterface:
    """Create an interface instance based on *config.transport*.

    ``factory`` transports name a ``module:callable`` that accepts the
    :class:`DeviceConfig` and returns a :class:`DeviceInterface`.
    """

    if config.transport == 'sim':
        return SimulatedInterface(config)
    if config.transport == 'factory':
        if not config.factory:
            raise ValueError("transport 'factory' requires a 'factory' dotted path")
        module_name, _, attr = config.factory.partition(':')
        if not attr:
            raise ValueError(f"factory must look like 'module:callable', got {config.factory!r}")
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
        return factory(config)
    raise ValueError(f"Unsupported transport '{config.transport}'")
