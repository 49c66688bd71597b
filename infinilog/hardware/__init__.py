"""Hardware abstraction helpers."""
from __future__ import annotations

from .device import (
    DeviceError,
    DeviceInterface,
    FrameHandler,
    InfinityFrame,
    SimulatedInterface,
    TStatCurrentParams,
    TStatSettings,
    TStatZoneParams,
    create_interface,
)

__all__ = [
    "DeviceError",
    "DeviceInterface",
    "FrameHandler",
    "InfinityFrame",
    "SimulatedInterface",
    "TStatCurrentParams",
    "TStatSettings",
    "TStatZoneParams",
    "create_interface",
]
