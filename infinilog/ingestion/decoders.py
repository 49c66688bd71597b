"""Decoders turning snooped response frames into snapshot updates.

Decoders run on the transport's delivery thread. They only read the frame,
merge into one store slot and return; no file or network I/O happens here.
"""
from __future__ import annotations

import logging
import struct
from dataclasses import replace
from typing import Any, Callable, Dict, Optional

from ..constants import (
    AIR_HANDLER_RANGE,
    HEAT_PUMP_RANGE,
    KEY_AIR_HANDLER,
    KEY_HEAT_PUMP,
    SIG_AIR_HANDLER_AIRFLOW,
    SIG_AIR_HANDLER_BLOWER,
    SIG_HEAT_PUMP_STAGE,
    SIG_HEAT_PUMP_TEMPS,
)
from ..hardware.device import DeviceInterface, InfinityFrame
from ..state.snapshots import AirHandlerSnapshot, HeatPumpSnapshot
from ..state.store import SnapshotStore

logger = logging.getLogger(__name__)

_U16 = struct.Struct('>H')

Merge = Callable[[Any, bytes], Any]


class _SnoopDecoder:
    """Dispatch on the three-byte table signature and merge into one key."""

    key: str = ''
    snapshot_type: type = object

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store
        self._handlers: Dict[bytes, Merge] = {}
        self.decoded = 0
        self.ignored = 0

    def __call__(self, frame: InfinityFrame) -> None:
        data = frame.data
        merge = self._handlers.get(bytes(data[0:3]))
        if merge is None:
            self.ignored += 1
            return
        current = self._store.get_typed(self.key, self.snapshot_type) or self.snapshot_type()
        try:
            updated = merge(current, bytes(data[3:]))
        except (struct.error, IndexError):
            self.ignored += 1
            logger.debug("short %s frame ignored: %s", self.key, bytes(data).hex())
            return
        self._store.update(self.key, updated)
        self.decoded += 1


class HeatPumpDecoder(_SnoopDecoder):
    key = KEY_HEAT_PUMP
    snapshot_type = HeatPumpSnapshot

    def __init__(self, store: SnapshotStore) -> None:
        super().__init__(store)
        self._handlers = {
            SIG_HEAT_PUMP_TEMPS: self._merge_temperatures,
            SIG_HEAT_PUMP_STAGE: self._merge_stage,
        }

    @staticmethod
    def _merge_temperatures(current: HeatPumpSnapshot, payload: bytes) -> HeatPumpSnapshot:
        outside = _U16.unpack_from(payload, 0)[0] / 16
        coil = _U16.unpack_from(payload, 2)[0] / 16
        logger.debug("heat pump coil %.2f outside %.2f", coil, outside)
        return replace(current, coil_temp=coil, outside_temp=outside)

    @staticmethod
    def _merge_stage(current: HeatPumpSnapshot, payload: bytes) -> HeatPumpSnapshot:
        return replace(current, stage=payload[0] >> 1)


class AirHandlerDecoder(_SnoopDecoder):
    key = KEY_AIR_HANDLER
    snapshot_type = AirHandlerSnapshot

    def __init__(self, store: SnapshotStore) -> None:
        super().__init__(store)
        self._handlers = {
            SIG_AIR_HANDLER_BLOWER: self._merge_blower,
            SIG_AIR_HANDLER_AIRFLOW: self._merge_airflow,
        }

    @staticmethod
    def _merge_blower(current: AirHandlerSnapshot, payload: bytes) -> AirHandlerSnapshot:
        return replace(current, blower_rpm=_U16.unpack_from(payload, 1)[0])

    @staticmethod
    def _merge_airflow(current: AirHandlerSnapshot, payload: bytes) -> AirHandlerSnapshot:
        cfm = _U16.unpack_from(payload, 4)[0]
        return replace(current, airflow_cfm=cfm, elec_heat=(payload[0] & 0x03) != 0)


def attach_decoders(
    device: DeviceInterface,
    store: SnapshotStore,
    *,
    heat_pump: Optional[HeatPumpDecoder] = None,
    air_handler: Optional[AirHandlerDecoder] = None,
) -> tuple[HeatPumpDecoder, AirHandlerDecoder]:
    """Register both decoders with *device* and return them."""

    heat_pump = heat_pump or HeatPumpDecoder(store)
    air_handler = air_handler or AirHandlerDecoder(store)
    device.snoop_response(HEAT_PUMP_RANGE[0], HEAT_PUMP_RANGE[1], heat_pump)
    device.snoop_response(AIR_HANDLER_RANGE[0], AIR_HANDLER_RANGE[1], air_handler)
    return heat_pump, air_handler
