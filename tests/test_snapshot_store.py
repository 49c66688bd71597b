from __future__ import annotations

import threading
from datetime import datetime

from infinilog.constants import KEY_AIR_HANDLER, KEY_HEAT_PUMP, KEY_TSTAT
from infinilog.state import (
    AirHandlerSnapshot,
    HeatPumpSnapshot,
    HvacMode,
    LogScalars,
    SnapshotStore,
    ThermostatSnapshot,
)


def test_seeded_store_holds_zero_placeholders() -> None:
    store = SnapshotStore.seeded()

    assert store.keys() == sorted([KEY_TSTAT, KEY_AIR_HANDLER, KEY_HEAT_PUMP])
    assert store.get(KEY_TSTAT) == ThermostatSnapshot()
    assert store.get(KEY_AIR_HANDLER) == AirHandlerSnapshot()
    assert store.get(KEY_HEAT_PUMP) == HeatPumpSnapshot()
    assert store.updated_at(KEY_TSTAT) is None


def test_update_replaces_value_and_stamps_clock() -> None:
    stamp = datetime(2024, 3, 1, 12, 0, 0)
    store = SnapshotStore.seeded(clock=lambda: stamp)
    snapshot = ThermostatSnapshot(current_temp=71, heat_setpoint=68, cool_setpoint=76)

    store.update(KEY_TSTAT, snapshot)

    assert store.get(KEY_TSTAT) is snapshot
    assert store.updated_at(KEY_TSTAT) == stamp


def test_missing_key_reads_as_none() -> None:
    store = SnapshotStore()

    assert store.get('nope') is None
    assert store.updated_at('nope') is None
    assert store.get_typed('nope', ThermostatSnapshot) is None


def test_get_typed_rejects_foreign_values() -> None:
    store = SnapshotStore.seeded()
    store.update(KEY_TSTAT, {'current_temp': 70})

    assert store.get_typed(KEY_TSTAT, ThermostatSnapshot) is None
    assert store.get_typed(KEY_AIR_HANDLER, AirHandlerSnapshot) == AirHandlerSnapshot()


def test_snapshot_returns_copy_of_mapping() -> None:
    store = SnapshotStore.seeded()
    view = store.snapshot()
    view[KEY_TSTAT] = None

    assert store.get(KEY_TSTAT) == ThermostatSnapshot()


def test_concurrent_writers_never_expose_torn_values() -> None:
    store = SnapshotStore.seeded()
    stop = threading.Event()
    seen_bad = []

    def writer(offset: int) -> None:
        value = 0
        while not stop.is_set():
            value += 1
            temp = offset + value % 50
            store.update(KEY_TSTAT, ThermostatSnapshot(current_temp=temp, heat_setpoint=temp, cool_setpoint=temp))

    def reader() -> None:
        for _ in range(5000):
            snapshot = store.get(KEY_TSTAT)
            if not snapshot.current_temp == snapshot.heat_setpoint == snapshot.cool_setpoint:
                seen_bad.append(snapshot)

    writers = [threading.Thread(target=writer, args=(offset,)) for offset in (0, 100)]
    for thread in writers:
        thread.start()
    readers = [threading.Thread(target=reader) for _ in range(3)]
    for thread in readers:
        thread.start()
    for thread in readers:
        thread.join()
    stop.set()
    for thread in writers:
        thread.join()

    assert seen_bad == []


def test_log_scalars_project_thermostat_and_blower() -> None:
    store = SnapshotStore.seeded()
    store.update(
        KEY_TSTAT,
        ThermostatSnapshot(current_temp=71, outdoor_temp=45, mode=HvacMode.HEAT, heat_setpoint=68, cool_setpoint=76),
    )
    store.update(KEY_AIR_HANDLER, AirHandlerSnapshot(blower_rpm=600))

    scalars = LogScalars.from_store(store)

    assert scalars == LogScalars(
        current_temp=71, outdoor_temp=45, heat_setpoint=68, cool_setpoint=76, blower_rpm=600, mode='heat'
    )


def test_log_scalars_from_unseeded_store_are_zero() -> None:
    scalars = LogScalars.from_store(SnapshotStore())

    assert scalars == LogScalars()
    assert scalars.mode == 'unknown'
