"""Thread-safe keyed cache holding the latest snapshot per telemetry domain.

Snapshots are immutable values, so a slot is replaced in a single assignment
under the lock and readers can only ever see a value produced by one complete
``update`` call.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from ..constants import KEY_AIR_HANDLER, KEY_HEAT_PUMP, KEY_TSTAT
from .snapshots import AirHandlerSnapshot, HeatPumpSnapshot, ThermostatSnapshot

T = TypeVar('T')


@dataclass(frozen=True, slots=True)
class StoreEntry:
    value: Any
    updated_at: Optional[datetime] = None


class SnapshotStore:
    """In-memory store mapping domain keys to their most recent snapshot."""

    def __init__(self, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, StoreEntry] = {}

    @classmethod
    def seeded(cls, **kwargs: Any) -> "SnapshotStore":
        """Return a store with zero-value placeholders for every domain."""

        store = cls(**kwargs)
        with store._lock:
            store._entries[KEY_TSTAT] = StoreEntry(ThermostatSnapshot())
            store._entries[KEY_AIR_HANDLER] = StoreEntry(AirHandlerSnapshot())
            store._entries[KEY_HEAT_PUMP] = StoreEntry(HeatPumpSnapshot())
        return store

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def get_typed(self, key: str, cls: Type[T]) -> Optional[T]:
        """Return the slot for *key* only when it holds a *cls* instance."""

        value = self.get(key)
        return value if isinstance(value, cls) else None

    def update(self, key: str, value: Any) -> None:
        entry = StoreEntry(value, self._clock())
        with self._lock:
            self._entries[key] = entry

    def updated_at(self, key: str) -> Optional[datetime]:
        """Time of the last ``update`` for *key*; ``None`` while only seeded."""

        with self._lock:
            entry = self._entries.get(key)
        return entry.updated_at if entry is not None else None

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {key: entry.value for key, entry in self._entries.items()}
