"""Configuration management for the Infinilog telemetry logger."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from croniter import croniter

from .constants import (
    DEFAULT_ACTIVE_LOG_NAME,
    DEFAULT_CHART_SUFFIX,
    DEFAULT_DIAGNOSTIC_LOG_NAME,
    DEFAULT_INDEX_NAME,
)

SUPPORTED_TRANSPORTS = {'sim', 'factory'}

# Six-field cron expressions: minute hour day month weekday second.
DEFAULT_APPEND_CADENCE = '*/4 * * * * 0'
DEFAULT_ROTATION_CADENCE = '59 23 * * * 2'
DEFAULT_RETENTION_CADENCE = '5 0 * * * 3'
DEFAULT_LOG_PURGE_CADENCE = '0 0 1,15 * * 4'


def _coerce_path(value: Any) -> Path:
    if isinstance(value, Path):
        return value
    return Path(str(value)).expanduser()


@dataclass(slots=True)
class DeviceConfig:
    """How to reach the HVAC bus transport."""

    transport: str = 'sim'
    factory: Optional[str] = None
    port: Optional[str] = None

    def __post_init__(self) -> None:
        self.transport = (self.transport or 'sim').strip().lower()
        if self.transport not in SUPPORTED_TRANSPORTS:
            allowed = ', '.join(sorted(SUPPORTED_TRANSPORTS))
            raise ValueError(f"transport must be one of {allowed}")
        if self.transport == 'factory' and not self.factory:
            raise ValueError("transport 'factory' requires a 'factory' dotted path")


@dataclass(slots=True)
class PollerConfig:
    """Cadence of the synchronous thermostat poller."""

    interval_s: float = 1.0

    def __post_init__(self) -> None:
        try:
            interval = float(self.interval_s)
        except (TypeError, ValueError):
            interval = 1.0
        self.interval_s = interval if interval > 0 else 1.0


@dataclass(slots=True)
class StorageConfig:
    """Locations of the active log, archives and rendered artefacts."""

    data_dir: Path = Path('/var/lib/infinilog')
    active_log_name: str = DEFAULT_ACTIVE_LOG_NAME
    chart_suffix: str = DEFAULT_CHART_SUFFIX
    index_name: str = DEFAULT_INDEX_NAME
    log_dir: Path = Path('/var/log/infinilog')
    ensure_directories: bool = True

    def __post_init__(self) -> None:
        self.data_dir = _coerce_path(self.data_dir)
        self.log_dir = _coerce_path(self.log_dir)
        if not self.active_log_name or '/' in self.active_log_name:
            raise ValueError('active_log_name must be a plain file name')
        if not self.chart_suffix:
            self.chart_suffix = DEFAULT_CHART_SUFFIX
        if not self.index_name:
            self.index_name = DEFAULT_INDEX_NAME

    @property
    def active_log_path(self) -> Path:
        return self.data_dir / self.active_log_name

    @property
    def index_path(self) -> Path:
        return self.data_dir / self.index_name


@dataclass(slots=True)
class RetentionConfig:
    """Age limits for archived artefacts."""

    retention_days: int = 14
    purge_logs: bool = True

    def __post_init__(self) -> None:
        try:
            days = int(self.retention_days)
        except (TypeError, ValueError):
            days = 14
        self.retention_days = max(days, 1)


@dataclass(slots=True)
class ScheduleConfig:
    """Cron cadences of the four scheduled jobs."""

    append: str = DEFAULT_APPEND_CADENCE
    rotation: str = DEFAULT_ROTATION_CADENCE
    retention: str = DEFAULT_RETENTION_CADENCE
    log_purge: str = DEFAULT_LOG_PURGE_CADENCE

    def __post_init__(self) -> None:
        for name in ('append', 'rotation', 'retention', 'log_purge'):
            expression = str(getattr(self, name) or '').strip()
            if not croniter.is_valid(expression):
                raise ValueError(f"schedule.{name} is not a valid cron expression: {expression!r}")
            setattr(self, name, expression)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'append': self.append,
            'rotation': self.rotation,
            'retention': self.retention,
            'log_purge': self.log_purge,
        }


@dataclass(slots=True)
class MonitoringConfig:
    """Staleness watchdog and diagnostic logging settings."""

    stale_after_s: float = 30.0
    watchdog_poll_s: float = 5.0
    log_level: str = 'INFO'
    log_file: Optional[str] = DEFAULT_DIAGNOSTIC_LOG_NAME

    def __post_init__(self) -> None:
        self.log_level = (self.log_level or 'INFO').upper()
        if self.stale_after_s < 0:
            self.stale_after_s = 0.0
        if self.watchdog_poll_s <= 0:
            self.watchdog_poll_s = 5.0


@dataclass(slots=True)
class ServerConfig:
    """Listen address handed to the request-serving layer."""

    host: str = '0.0.0.0'
    port: int = 8080


@dataclass(slots=True)
class AppConfig:
    """Top-level application configuration bundle."""

    device: DeviceConfig = field(default_factory=DeviceConfig)
    poller: PollerConfig = field(default_factory=PollerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AppConfig":
        """Create a configuration instance from a nested dictionary."""

        def _section(name: str, factory: Any) -> Any:
            data = payload.get(name, {}) if payload else {}
            if data is None:
                data = {}
            if isinstance(data, dict):
                return factory(**data)
            raise TypeError(f"Expected mapping for section '{name}', got {type(data).__name__}")

        return cls(
            device=_section('device', DeviceConfig),
            poller=_section('poller', PollerConfig),
            storage=_section('storage', StorageConfig),
            retention=_section('retention', RetentionConfig),
            schedule=_section('schedule', ScheduleConfig),
            monitoring=_section('monitoring', MonitoringConfig),
            server=_section('server', ServerConfig),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return a serialisable representation of the configuration."""

        def _asdict(obj: Any) -> Dict[str, Any]:
            return {field: getattr(obj, field) for field in obj.__dataclass_fields__}  # type: ignore[attr-defined]

        storage_payload = _asdict(self.storage)
        storage_payload['data_dir'] = str(self.storage.data_dir)
        storage_payload['log_dir'] = str(self.storage.log_dir)

        return {
            'device': _asdict(self.device),
            'poller': _asdict(self.poller),
            'storage': storage_payload,
            'retention': _asdict(self.retention),
            'schedule': self.schedule.to_dict(),
            'monitoring': _asdict(self.monitoring),
            'server': _asdict(self.server),
        }


def load_config(path: Optional[Path]) -> AppConfig:
    """Load configuration from *path* if provided, otherwise return defaults."""

    if path is None:
        return AppConfig()
    resolved = path.expanduser()
    if not resolved.exists():
        return AppConfig()
    payload: Dict[str, Any]
    suffix = resolved.suffix.lower()
    if suffix in {'.json', '.jsn'}:
        payload = _load_json(resolved)
    elif suffix in {'.toml', '.tml'}:
        payload = _load_toml(resolved)
    elif suffix in {'.yaml', '.yml'}:
        payload = _load_yaml(resolved)
    else:
        raise ValueError(f"Unsupported configuration format: {resolved.suffix}")
    return AppConfig.from_dict(payload)


def _load_json(path: Path) -> Dict[str, Any]:
    import json

    with path.open('r', encoding='utf-8') as handle:
        return json.load(handle)


def _load_toml(path: Path) -> Dict[str, Any]:
    import tomllib

    with path.open('rb') as handle:
        return tomllib.load(handle)


def _load_yaml(path: Path) -> Dict[str, Any]:
    import yaml

    with path.open('r', encoding='utf-8') as handle:
        return yaml.safe_load(handle) or {}
