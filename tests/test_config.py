from __future__ import annotations

import json
from pathlib import Path

import pytest

from infinilog import AppConfig, load_config
from infinilog.config import DEFAULT_APPEND_CADENCE, DeviceConfig, ScheduleConfig


def test_defaults_match_pipeline_layout() -> None:
    config = AppConfig()

    assert config.storage.active_log_path == Path('/var/lib/infinilog/Infinilog.csv')
    assert config.storage.index_path == Path('/var/lib/infinilog/htmlLinks.html')
    assert config.retention.retention_days == 14
    assert config.schedule.append == DEFAULT_APPEND_CADENCE
    assert config.device.transport == 'sim'


def test_round_trip_through_dict(tmp_path: Path) -> None:
    payload = {
        'device': {'transport': 'factory', 'factory': 'vendor.bus:open_bus', 'port': '/dev/ttyUSB0'},
        'poller': {'interval_s': 2},
        'storage': {'data_dir': str(tmp_path / 'data'), 'log_dir': str(tmp_path / 'logs')},
        'retention': {'retention_days': 7, 'purge_logs': False},
        'schedule': {'append': '*/5 * * * * 0'},
        'monitoring': {'stale_after_s': 60, 'log_level': 'debug'},
    }

    config = AppConfig.from_dict(payload)
    again = AppConfig.from_dict(config.to_dict())

    assert again == config
    assert config.storage.data_dir == tmp_path / 'data'
    assert config.monitoring.log_level == 'DEBUG'
    assert config.schedule.append == '*/5 * * * * 0'
    assert config.schedule.rotation == ScheduleConfig().rotation


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValueError):
        ScheduleConfig(append='every four minutes')
    with pytest.raises(ValueError):
        DeviceConfig(transport='factory')
    with pytest.raises(ValueError):
        DeviceConfig(transport='carrier-pigeon')
    with pytest.raises(TypeError):
        AppConfig.from_dict({'storage': ['not', 'a', 'mapping']})


def test_load_config_formats(tmp_path: Path) -> None:
    json_path = tmp_path / 'config.json'
    json_path.write_text(json.dumps({'retention': {'retention_days': 10}}), encoding='utf-8')
    toml_path = tmp_path / 'config.toml'
    toml_path.write_text('[poller]\ninterval_s = 0.5\n', encoding='utf-8')
    yaml_path = tmp_path / 'config.yaml'
    yaml_path.write_text('storage:\n  active_log_name: House.csv\n', encoding='utf-8')

    assert load_config(json_path).retention.retention_days == 10
    assert load_config(toml_path).poller.interval_s == 0.5
    assert load_config(yaml_path).storage.active_log_name == 'House.csv'


def test_load_config_missing_or_unknown(tmp_path: Path) -> None:
    assert load_config(None) == AppConfig()
    assert load_config(tmp_path / 'absent.toml') == AppConfig()

    ini_path = tmp_path / 'config.ini'
    ini_path.write_text('[x]\n', encoding='utf-8')
    with pytest.raises(ValueError):
        load_config(ini_path)
