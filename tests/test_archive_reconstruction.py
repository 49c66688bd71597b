from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from infinilog.constants import LOG_HEADER
from infinilog.state import LogScalars
from infinilog.storage import fan_bucket, format_record, forward_fill, load_daily_series
from infinilog.storage.archive import INDOOR_CEILING, OUTDOOR_CEILING, parse_record


def _record(hour: int, minute: int, *, indoor: int, outdoor: int, rpm: int) -> str:
    scalars = LogScalars(
        current_temp=indoor, outdoor_temp=outdoor, heat_setpoint=68, cool_setpoint=76, blower_rpm=rpm, mode='heat'
    )
    return format_record(datetime(2024, 1, 5, hour, minute), scalars)


def test_forward_fill_replaces_zero_with_previous() -> None:
    assert forward_fill([72, 0, 74], INDOOR_CEILING) == [72, 72, 74]


def test_forward_fill_replaces_values_above_ceiling() -> None:
    assert forward_fill([68, 999, 70], OUTDOOR_CEILING) == [68, 68, 70]
    assert forward_fill([68, 130, 70], OUTDOOR_CEILING) == [68, 130, 70]


def test_forward_fill_keeps_first_value_as_recorded() -> None:
    assert forward_fill([0, 0, 71], INDOOR_CEILING) == [0, 0, 71]
    assert forward_fill([], INDOOR_CEILING) == []


@pytest.mark.parametrize(
    'rpm, tier',
    [(0, 0), (150, 0), (199, 0), (200, 34), (400, 34), (550, 66), (600, 66), (750, 100), (900, 100)],
)
def test_fan_bucket_tiers(rpm: int, tier: int) -> None:
    assert fan_bucket(rpm) == tier


def test_parse_record_reads_positional_fields() -> None:
    record = parse_record(_record(12, 0, indoor=71, outdoor=45, rpm=600))

    assert record.frac_day == pytest.approx(5.5)
    assert record.indoor_temp == 71
    assert record.outdoor_temp == 45
    assert record.blower_rpm == 600


def test_parse_record_rejects_truncated_line() -> None:
    with pytest.raises(ValueError):
        parse_record('2024-01-05T12:00:00,0005.5000,0068')


def test_load_daily_series_skips_header_and_cleans_values(tmp_path: Path) -> None:
    archive = tmp_path / '2024-01-05_Infinilog.csv'
    lines = [
        LOG_HEADER,
        _record(0, 0, indoor=70, outdoor=40, rpm=150),
        _record(0, 4, indoor=0, outdoor=999, rpm=400),
        LOG_HEADER,
        '',
        'garbage,line',
        _record(0, 8, indoor=72, outdoor=42, rpm=600),
        _record(0, 12, indoor=200, outdoor=43, rpm=900),
    ]
    archive.write_text('\n'.join(lines) + '\n', encoding='utf-8')

    series = load_daily_series(archive)

    assert len(series) == 4
    assert series.indoor == [70, 70, 72, 72]
    assert series.outdoor == [40, 40, 42, 43]
    assert series.fan == [0, 34, 66, 100]
    assert series.frac_day == sorted(series.frac_day)
    assert series.frac_day[0] == pytest.approx(5.0)


def test_load_daily_series_of_header_only_archive_is_empty(tmp_path: Path) -> None:
    archive = tmp_path / '2024-01-05_Infinilog.csv'
    archive.write_text(LOG_HEADER + '\n', encoding='utf-8')

    assert len(load_daily_series(archive)) == 0
