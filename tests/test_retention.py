from __future__ import annotations

import os
from datetime import datetime, timedelta
from pathlib import Path

from infinilog.storage import purge_expired, purge_logs

NOW = datetime(2024, 2, 1, 0, 5, 3)
SUFFIXES = ('_Infinilog.csv', '_Temperature.html')


def _aged(path: Path, age: timedelta) -> Path:
    path.write_text('x', encoding='utf-8')
    stamp = (NOW - age).timestamp()
    os.utime(path, (stamp, stamp))
    return path


def test_purge_expired_honours_fourteen_day_boundary(tmp_path: Path) -> None:
    old_log = _aged(tmp_path / '2024-01-10_Infinilog.csv', timedelta(days=15))
    old_chart = _aged(tmp_path / '2024-01-10_Temperature.html', timedelta(days=14, seconds=1))
    edge = _aged(tmp_path / '2024-01-18_Temperature.html', timedelta(days=14))
    fresh = _aged(tmp_path / '2024-01-31_Infinilog.csv', timedelta(days=1))

    result = purge_expired(tmp_path, retention_days=14, suffixes=SUFFIXES, now=NOW)

    assert sorted(result.removed) == sorted([old_log, old_chart])
    assert result.kept == 2
    assert result.ok
    assert edge.exists()
    assert fresh.exists()


def test_purge_expired_ignores_unrelated_files(tmp_path: Path) -> None:
    active = _aged(tmp_path / 'Infinilog.csv', timedelta(days=30))
    index = _aged(tmp_path / 'htmlLinks.html', timedelta(days=30))
    foreign = _aged(tmp_path / '2024-01-01_notes.txt', timedelta(days=30))

    result = purge_expired(tmp_path, retention_days=14, suffixes=SUFFIXES, now=NOW)

    assert result.removed == []
    assert active.exists() and index.exists() and foreign.exists()


def test_purge_expired_on_missing_directory_is_a_no_op(tmp_path: Path) -> None:
    result = purge_expired(tmp_path / 'missing', retention_days=14, suffixes=SUFFIXES, now=NOW)

    assert result.removed == []
    assert result.ok


def test_purge_logs_removes_every_log_file(tmp_path: Path) -> None:
    _aged(tmp_path / 'infinilog.log', timedelta(0))
    _aged(tmp_path / 'older.log', timedelta(days=90))
    keep = _aged(tmp_path / 'infinilog.cfg', timedelta(days=90))

    result = purge_logs(tmp_path)

    assert sorted(path.name for path in result.removed) == ['infinilog.log', 'older.log']
    assert keep.exists()
    assert list(tmp_path.glob('*.log')) == []
