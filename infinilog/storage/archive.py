"""Rebuild the daily time series from an archived history log."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .history_log import RECORD_FIELDS, is_header

logger = logging.getLogger(__name__)

OUTDOOR_CEILING = 130
INDOOR_CEILING = 110

# (exclusive upper RPM bound, percentage tier); anything above maps to 100.
FAN_TIERS = ((200, 0), (550, 34), (750, 66))
FAN_TIER_MAX = 100

_FRAC = RECORD_FIELDS.index('frac_day')
_OUTDOOR = RECORD_FIELDS.index('outdoor_temp')
_INDOOR = RECORD_FIELDS.index('current_temp')
_RPM = RECORD_FIELDS.index('blower_rpm')


@dataclass(slots=True)
class ArchiveRecord:
    frac_day: float
    outdoor_temp: int
    indoor_temp: int
    blower_rpm: int


@dataclass(slots=True)
class DailySeries:
    """Chart-ready series sharing the fractional-day axis."""

    frac_day: List[float] = field(default_factory=list)
    indoor: List[int] = field(default_factory=list)
    outdoor: List[int] = field(default_factory=list)
    fan: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.frac_day)


def parse_record(line: str) -> ArchiveRecord:
    """Parse one data line; raises ``ValueError`` when it is malformed."""

    fields = line.rstrip('\r\n').split(',')
    if len(fields) < len(RECORD_FIELDS) - 1:
        raise ValueError(f"expected {len(RECORD_FIELDS)} fields, got {len(fields)}")
    return ArchiveRecord(
        frac_day=float(fields[_FRAC]),
        outdoor_temp=int(fields[_OUTDOOR]),
        indoor_temp=int(fields[_INDOOR]),
        blower_rpm=int(fields[_RPM]),
    )


def iter_records(lines: Iterable[str]) -> Iterator[ArchiveRecord]:
    for number, line in enumerate(lines, 1):
        if not line.strip() or is_header(line):
            continue
        try:
            yield parse_record(line)
        except ValueError as exc:
            logger.warning("skipping malformed record on line %d: %s", number, exc)


def forward_fill(values: Sequence[int], ceiling: int) -> List[int]:
    """Replace zero or implausible readings with the previous kept value.

    The first reading has no predecessor and is kept as recorded.
    """

    filled: List[int] = []
    for index, value in enumerate(values):
        if index > 0 and (value == 0 or value > ceiling):
            value = filled[-1]
        filled.append(value)
    return filled


def fan_bucket(rpm: int) -> int:
    """Map blower RPM onto the 0/34/66/100 fan-speed tiers."""

    for bound, tier in FAN_TIERS:
        if rpm < bound:
            return tier
    return FAN_TIER_MAX


def reconstruct(records: Iterable[ArchiveRecord]) -> DailySeries:
    rows = list(records)
    return DailySeries(
        frac_day=[row.frac_day for row in rows],
        indoor=forward_fill([row.indoor_temp for row in rows], INDOOR_CEILING),
        outdoor=forward_fill([row.outdoor_temp for row in rows], OUTDOOR_CEILING),
        fan=[fan_bucket(row.blower_rpm) for row in rows],
    )


def load_daily_series(path: Path) -> DailySeries:
    """Read an archive file and return its cleaned daily series."""

    with Path(path).open('r', encoding='utf-8') as handle:
        return reconstruct(iter_records(handle))
