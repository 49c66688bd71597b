"""HTML index linking every retained daily chart."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from jinja2 import Environment

from ..constants import DEFAULT_CHART_SUFFIX
from .artifacts import write_text_atomic

_ENV = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)

_TABLE_TEMPLATE = _ENV.from_string(
    """<table width="600" border="1">
{% for row in names|batch(2) %}
  <tr>
{% for name in row %}
    <td><a href="{{ href_prefix }}{{ name }}" target="_blank" rel="noopener noreferrer">{{ name }}</a></td>
{% endfor %}
  </tr>
{% endfor %}
</table>
"""
)

_PAGE_TEMPLATE = _ENV.from_string(
    """<!-- generated by infinilog: {{ generated_at }} -->
<!DOCTYPE html>
<html>
<head>
<title>HVAC Saved Measurements {{ generated_at }}</title>
</head>
<body>
<h2>HVAC Saved Measurements {{ generated_at }}</h2>
{{ table|safe }}</body>
</html>
"""
)

ChartFilter = Callable[[str], bool]


def chart_filter(suffix: str = DEFAULT_CHART_SUFFIX) -> ChartFilter:
    """Return a predicate accepting file names that look like chart artefacts."""

    def _accept(name: str) -> bool:
        return name.endswith(suffix) and not name.startswith('.')

    return _accept


def list_charts(directory: Path, accept: ChartFilter) -> List[str]:
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(path.name for path in directory.iterdir() if path.is_file() and accept(path.name))


def build_link_table(
    names: Iterable[str],
    *,
    table_only: bool = False,
    generated_at: Optional[datetime] = None,
    href_prefix: str = '',
) -> str:
    """Lay *names* out two per row; an odd final row holds a single cell."""

    table = _TABLE_TEMPLATE.render(names=list(names), href_prefix=href_prefix)
    if table_only:
        return table
    stamp = (generated_at or datetime.now()).strftime('%Y-%m-%d %H:%M:%S')
    return _PAGE_TEMPLATE.render(table=table, generated_at=stamp)


def write_index(
    directory: Path,
    output: Path,
    *,
    accept: Optional[ChartFilter] = None,
    table_only: bool = False,
    generated_at: Optional[datetime] = None,
) -> Path:
    """Rescan *directory* and regenerate the index at *output* from scratch."""

    names = list_charts(directory, accept or chart_filter())
    return write_text_atomic(output, build_link_table(names, table_only=table_only, generated_at=generated_at))
