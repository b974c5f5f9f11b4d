"""
Dynamic equality filters taken from ``filter_<field>=<value>`` query params.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

FILTER_PREFIX = "filter_"


def collect_filters(params: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Collect ``filter_*`` parameters into a ``{field: value}`` mapping.

    *params* is the flat list of ``(key, value)`` pairs of the query string.
    A key given more than once is array-valued and is dropped, as are empty
    values and a bare ``filter_`` key.
    """
    pairs = [(k, v) for k, v in params if k.startswith(FILTER_PREFIX)]
    occurrences = Counter(k for k, _ in pairs)

    filters: dict[str, str] = {}
    for key, value in pairs:
        field = key[len(FILTER_PREFIX):]
        if not field or occurrences[key] > 1 or not isinstance(value, str) or not value:
            continue
        filters[field] = value
    return filters
