"""
Aggregation: Regional Distribution

Project counts per standardized province, plus the busiest cities when the
request isn't already narrowed to one area.
"""

from collections import Counter
from typing import Any, Dict, List

from constants import TOP_CITIES
from services.analytics.base import AggregationSpec, DimensionFilters, TenderRecord
from services.time_window import TimeWindow
from utils.sanitize import standardize_area_name

COLUMNS = ('id', 'area', 'city')


def default() -> Dict[str, Any]:
    return {'provinces': [], 'topCities': []}


def _ranked(counter: Counter) -> List[Dict[str, Any]]:
    # Descending count, ties by name so output is deterministic
    items = sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{'name': name, 'value': count} for name, count in items]


def compute(records: List[TenderRecord], window: TimeWindow, filters: DimensionFilters) -> Dict[str, Any]:
    provinces: Counter = Counter()
    cities: Counter = Counter()

    for record in records:
        provinces[standardize_area_name(record.area)] += 1
        city = (record.city or '').strip()
        if city:
            cities[city] += 1

    top_cities = _ranked(cities)[:TOP_CITIES] if filters.area is None else []

    return {
        'provinces': _ranked(provinces),
        'topCities': top_cities,
    }


SPEC = AggregationSpec(
    kind='regional',
    title='Regional Distribution',
    columns=COLUMNS,
    compute=compute,
    default=default,
)
