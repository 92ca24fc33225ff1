"""
Aggregation: Time Pattern

When are tenders published, and how long is the publish -> bid-open cycle?

- Day-of-week and hour-of-day come from publishTime in the analytics
  timezone (Asia/Shanghai unless configured otherwise). Index 0 is Sunday.
- Process period = ceil(|bidOpenTime - publishTime| / 1 day). The absolute
  value is used here; the anomaly detector treats negative gaps separately.
"""

from datetime import datetime
from typing import Any, Dict, List

from constants import HOUR_LABELS, PROCESS_PERIOD_BUCKETS, WEEKDAY_LABELS
from services.analytics.base import AggregationSpec, DimensionFilters, TenderRecord, day_gap
from services.time_window import TimeWindow

COLUMNS = ('id', 'publish_time', 'bid_open_time')

PERIOD_LABELS = [label for label, _ in PROCESS_PERIOD_BUCKETS]


def default() -> Dict[str, Any]:
    return {
        'dayOfWeekDistribution': {'labels': list(WEEKDAY_LABELS), 'data': [0] * 7},
        'hourDistribution': {'labels': list(HOUR_LABELS), 'data': [0] * 24},
        'processPeriods': {
            'average': "0",
            'distribution': {'labels': list(PERIOD_LABELS), 'data': [0] * len(PERIOD_LABELS)},
        },
        'totalProjects': 0,
    }


def period_bucket(days: int) -> int:
    """Index into PROCESS_PERIOD_BUCKETS for a gap in days."""
    for idx, (_, upper) in enumerate(PROCESS_PERIOD_BUCKETS):
        if upper is None or days <= upper:
            return idx
    return len(PROCESS_PERIOD_BUCKETS) - 1


def format_average(gaps: List[int]) -> str:
    if not gaps:
        return "0"
    return f"{sum(gaps) / len(gaps):.1f}"


def compute(records: List[TenderRecord], window: TimeWindow, filters: DimensionFilters) -> Dict[str, Any]:
    zone = window.tz
    result = default()
    weekdays = result['dayOfWeekDistribution']['data']
    hours = result['hourDistribution']['data']
    periods = result['processPeriods']['distribution']['data']
    gaps: List[int] = []

    for record in records:
        if record.publish_time is None:
            continue
        published = datetime.fromtimestamp(record.publish_time, tz=zone)
        # Python weekday(): Monday=0 -> shift so Sunday=0
        weekdays[(published.weekday() + 1) % 7] += 1
        hours[published.hour] += 1

        if record.bid_open_time is not None:
            gap = abs(day_gap(record.publish_time, record.bid_open_time))
            gaps.append(gap)
            periods[period_bucket(gap)] += 1

    result['processPeriods']['average'] = format_average(gaps)
    result['totalProjects'] = len(records)
    return result


SPEC = AggregationSpec(
    kind='timePattern',
    title='Time Pattern',
    columns=COLUMNS,
    compute=compute,
    default=default,
)
