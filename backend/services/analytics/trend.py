"""
Aggregation: Monthly Trend

Project count, summed budget and average budget per calendar month of the
window's year. Always twelve slots; months without records are zero.

Amounts are reported in 万元 (2 decimals). avgBudget is budgetSum over the
month's project count; a project without a budget adds 0 to the sum.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List

from constants import MONTH_LABELS
from services.analytics.base import AggregationSpec, DimensionFilters, TenderRecord, to_wan
from services.time_window import TimeWindow

COLUMNS = ('id', 'publish_time', 'budget')


def default() -> Dict[str, Any]:
    return {
        'year': None,
        'months': list(MONTH_LABELS),
        'projectCounts': [0] * 12,
        'budgetSums': [0.0] * 12,
        'avgBudgets': [0.0] * 12,
    }


def compute(records: List[TenderRecord], window: TimeWindow, filters: DimensionFilters) -> Dict[str, Any]:
    zone = window.tz
    year = window.year

    counts = [0] * 12
    budget_sums = [Decimal(0)] * 12

    for record in records:
        if record.publish_time is None:
            continue
        published = datetime.fromtimestamp(record.publish_time, tz=zone)
        if published.year != year:
            continue
        idx = published.month - 1
        counts[idx] += 1
        if record.budget is not None:
            budget_sums[idx] += record.budget

    return {
        'year': year,
        'months': list(MONTH_LABELS),
        'projectCounts': counts,
        'budgetSums': [to_wan(total) for total in budget_sums],
        'avgBudgets': [
            to_wan(budget_sums[i] / counts[i]) if counts[i] else 0.0
            for i in range(12)
        ],
    }


SPEC = AggregationSpec(
    kind='trend',
    title='Monthly Trend',
    columns=COLUMNS,
    compute=compute,
    default=default,
)
