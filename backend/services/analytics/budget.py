"""
Aggregation: Budget vs Actual

Summed budget against summed winning bid for the five industries with the
largest total budget. Only records that have both a positive budget and a
bid amount participate.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, List

from constants import OTHER_LABEL, TOP_BUDGET_INDUSTRIES
from services.analytics.base import (
    AggregationSpec,
    DimensionFilters,
    TenderRecord,
    format_signed_percent,
    percent_diff,
    to_wan,
)
from services.time_window import TimeWindow

COLUMNS = ('id', 'industry', 'budget', 'bid_amount')


def default() -> Dict[str, Any]:
    return {'industries': [], 'budgetValues': [], 'actualValues': [], 'diffPercentages': []}


def compute(records: List[TenderRecord], window: TimeWindow, filters: DimensionFilters) -> Dict[str, Any]:
    budgets: Dict[str, Decimal] = defaultdict(Decimal)
    actuals: Dict[str, Decimal] = defaultdict(Decimal)

    for record in records:
        if record.budget is None or record.budget <= 0 or record.bid_amount is None:
            continue
        industry = (record.industry or '').strip() or OTHER_LABEL
        budgets[industry] += record.budget
        actuals[industry] += record.bid_amount

    ranked = sorted(budgets.items(), key=lambda kv: (-kv[1], kv[0]))[:TOP_BUDGET_INDUSTRIES]

    result = default()
    for industry, budget_total in ranked:
        actual_total = actuals[industry]
        result['industries'].append(industry)
        result['budgetValues'].append(to_wan(budget_total))
        result['actualValues'].append(to_wan(actual_total))
        result['diffPercentages'].append(format_signed_percent(percent_diff(actual_total, budget_total)))
    return result


SPEC = AggregationSpec(
    kind='budget',
    title='Budget vs Actual',
    columns=COLUMNS,
    compute=compute,
    default=default,
)
