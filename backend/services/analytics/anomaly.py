"""
Aggregation: Anomaly Detection

Three fixed-threshold detectors over the same record set, one pass:

- Budget: bidAmount deviates from budget by > +50% (超预算) or < -30% (低于预算).
  Both amounts must be > 0. Sorted by absolute deviation, largest first.
- Value: bidAmount < 100 while budget > 100,000, or bidAmount > budget x 10
  (极端差异, either direction). Sorted by how extreme the ratio is.
- Time: publish -> bid-open gap in days (ceiling) > 180 (流程过长) or < 3
  (流程过短). Bid-open BEFORE publish is a data-quality problem, not a short
  process: those records are kept out of the list and counted in
  statistics.negativeGapCount.

Each list is capped at MAX_ANOMALIES. These are heuristics, not a
statistical model.
"""

import math
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from constants import (
    ANOMALY_EXTREME_VALUE,
    ANOMALY_LONG_PROCESS,
    ANOMALY_OVER_BUDGET,
    ANOMALY_SHORT_PROCESS,
    ANOMALY_UNDER_BUDGET,
    EXTREME_LOW_BID,
    EXTREME_LOW_BID_MIN_BUDGET,
    EXTREME_RATIO,
    LONG_PROCESS_DAYS,
    MAX_ANOMALIES,
    OVER_BUDGET_PERCENT,
    SHORT_PROCESS_DAYS,
    UNDER_BUDGET_PERCENT,
)
from services.analytics.base import (
    AggregationSpec,
    DimensionFilters,
    TenderRecord,
    day_gap,
    format_signed_percent,
    percent_diff,
    to_float,
    to_wan,
)
from services.time_window import TimeWindow

COLUMNS = ('id', 'title', 'publish_time', 'bid_open_time', 'budget', 'bid_amount')


def default() -> Dict[str, Any]:
    return {
        'budgetAnomalies': [],
        'timeAnomalies': [],
        'valueAnomalies': [],
        'statistics': {
            'avgBudget': 0.0,
            'avgBidAmount': 0.0,
            'budgetCount': 0,
            'bidAmountCount': 0,
            'totalProjects': 0,
            'negativeGapCount': 0,
        },
    }


def classify_budget(budget: Optional[Decimal], bid_amount: Optional[Decimal]) -> Optional[Tuple[str, float]]:
    """(anomalyType, percent deviation) or None when within tolerance."""
    if budget is None or bid_amount is None or budget <= 0 or bid_amount <= 0:
        return None
    diff = percent_diff(bid_amount, budget)
    if diff > OVER_BUDGET_PERCENT:
        return ANOMALY_OVER_BUDGET, diff
    if diff < UNDER_BUDGET_PERCENT:
        return ANOMALY_UNDER_BUDGET, diff
    return None


def value_extremity(budget: Optional[Decimal], bid_amount: Optional[Decimal]) -> Optional[float]:
    """How far apart bid and budget are (>= 1), or None when not extreme."""
    if budget is None or bid_amount is None or budget <= 0:
        return None
    low_bid = bid_amount < EXTREME_LOW_BID and budget > EXTREME_LOW_BID_MIN_BUDGET
    high_bid = bid_amount > budget * EXTREME_RATIO
    if not (low_bid or high_bid):
        return None
    ratio = to_float(bid_amount) / to_float(budget)
    if ratio >= 1:
        return ratio
    if bid_amount == 0:
        return math.inf
    return to_float(budget) / to_float(bid_amount)


def classify_gap(gap_days: int) -> Optional[Tuple[str, int]]:
    """(anomalyType, distance past the threshold) or None."""
    if gap_days > LONG_PROCESS_DAYS:
        return ANOMALY_LONG_PROCESS, gap_days - LONG_PROCESS_DAYS
    if gap_days < SHORT_PROCESS_DAYS:
        return ANOMALY_SHORT_PROCESS, SHORT_PROCESS_DAYS - gap_days
    return None


def _mean(values: List[Decimal]) -> float:
    if not values:
        return 0.0
    return to_wan(sum(values) / len(values))


def compute(records: List[TenderRecord], window: TimeWindow, filters: DimensionFilters) -> Dict[str, Any]:
    budget_hits = []
    value_hits = []
    time_hits = []
    budgets: List[Decimal] = []
    bids: List[Decimal] = []
    negative_gaps = 0

    for record in records:
        if record.budget is not None and record.budget > 0:
            budgets.append(record.budget)
        if record.bid_amount is not None and record.bid_amount > 0:
            bids.append(record.bid_amount)

        budget_match = classify_budget(record.budget, record.bid_amount)
        if budget_match is not None:
            anomaly_type, diff = budget_match
            budget_hits.append((abs(diff), {
                'id': record.id,
                'title': record.title,
                'budget': to_wan(record.budget),
                'bidAmount': to_wan(record.bid_amount),
                'diffPercentage': format_signed_percent(diff),
                'anomalyType': anomaly_type,
            }))

        extremity = value_extremity(record.budget, record.bid_amount)
        if extremity is not None:
            value_hits.append((extremity, {
                'id': record.id,
                'title': record.title,
                'budget': to_wan(record.budget),
                'bidAmount': to_wan(record.bid_amount),
                'ratio': f"{to_float(record.bid_amount) / to_float(record.budget):.2f}",
                'anomalyType': ANOMALY_EXTREME_VALUE,
            }))

        gap = day_gap(record.publish_time, record.bid_open_time)
        if gap is None:
            continue
        if gap < 0:
            negative_gaps += 1
            continue
        gap_match = classify_gap(gap)
        if gap_match is not None:
            anomaly_type, distance = gap_match
            time_hits.append((distance, {
                'id': record.id,
                'title': record.title,
                'publishTime': record.publish_time,
                'bidOpenTime': record.bid_open_time,
                'diffDays': gap,
                'anomalyType': anomaly_type,
            }))

    def _top(hits):
        # Stable sort keeps input order among equally extreme records
        return [item for _, item in sorted(hits, key=lambda h: h[0], reverse=True)[:MAX_ANOMALIES]]

    return {
        'budgetAnomalies': _top(budget_hits),
        'timeAnomalies': _top(time_hits),
        'valueAnomalies': _top(value_hits),
        'statistics': {
            'avgBudget': _mean(budgets),
            'avgBidAmount': _mean(bids),
            'budgetCount': len(budgets),
            'bidAmountCount': len(bids),
            'totalProjects': len(records),
            'negativeGapCount': negative_gaps,
        },
    }


SPEC = AggregationSpec(
    kind='anomaly',
    title='Anomaly Detection',
    columns=COLUMNS,
    compute=compute,
    default=default,
)
