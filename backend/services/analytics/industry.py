"""
Aggregation: Industry Distribution

Top five industries by project count, with everything else folded into a
trailing 其他 bucket.

Invariant: sum(data) + unclassified == number of records in scope.
Records without an industry are never inside a labelled bucket; they are
reported separately as `unclassified`. An industry literally named 其他 is
folded into the remainder bucket rather than producing a duplicate label.
"""

from collections import Counter
from typing import Any, Dict, List

from constants import OTHER_LABEL, TOP_INDUSTRIES
from services.analytics.base import AggregationSpec, DimensionFilters, TenderRecord
from services.time_window import TimeWindow

COLUMNS = ('id', 'industry')


def default() -> Dict[str, Any]:
    return {'labels': [], 'data': [], 'unclassified': 0}


def compute(records: List[TenderRecord], window: TimeWindow, filters: DimensionFilters) -> Dict[str, Any]:
    counts: Counter = Counter()
    unclassified = 0
    for record in records:
        industry = (record.industry or '').strip()
        if not industry:
            unclassified += 1
            continue
        counts[industry] += 1

    other = counts.pop(OTHER_LABEL, 0)
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    top = ranked[:TOP_INDUSTRIES]
    other += sum(count for _, count in ranked[TOP_INDUSTRIES:])

    labels = [name for name, _ in top]
    data = [count for _, count in top]
    if other > 0:
        labels.append(OTHER_LABEL)
        data.append(other)

    return {
        'labels': labels,
        'data': data,
        'unclassified': unclassified,
    }


SPEC = AggregationSpec(
    kind='industry',
    title='Industry Distribution',
    columns=COLUMNS,
    compute=compute,
    default=default,
)
