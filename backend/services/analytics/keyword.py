"""
Aggregation: Keywords

Two coarse views over title + detail text:

1. industryKeywords - for each of the five dictionary industries, how many
   projects mention at least one of its keywords (once per project).
2. topKeywords - every contiguous 2-4 character CJK substring that is not a
   dictionary keyword or a stop word, tallied by raw occurrence count.

This is a best-effort n-gram extractor, not word segmentation. Overlapping
n-grams ("智慧城市" also yields "智慧", "慧城", ...) are all counted.
"""

import re
from collections import Counter
from typing import Any, Dict, Iterator, List

from constants import (
    DICTIONARY_KEYWORDS,
    INDUSTRY_KEYWORDS,
    KEYWORD_MAX_LENGTH,
    KEYWORD_MIN_LENGTH,
    KEYWORD_STOPWORDS,
    TOP_KEYWORDS,
)
from services.analytics.base import AggregationSpec, DimensionFilters, TenderRecord
from services.time_window import TimeWindow

COLUMNS = ('id', 'title', 'detail')

_CJK_RUN = re.compile(r'[一-鿿]+')


def default() -> Dict[str, Any]:
    return {
        'topKeywords': [],
        'industryKeywords': [{'label': label, 'count': 0} for label in INDUSTRY_KEYWORDS],
        'totalProjects': 0,
    }


def project_text(record: TenderRecord) -> str:
    return f"{record.title or ''} {record.detail or ''}"


def iter_candidates(text: str) -> Iterator[str]:
    """Yield every CJK n-gram of length 2..4, left to right."""
    for run in _CJK_RUN.findall(text):
        for size in range(KEYWORD_MIN_LENGTH, KEYWORD_MAX_LENGTH + 1):
            for i in range(len(run) - size + 1):
                yield run[i:i + size]


def compute(records: List[TenderRecord], window: TimeWindow, filters: DimensionFilters) -> Dict[str, Any]:
    industry_hits: Counter = Counter()
    candidates: Counter = Counter()

    for record in records:
        text = project_text(record)
        for label, keywords in INDUSTRY_KEYWORDS.items():
            if any(keyword in text for keyword in keywords):
                industry_hits[label] += 1
        for gram in iter_candidates(text):
            if gram in DICTIONARY_KEYWORDS or gram in KEYWORD_STOPWORDS:
                continue
            candidates[gram] += 1

    return {
        'topKeywords': [
            {'label': label, 'count': count}
            for label, count in candidates.most_common(TOP_KEYWORDS)
        ],
        'industryKeywords': [
            {'label': label, 'count': industry_hits[label]}
            for label in INDUSTRY_KEYWORDS
        ],
        'totalProjects': len(records),
    }


SPEC = AggregationSpec(
    kind='keyword',
    title='Keywords',
    columns=COLUMNS,
    compute=compute,
    default=default,
)
