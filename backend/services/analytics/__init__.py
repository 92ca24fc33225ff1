"""
Analytics Package - the seven dashboard aggregations.

Each module exports one AggregationSpec as SPEC; registry.py orders them and
maps them to response keys.
"""

from services.analytics.base import (
    AggregationFailure,
    AggregationOutcome,
    AggregationSpec,
    DimensionFilters,
    TenderRecord,
    run_aggregation,
)

__all__ = [
    'AggregationFailure',
    'AggregationOutcome',
    'AggregationSpec',
    'DimensionFilters',
    'TenderRecord',
    'run_aggregation',
]
