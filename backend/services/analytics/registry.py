"""
Analytics Registry - Central list of the dashboard aggregations.

The dashboard service iterates this, not individual aggregation files.

Usage:
    from services.analytics.registry import ENABLED_AGGREGATIONS, get_spec

    for spec in ENABLED_AGGREGATIONS:
        outcome = run_aggregation(spec, tenant_id, window, filters, fetch)
"""

import logging
from typing import Dict, List

from services.analytics.base import AggregationSpec

logger = logging.getLogger('analytics.registry')


# =============================================================================
# AGGREGATION REGISTRY
# =============================================================================

from services.analytics.trend import SPEC as trend_spec
from services.analytics.regional import SPEC as regional_spec
from services.analytics.industry import SPEC as industry_spec
from services.analytics.budget import SPEC as budget_spec
from services.analytics.time_pattern import SPEC as time_pattern_spec
from services.analytics.keyword import SPEC as keyword_spec
from services.analytics.anomaly import SPEC as anomaly_spec


# Explicit order - response keys are emitted in this order
AGGREGATION_ORDER = [
    'trend',
    'regional',
    'industry',
    'budget',
    'timePattern',
    'keyword',
    'anomaly',
]

AGGREGATION_REGISTRY: Dict[str, AggregationSpec] = {
    'trend': trend_spec,
    'regional': regional_spec,
    'industry': industry_spec,
    'budget': budget_spec,
    'timePattern': time_pattern_spec,
    'keyword': keyword_spec,
    'anomaly': anomaly_spec,
}

ENABLED_AGGREGATIONS: List[AggregationSpec] = [AGGREGATION_REGISTRY[kind] for kind in AGGREGATION_ORDER]


def get_spec(kind: str) -> AggregationSpec:
    """Look up one aggregation. Unknown kinds raise KeyError."""
    try:
        return AGGREGATION_REGISTRY[kind]
    except KeyError:
        logger.warning("unknown_aggregation kind=%s available=%s", kind, AGGREGATION_ORDER)
        raise


def list_aggregations() -> List[Dict[str, str]]:
    """List all enabled aggregation kinds and titles."""
    return [{'kind': spec.kind, 'title': spec.title} for spec in ENABLED_AGGREGATIONS]
