"""
Analytics Base Module - Shared infrastructure for all aggregation specs.

Core components:
- TenderRecord: cleaned, read-only view of one tender row
- DimensionFilters: optional equality filters on area / industry
- AggregationSpec: everything needed to compute one dashboard view
- run_aggregation(): fetch + compute, never raises

Usage:
    from services.analytics.base import run_aggregation
    from services.analytics.trend import SPEC as trend_spec

    outcome = run_aggregation(trend_spec, "tenant-1", window, filters, store.fetch)
    outcome.data  # JSON-serializable view (default shape on failure)
"""

import logging
import math
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence

from constants import AMOUNT_UNIT_DIVISOR, FILTER_ALL, SECONDS_PER_DAY
from services.time_window import TimeWindow

logger = logging.getLogger('analytics')


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class TenderRecord:
    """One tender project as the aggregations see it. Amounts in yuan, times in epoch seconds."""
    id: str
    tenant_id: str
    title: str = ""
    area: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    industry: Optional[str] = None
    buyer: Optional[str] = None
    winner: Optional[str] = None
    agency: Optional[str] = None
    publish_time: Optional[int] = None
    bid_open_time: Optional[int] = None
    bid_end_time: Optional[int] = None
    sign_end_time: Optional[int] = None
    budget: Optional[Decimal] = None
    bid_amount: Optional[Decimal] = None
    detail: Optional[str] = None
    detail_metadata: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class DimensionFilters:
    """Equality filters on categorical columns. None means 'all'."""
    area: Optional[str] = None
    industry: Optional[str] = None

    @classmethod
    def from_params(cls, area: Optional[str] = None, industry: Optional[str] = None) -> "DimensionFilters":
        def _clean(v):
            if v is None:
                return None
            v = str(v).strip()
            if v == "" or v.lower() == FILTER_ALL:
                return None
            return v
        return cls(area=_clean(area), industry=_clean(industry))

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {'area': self.area, 'industry': self.industry}


# fetch(tenant_id, window, filters, columns, timeout) -> records
RecordFetcher = Callable[..., List[TenderRecord]]


class AggregationFailure(Exception):
    """An aggregation could not be computed. Logged, never propagated."""

    def __init__(self, kind: str, tenant_id: str, filters: Dict[str, Any], cause: BaseException):
        super().__init__(f"{kind} failed for tenant={tenant_id}: {cause!r}")
        self.kind = kind
        self.tenant_id = tenant_id
        self.filters = filters
        self.cause = cause


@dataclass
class AggregationSpec:
    """
    Everything needed to compute one dashboard view.

    Each aggregation module exports one of these as SPEC.
    """
    kind: str
    title: str
    columns: Sequence[str]
    compute: Callable[[List[TenderRecord], TimeWindow, DimensionFilters], Dict[str, Any]]
    default: Callable[[], Dict[str, Any]]


@dataclass
class AggregationOutcome:
    kind: str
    data: Dict[str, Any]
    ok: bool
    error: Optional[str] = None
    elapsed_ms: float = 0.0
    record_count: int = 0
    meta: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# NUMERIC HELPERS
# =============================================================================

def to_float(value: Any) -> float:
    """Decimal/None -> float (None -> 0.0)."""
    if value is None:
        return 0.0
    return float(value)


def to_wan(amount: Any, digits: int = 2) -> float:
    """Yuan -> 万元, rounded."""
    return round(to_float(amount) / AMOUNT_UNIT_DIVISOR, digits)


def safe_ratio(numerator: Any, denominator: Any) -> float:
    """numerator / denominator, or 0.0 when the result would be NaN/inf."""
    num = to_float(numerator)
    den = to_float(denominator)
    if den == 0:
        return 0.0
    result = num / den
    if math.isnan(result) or math.isinf(result):
        return 0.0
    return result


def percent_diff(actual: Any, budget: Any) -> float:
    """(actual - budget) / budget * 100, 0.0 when budget is zero."""
    return safe_ratio(to_float(actual) - to_float(budget), budget) * 100


def format_signed_percent(value: float) -> str:
    """51.0 -> '+51.0%', -35 -> '-35.0%'."""
    if math.isnan(value) or math.isinf(value):
        value = 0.0
    return f"{value:+.1f}%"


def day_gap(start_ts: Optional[int], end_ts: Optional[int]) -> Optional[int]:
    """Whole days from start to end, rounded up in magnitude. Sign follows end - start."""
    if start_ts is None or end_ts is None:
        return None
    diff = end_ts - start_ts
    days = math.ceil(abs(diff) / SECONDS_PER_DAY)
    return -days if diff < 0 else days


# =============================================================================
# EXECUTION
# =============================================================================

def run_aggregation(
    spec: AggregationSpec,
    tenant_id: str,
    window: TimeWindow,
    filters: DimensionFilters,
    fetch: RecordFetcher,
    timeout: Optional[float] = None,
) -> AggregationOutcome:
    """
    Run a single aggregation spec safely.

    Steps:
        1. Fetch matching records (tenant + window + filters, spec columns only)
        2. Compute the view
        3. On ANY failure, log with tenant/kind/filters and return spec.default()
    """
    start = time.perf_counter()
    try:
        records = fetch(tenant_id, window, filters, columns=spec.columns, timeout=timeout)
        data = spec.compute(records, window, filters)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(
            "aggregation_ok kind=%s tenant=%s records=%d elapsed_ms=%.1f",
            spec.kind, tenant_id, len(records), elapsed,
        )
        return AggregationOutcome(
            kind=spec.kind,
            data=data,
            ok=True,
            elapsed_ms=round(elapsed, 1),
            record_count=len(records),
        )
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        failure = AggregationFailure(spec.kind, tenant_id, filters.to_dict(), e)
        logger.error(
            "aggregation_failed kind=%s tenant=%s filters=%s window=%s-%s error=%r",
            spec.kind, tenant_id, failure.filters, window.start, window.end, e,
            exc_info=True,
        )
        return AggregationOutcome(
            kind=spec.kind,
            data=spec.default(),
            ok=False,
            error=str(failure),
            elapsed_ms=round(elapsed, 1),
        )
