"""
Dashboard Service - Unified Tender Dashboard Aggregation

Returns all seven analytical views for one tenant in a single response.

Key Features:
- Aggregations run concurrently on a shared thread pool
- Per-aggregation caching keyed by (tenant, kind, filters)
- Partial results: one failing or slow aggregation returns its default shape,
  the other six are unaffected
- Fallback shapes are never written to the cache
- Query timing and observability

Usage:
    from services.dashboard_service import DashboardService

    service = DashboardService(store.fetch, cache=QueryCache())
    result = service.get_dashboard(
        "tenant-1",
        {'time_range': 'quarter', 'area': '广东省', 'industry': None},
    )
    result['trend']['projectCounts']   # 12 ints
    result['meta']['failed']           # [] when everything succeeded
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime
from functools import wraps
from typing import Any, Dict, List, Mapping, Optional, Tuple

from constants import (
    DEFAULT_ANALYTICS_TIMEZONE,
    DEFAULT_TTL_CLASS,
    TIME_RANGE_CUSTOM,
    get_ttl_seconds,
)
from services.analytics.base import (
    AggregationOutcome,
    AggregationSpec,
    DimensionFilters,
    RecordFetcher,
    run_aggregation,
)
from services.analytics.registry import ENABLED_AGGREGATIONS
from services.query_cache import CacheUnavailable, QueryCache
from services.time_window import TimeWindow, resolve_time_window
from utils.cache_key import build_aggregation_cache_key, tenant_cache_prefix

logger = logging.getLogger('dashboard')

# ============================================================================
# CONFIGURATION
# ============================================================================

QUERY_TIMEOUT_SECONDS = 10
MAX_WORKERS = len(ENABLED_AGGREGATIONS)
SLOW_OPERATION_MS = 1000


def log_timing(operation: str):
    """Decorator to log operation timing."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                logger.info(f"{operation} completed in {elapsed:.1f}ms")
                if elapsed > SLOW_OPERATION_MS:
                    logger.warning(f"SLOW OPERATION: {operation} took {elapsed:.1f}ms")
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                logger.error(f"{operation} failed after {elapsed:.1f}ms: {e}")
                raise
        return wrapper
    return decorator


# ============================================================================
# CACHE PARAMS
# ============================================================================

def build_cache_params(window: TimeWindow, filters: DimensionFilters) -> Dict[str, Any]:
    """
    Filter state that identifies one cached view.

    Named ranges key on the window START date only: the end is "now" and
    moves every second, so keying on it would defeat the cache. Staleness
    within a named range is bounded by the TTL.
    """
    window_dict = window.to_dict()
    params = {
        'timeRange': window.time_range,
        'windowStart': window_dict['startDate'],
        'timezone': window.tz_name,
        'area': filters.area,
        'industry': filters.industry,
    }
    if window.time_range == TIME_RANGE_CUSTOM:
        params['windowEnd'] = window_dict['endDate']
    return params


# ============================================================================
# SERVICE
# ============================================================================

class DashboardService:
    """
    Orchestrates the seven aggregations for one request.

    Holds the thread pool and a reference to the shared QueryCache. One
    instance per application (created in create_app()).
    """

    def __init__(
        self,
        fetch: RecordFetcher,
        cache: Optional[QueryCache] = None,
        *,
        ttl_class: str = DEFAULT_TTL_CLASS,
        max_workers: int = MAX_WORKERS,
        timeout_seconds: float = QUERY_TIMEOUT_SECONDS,
        tz_name: str = DEFAULT_ANALYTICS_TIMEZONE,
        specs: Optional[List[AggregationSpec]] = None,
    ):
        self._fetch = fetch
        self._cache = cache
        self._ttl_seconds = get_ttl_seconds(ttl_class)
        self._timeout = timeout_seconds
        self._tz_name = tz_name
        self._specs = list(specs) if specs is not None else list(ENABLED_AGGREGATIONS)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='dashboard')

    # ------------------------------------------------------------------
    # Cache access. A disabled cache behaves like a permanent miss.
    # ------------------------------------------------------------------

    def _cache_get(self, key: str) -> Optional[Dict[str, Any]]:
        if self._cache is None:
            return None
        try:
            return self._cache.get(key)
        except CacheUnavailable:
            return None

    def _cache_set(self, key: str, value: Dict[str, Any]) -> None:
        if self._cache is None:
            return
        try:
            self._cache.set(key, value, ttl=self._ttl_seconds)
        except CacheUnavailable:
            pass

    def _resolve_one(
        self,
        spec: AggregationSpec,
        tenant_id: str,
        window: TimeWindow,
        filters: DimensionFilters,
        cache_params: Dict[str, Any],
        skip_cache: bool,
    ) -> Tuple[AggregationOutcome, bool]:
        """(outcome, served_from_cache) for one aggregation."""
        key = build_aggregation_cache_key(tenant_id, spec.kind, cache_params)
        if not skip_cache:
            cached = self._cache_get(key)
            if cached is not None:
                return AggregationOutcome(kind=spec.kind, data=cached, ok=True), True

        outcome = run_aggregation(spec, tenant_id, window, filters, self._fetch, timeout=self._timeout)
        if outcome.ok:
            self._cache_set(key, outcome.data)
        return outcome, False

    @log_timing("get_dashboard")
    def get_dashboard(
        self,
        tenant_id: str,
        filters: Optional[Mapping[str, Any]] = None,
        now: Optional[datetime] = None,
        skip_cache: bool = False,
    ) -> Dict[str, Any]:
        """
        Compute every dashboard view for one tenant.

        Args:
            tenant_id: Authenticated tenant (required, never taken from the query string)
            filters: {time_range, start_date, end_date, area, industry}; missing keys mean "all"
            now: Reference instant for named time ranges (defaults to wall clock)
            skip_cache: Bypass cache reads (results are still written)

        Returns:
            {trend, regional, industry, budget, timePattern, keyword, anomaly, meta}

        Raises:
            InvalidRangeError: malformed or inverted date range
            ValueError: empty tenant id
        """
        if not tenant_id:
            raise ValueError("tenant_id is required")
        filters = dict(filters or {})
        start = time.perf_counter()

        window = resolve_time_window(
            filters.get('time_range'),
            filters.get('start_date'),
            filters.get('end_date'),
            now=now,
            tz_name=self._tz_name,
        )
        dimensions = DimensionFilters.from_params(filters.get('area'), filters.get('industry'))
        cache_params = build_cache_params(window, dimensions)

        futures = {
            spec.kind: self._executor.submit(
                self._resolve_one, spec, tenant_id, window, dimensions, cache_params, skip_cache
            )
            for spec in self._specs
        }
        wait(list(futures.values()), timeout=self._timeout)

        result: Dict[str, Any] = {}
        cache_hits: List[str] = []
        failed: List[str] = []
        for spec in self._specs:
            future = futures[spec.kind]
            if not future.done():
                future.cancel()
                logger.error(
                    "aggregation_timeout kind=%s tenant=%s timeout_s=%s",
                    spec.kind, tenant_id, self._timeout,
                )
                result[spec.kind] = spec.default()
                failed.append(spec.kind)
                continue
            outcome, from_cache = future.result()
            result[spec.kind] = outcome.data
            if from_cache:
                cache_hits.append(spec.kind)
            if not outcome.ok:
                failed.append(spec.kind)

        if failed:
            logger.warning("dashboard_partial tenant=%s failed=%s", tenant_id, failed)

        result['meta'] = {
            'cacheHits': cache_hits,
            'failed': failed,
            'window': window.to_dict(),
            'elapsedMs': round((time.perf_counter() - start) * 1000, 1),
        }
        return result

    def invalidate_tenant(self, tenant_id: str) -> int:
        """Drop every cached view of one tenant. Returns entries removed."""
        if self._cache is None:
            return 0
        try:
            removed = self._cache.invalidate_prefix(tenant_cache_prefix(tenant_id))
        except CacheUnavailable:
            return 0
        logger.info("dashboard_cache_invalidated tenant=%s removed=%d", tenant_id, removed)
        return removed

    def tenant_cache_stats(self, tenant_id: str) -> Dict[str, Any]:
        """Cache usage visible to one tenant: only its own entry count."""
        if self._cache is None or not self._cache.enabled:
            return {'enabled': False, 'entries': 0}
        entries = self._cache.count_prefix(tenant_cache_prefix(tenant_id))
        return {'enabled': True, 'entries': entries, 'ttlSeconds': self._ttl_seconds}

    def shutdown(self, wait_for_running: bool = False) -> None:
        if self._cache is not None:
            logger.info("dashboard_shutdown cache=%s", self._cache.stats())
        self._executor.shutdown(wait=wait_for_running)
