"""
Dashboard Endpoints

Every endpoint here requires a tenant bearer token and only ever reads the
caller's own records.

Endpoints:
- GET    /dashboard          - all seven analytical views
- GET    /dashboard/filters  - filter options (industries, areas, publish span)
- GET    /dashboard/projects - paginated project list
- GET    /dashboard/cache    - cached view count for the caller
- DELETE /dashboard/cache    - drop the caller's cached views
"""

import logging

from flask import g, jsonify, request

from api.contracts.pydantic_models import DashboardParams, ProjectsParams
from routes.analytics import analytics_bp, get_components
from services.analytics.base import DimensionFilters
from services.time_window import resolve_time_window
from utils.tenant import require_tenant

logger = logging.getLogger('api.dashboard')


@analytics_bp.route("/dashboard", methods=["GET"])
@require_tenant
def dashboard():
    """
    Unified dashboard endpoint - returns all seven views in one response.

    Query params:
        - timeRange: year | quarter | month | custom (default: year)
        - startDate, endDate: YYYY-MM-DD, both required for a custom range and
          take priority over timeRange when both are present
        - area: area filter ('all' or omitted = no filter)
        - industry: industry filter ('all' or omitted = no filter)
        - skipCache: 'true' to bypass cache reads

    Returns:
      {
        "trend": {...}, "regional": {...}, "industry": {...}, "budget": {...},
        "timePattern": {...}, "keyword": {...}, "anomaly": {...},
        "meta": {"cacheHits": [...], "failed": [...], "window": {...}, "elapsedMs": float}
      }

    Errors:
        400 INVALID_PARAMS - malformed params
        400 INVALID_RANGE  - endDate before startDate, or custom without both dates
        401 UNAUTHORIZED   - missing / invalid token

    Example:
      GET /api/dashboard?timeRange=quarter&area=广东省
      GET /api/dashboard?startDate=2024-01-01&endDate=2024-03-31&industry=医疗
    """
    params = DashboardParams.model_validate(request.args.to_dict())
    service = get_components().service
    result = service.get_dashboard(g.tenant_id, params.to_filters(), skip_cache=params.skip_cache)
    return jsonify(result)


@analytics_bp.route("/dashboard/filters", methods=["GET"])
@require_tenant
def dashboard_filters():
    """Distinct industries and areas for the caller, plus min/max publishTime."""
    store = get_components().store
    return jsonify(store.filter_options(g.tenant_id))


@analytics_bp.route("/dashboard/projects", methods=["GET"])
@require_tenant
def dashboard_projects():
    """
    Paginated project list, newest first.

    Query params: same filters as /dashboard (timeRange optional here; omitted
    means all time) plus search, page, pageSize (max 100).
    """
    params = ProjectsParams.model_validate(request.args.to_dict())
    components = get_components()

    window = None
    if params.time_range or params.start_date or params.end_date:
        window = resolve_time_window(
            params.time_range,
            params.start_date,
            params.end_date,
            tz_name=components.tz_name,
        )

    result = components.store.list_projects(
        g.tenant_id,
        window=window,
        filters=DimensionFilters.from_params(params.area, params.industry),
        search=params.search,
        page=params.page or 1,
        page_size=params.page_size or 20,
    )
    return jsonify(result)


@analytics_bp.route("/dashboard/cache", methods=["GET", "DELETE"])
@require_tenant
def dashboard_cache():
    """
    Cache management.

    GET: number of cached views held for the caller's tenant (no process-wide counters)
    DELETE: invalidate every cached view of the caller's tenant
    """
    service = get_components().service
    if request.method == "DELETE":
        removed = service.invalidate_tenant(g.tenant_id)
        logger.info("cache_cleared_by_request tenant=%s removed=%d", g.tenant_id, removed)
        return jsonify({"status": "cleared", "removed": removed})
    return jsonify(service.tenant_cache_stats(g.tenant_id))
