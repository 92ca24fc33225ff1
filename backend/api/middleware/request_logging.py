"""
Request logging middleware - sampled API access lines.

One line per logged request:

    api_request path=/api/dashboard method=GET status=200 duration_ms=41.2 tenant=t1 request_id=...

Which requests get a line:
    - path under a REQUEST_LOG_ENDPOINTS prefix: always
    - server errors (5xx) and requests slower than REQUEST_LOG_SLOW_MS: always, at WARNING
    - everything else under /api: sampled at REQUEST_LOG_SAMPLE_RATE

Settings come from app.config (see Config); unset keys fall back to the defaults below.
"""

import logging
import random
import time
from typing import Tuple

from flask import Flask, g, request

logger = logging.getLogger("api.request")

DEFAULT_SLOW_MS = 2000.0


def _watchlist(raw) -> Tuple[str, ...]:
    if not raw:
        return ()
    if isinstance(raw, str):
        raw = raw.split(",")
    return tuple(p.strip() for p in raw if p.strip())


def _sampled(sample_rate: float) -> bool:
    if sample_rate <= 0:
        return False
    return sample_rate >= 1 or random.random() < sample_rate


def setup_request_logging_middleware(app: Flask) -> None:
    """Register before/after hooks that time and log /api requests."""
    cfg = app.config
    if not cfg.get("REQUEST_LOG_ENABLED", True):
        return

    @app.before_request
    def _start_timer():
        g.request_start = time.perf_counter()

    @app.after_request
    def _log_request(response):
        path = request.path
        if not path.startswith("/api"):
            return response

        duration_ms = None
        if hasattr(g, "request_start"):
            duration_ms = round((time.perf_counter() - g.request_start) * 1000, 2)

        slow_ms = float(cfg.get("REQUEST_LOG_SLOW_MS", DEFAULT_SLOW_MS))
        alarming = response.status_code >= 500 or (duration_ms is not None and duration_ms > slow_ms)
        watchlist = _watchlist(cfg.get("REQUEST_LOG_ENDPOINTS"))
        watched = bool(watchlist) and path.startswith(watchlist)

        if not (alarming or watched or _sampled(float(cfg.get("REQUEST_LOG_SAMPLE_RATE", 0.0)))):
            return response

        logger.log(
            logging.WARNING if alarming else logging.INFO,
            "api_request path=%s method=%s status=%s duration_ms=%s tenant=%s request_id=%s",
            path,
            request.method,
            response.status_code,
            duration_ms,
            getattr(g, "tenant_id", None),
            getattr(g, "request_id", None),
        )
        return response
