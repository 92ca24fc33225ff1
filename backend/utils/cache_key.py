"""
Cache key helpers.

Every analytics key is scoped by tenant:

    dashboard:<quoted tenant id>:<aggregation kind>:<canonical JSON params>

The tenant id is percent-quoted (':' -> '%3A') so one tenant's prefix can never
match another tenant's keys. Params are canonicalised (sorted keys, empty
values dropped, dates as ISO strings) so equivalent filter states share a key.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict
from urllib.parse import quote

DASHBOARD_CACHE_NAMESPACE = "dashboard"

_EMPTY = (None, "", [], {})


def _canonical(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    if isinstance(value, dict):
        return {k: _canonical(v) for k, v in sorted(value.items())}
    return value


def canonical_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Drop empty values and canonicalise the rest, keys sorted."""
    return {k: _canonical(params[k]) for k in sorted(params) if params[k] not in _EMPTY}


def build_json_cache_key(prefix: str, params: Dict[str, Any]) -> str:
    payload = json.dumps(canonical_params(params), sort_keys=True, ensure_ascii=False)
    return f"{prefix}:{payload}"


def tenant_cache_prefix(tenant_id: str) -> str:
    """Prefix shared by every cached view of one tenant (trailing ':' included)."""
    if not tenant_id:
        raise ValueError("tenant_id is required for cache keys")
    return f"{DASHBOARD_CACHE_NAMESPACE}:{quote(str(tenant_id), safe='')}:"


def build_aggregation_cache_key(tenant_id: str, kind: str, params: Dict[str, Any]) -> str:
    """Key for one aggregation view of one tenant under one filter set."""
    return build_json_cache_key(f"{tenant_cache_prefix(tenant_id)}{kind}", params)
