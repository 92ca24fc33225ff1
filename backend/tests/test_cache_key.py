import json
from datetime import date

import pytest

from utils.cache_key import (
    build_aggregation_cache_key,
    build_json_cache_key,
    tenant_cache_prefix,
)


def test_build_json_cache_key_normalizes_and_sorts():
    params = {
        "b": 2,
        "a": [3, 2],
        "empty": [],
        "nested": {"y": 2, "x": 1},
        "when": date(2024, 1, 2),
    }
    expected_payload = {
        "a": [3, 2],
        "b": 2,
        "nested": {"x": 1, "y": 2},
        "when": "2024-01-02",
    }

    key = build_json_cache_key("agg", params)

    assert key == f"agg:{json.dumps(expected_payload, sort_keys=True)}"


def test_aggregation_key_is_order_independent():
    a = build_aggregation_cache_key("t1", "trend", {"area": "广东省", "timeRange": "year"})
    b = build_aggregation_cache_key("t1", "trend", {"timeRange": "year", "area": "广东省"})
    assert a == b
    assert a.startswith("dashboard:t1:trend:")
    assert "广东省" in a


def test_none_filters_do_not_change_key():
    a = build_aggregation_cache_key("t1", "trend", {"timeRange": "year", "area": None})
    b = build_aggregation_cache_key("t1", "trend", {"timeRange": "year"})
    assert a == b


def test_keys_differ_across_tenants():
    params = {"timeRange": "year"}
    assert build_aggregation_cache_key("t1", "trend", params) != build_aggregation_cache_key("t2", "trend", params)


def test_tenant_prefix_never_matches_other_tenant():
    # 't1' must not be a prefix of 't10' keys, and ':' in ids can't forge a prefix
    key_t10 = build_aggregation_cache_key("t10", "trend", {})
    key_colon = build_aggregation_cache_key("t1:trend", "x", {})
    assert not key_t10.startswith(tenant_cache_prefix("t1"))
    assert not key_colon.startswith(tenant_cache_prefix("t1"))


def test_empty_tenant_rejected():
    with pytest.raises(ValueError):
        tenant_cache_prefix("")
