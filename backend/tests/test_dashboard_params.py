"""
Tests for the /dashboard param models and the aggregation registry.
"""
from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from api.contracts.pydantic_models import DashboardParams, ProjectsParams
from services.analytics.registry import AGGREGATION_ORDER, get_spec, list_aggregations


class TestDashboardParams:

    def test_defaults(self):
        params = DashboardParams.model_validate({})
        assert params.time_range == 'year'
        assert params.area is None
        assert params.industry is None
        assert params.skip_cache is False

    def test_aliases_and_coercion(self):
        params = DashboardParams.model_validate({
            'timeRange': ' Quarter ',
            'startDate': '2024-01-01',
            'endDate': '2024-03-31',
            'skipCache': 'yes',
        })
        assert params.time_range == 'quarter'
        assert params.start_date == date(2024, 1, 1)
        assert params.end_date == date(2024, 3, 31)
        assert params.skip_cache is True

    @pytest.mark.parametrize("raw", ["all", "ALL", "", "  "])
    def test_all_means_no_filter(self, raw):
        params = DashboardParams.model_validate({'area': raw, 'industry': raw})
        assert params.to_filters()['area'] is None
        assert params.to_filters()['industry'] is None

    def test_filter_value_stripped(self):
        params = DashboardParams.model_validate({'area': ' 广东省 '})
        assert params.area == '广东省'

    @pytest.mark.parametrize("bad", [
        {'timeRange': 'week'},
        {'startDate': '2024-03'},
        {'skipCache': 'maybe'},
        {'area': 'x' * 51},
    ])
    def test_rejected(self, bad):
        with pytest.raises(PydanticValidationError):
            DashboardParams.model_validate(bad)

    def test_frozen(self):
        params = DashboardParams.model_validate({})
        with pytest.raises(PydanticValidationError):
            params.area = '广东省'


class TestProjectsParams:

    def test_time_range_optional(self):
        params = ProjectsParams.model_validate({'timeRange': ''})
        assert params.time_range is None
        assert params.page == 1
        assert params.page_size == 20

    def test_paging_coerced(self):
        params = ProjectsParams.model_validate({'page': '3', 'pageSize': '50'})
        assert (params.page, params.page_size) == (3, 50)

    @pytest.mark.parametrize("bad", [{'page': '0'}, {'pageSize': '101'}, {'page': 'two'}])
    def test_paging_bounds(self, bad):
        with pytest.raises(PydanticValidationError):
            ProjectsParams.model_validate(bad)


class TestRegistry:

    def test_order_and_titles(self):
        listed = list_aggregations()
        assert [item['kind'] for item in listed] == AGGREGATION_ORDER
        assert all(item['title'] for item in listed)

    def test_get_spec(self):
        assert get_spec('timePattern').kind == 'timePattern'

    def test_unknown_kind_logged(self, caplog):
        with caplog.at_level('WARNING', logger='analytics.registry'):
            with pytest.raises(KeyError):
                get_spec('heatmap')
        assert 'unknown_aggregation kind=heatmap' in caplog.text
