"""
Aggregation Tests

Each aggregation's compute() is a pure function of (records, window, filters),
so these tests build TenderRecords in memory - no DB.

Run with: pytest tests/test_aggregations.py -v
"""
from decimal import Decimal

import pytest

from services.analytics import anomaly, budget, industry, keyword, regional, time_pattern, trend
from services.analytics.base import DimensionFilters, format_signed_percent, to_wan


def D(value):
    return Decimal(str(value))


# =============================================================================
# HELPERS
# =============================================================================

class TestHelpers:

    @pytest.mark.parametrize("value, expected", [
        (51.0, "+51.0%"),
        (-35.0, "-35.0%"),
        (0.0, "+0.0%"),
        (12.345, "+12.3%"),
        (float('nan'), "+0.0%"),
    ])
    def test_format_signed_percent(self, value, expected):
        assert format_signed_percent(value) == expected

    def test_to_wan(self):
        assert to_wan(D(1234567)) == 123.46
        assert to_wan(None) == 0.0

    def test_dimension_filters_all_means_none(self):
        f = DimensionFilters.from_params(area="all", industry="  ")
        assert f.area is None
        assert f.industry is None


# =============================================================================
# TREND
# =============================================================================

class TestTrend:

    def test_always_twelve_slots(self, window_2024, no_filters):
        result = trend.compute([], window_2024, no_filters)
        assert result['months'] == [f"{m}月" for m in range(1, 13)]
        for key in ('projectCounts', 'budgetSums', 'avgBudgets'):
            assert len(result[key]) == 12
        assert result['year'] == 2024

    def test_monthly_buckets(self, window_2024, no_filters, make_record, ts):
        records = [
            make_record(publish_time=ts(2024, 1, 5), budget=D(100000)),
            make_record(publish_time=ts(2024, 1, 20), budget=D(300000)),
            make_record(publish_time=ts(2024, 3, 1), budget=None),
        ]
        result = trend.compute(records, window_2024, no_filters)

        assert result['projectCounts'][0] == 2
        assert result['projectCounts'][2] == 1
        assert result['budgetSums'][0] == 40.0      # 400,000 yuan = 40 万元
        assert result['avgBudgets'][0] == 20.0
        assert result['avgBudgets'][2] == 0.0       # sum 0 over 1 project

    def test_average_divides_by_project_count(self, window_2024, no_filters, make_record, ts):
        records = [
            make_record(publish_time=ts(2024, 1, 5), budget=D(100000)),
            make_record(publish_time=ts(2024, 1, 9), budget=None),
        ]
        result = trend.compute(records, window_2024, no_filters)

        assert result['projectCounts'][0] == 2
        assert result['budgetSums'][0] == 10.0
        assert result['avgBudgets'][0] == 5.0

    def test_month_uses_analytics_timezone(self, window_2024, no_filters, make_record, ts):
        # 2024-02-01 00:30 Shanghai is still January in UTC
        records = [make_record(publish_time=ts(2024, 2, 1, 0, 30))]
        result = trend.compute(records, window_2024, no_filters)
        assert result['projectCounts'][1] == 1
        assert result['projectCounts'][0] == 0

    def test_other_years_ignored(self, window_2024, no_filters, make_record, ts):
        records = [make_record(publish_time=ts(2023, 12, 31, 23))]
        result = trend.compute(records, window_2024, no_filters)
        assert sum(result['projectCounts']) == 0


# =============================================================================
# REGIONAL
# =============================================================================

class TestRegional:

    def test_provinces_standardized_and_ranked(self, window_2024, no_filters, make_record):
        records = [
            make_record(area="广东"),
            make_record(area="广东省"),
            make_record(area="内蒙"),
            make_record(area=None),
        ]
        result = regional.compute(records, window_2024, no_filters)
        assert result['provinces'][0] == {'name': '广东省', 'value': 2}
        names = [p['name'] for p in result['provinces']]
        assert '内蒙古自治区' in names
        assert '未知' in names

    def test_ties_sorted_by_name(self, window_2024, no_filters, make_record):
        records = [make_record(area="浙江省"), make_record(area="安徽省")]
        result = regional.compute(records, window_2024, no_filters)
        assert [p['name'] for p in result['provinces']] == sorted(["浙江省", "安徽省"])

    def test_top_cities_capped_at_fifteen(self, window_2024, no_filters, make_record):
        records = [make_record(area="广东省", city=f"城市{i:02d}") for i in range(20)]
        result = regional.compute(records, window_2024, no_filters)
        assert len(result['topCities']) == 15

    def test_top_cities_empty_when_area_filtered(self, window_2024, make_record):
        records = [make_record(area="广东省", city="广州市")]
        result = regional.compute(records, window_2024, DimensionFilters(area="广东省"))
        assert result['topCities'] == []
        assert result['provinces'] == [{'name': '广东省', 'value': 1}]


# =============================================================================
# INDUSTRY
# =============================================================================

class TestIndustry:

    def test_top_five_plus_other(self, window_2024, no_filters, make_record):
        counts = {'医疗': 6, '教育': 5, '建筑': 4, '能源': 3, '交通': 2, '农业': 1, '水利': 1}
        records = [make_record(industry=name) for name, n in counts.items() for _ in range(n)]
        result = industry.compute(records, window_2024, no_filters)

        assert result['labels'] == ['医疗', '教育', '建筑', '能源', '交通', '其他']
        assert result['data'] == [6, 5, 4, 3, 2, 2]

    def test_sum_equals_industry_bearing_records(self, window_2024, no_filters, make_record):
        records = (
            [make_record(industry=f"行业{i}") for i in range(9)]
            + [make_record(industry=None), make_record(industry="  ")]
        )
        result = industry.compute(records, window_2024, no_filters)
        assert sum(result['data']) == 9
        assert result['unclassified'] == 2

    def test_no_other_bucket_when_five_or_fewer(self, window_2024, no_filters, make_record):
        records = [make_record(industry="医疗"), make_record(industry="教育")]
        result = industry.compute(records, window_2024, no_filters)
        assert result['labels'] == ['医疗', '教育']

    def test_literal_other_folds_into_remainder(self, window_2024, no_filters, make_record):
        records = [make_record(industry="其他")] * 3 + [make_record(industry="医疗")]
        result = industry.compute(records, window_2024, no_filters)
        assert result['labels'] == ['医疗', '其他']
        assert result['data'] == [1, 3]


# =============================================================================
# BUDGET
# =============================================================================

class TestBudget:

    def test_grouped_and_formatted(self, window_2024, no_filters, make_record):
        records = [
            make_record(industry="医疗", budget=D(1000000), bid_amount=D(900000)),
            make_record(industry="医疗", budget=D(1000000), bid_amount=D(1100000)),
            make_record(industry="教育", budget=D(500000), bid_amount=D(400000)),
        ]
        result = budget.compute(records, window_2024, no_filters)

        assert result['industries'] == ['医疗', '教育']
        assert result['budgetValues'] == [200.0, 50.0]
        assert result['actualValues'] == [200.0, 40.0]
        assert result['diffPercentages'] == ['+0.0%', '-20.0%']

    def test_requires_positive_budget_and_bid(self, window_2024, no_filters, make_record):
        records = [
            make_record(industry="医疗", budget=D(0), bid_amount=D(100)),
            make_record(industry="医疗", budget=None, bid_amount=D(100)),
            make_record(industry="医疗", budget=D(100), bid_amount=None),
        ]
        result = budget.compute(records, window_2024, no_filters)
        assert result['industries'] == []

    def test_null_industry_grouped_as_other(self, window_2024, no_filters, make_record):
        records = [make_record(industry=None, budget=D(1000), bid_amount=D(1000))]
        result = budget.compute(records, window_2024, no_filters)
        assert result['industries'] == ['其他']

    def test_top_five_by_budget(self, window_2024, no_filters, make_record):
        records = [
            make_record(industry=f"行业{i}", budget=D(1000 * (i + 1)), bid_amount=D(1000))
            for i in range(7)
        ]
        result = budget.compute(records, window_2024, no_filters)
        assert result['industries'] == ['行业6', '行业5', '行业4', '行业3', '行业2']


# =============================================================================
# TIME PATTERN
# =============================================================================

class TestTimePattern:

    def test_weekday_sunday_first(self, window_2024, no_filters, make_record, ts):
        # 2024-06-02 is a Sunday, 2024-06-03 a Monday
        records = [
            make_record(publish_time=ts(2024, 6, 2, 9)),
            make_record(publish_time=ts(2024, 6, 3, 14)),
        ]
        result = time_pattern.compute(records, window_2024, no_filters)
        assert result['dayOfWeekDistribution']['labels'][0] == '周日'
        assert result['dayOfWeekDistribution']['data'] == [1, 1, 0, 0, 0, 0, 0]
        assert result['hourDistribution']['data'][9] == 1
        assert result['hourDistribution']['data'][14] == 1
        assert result['totalProjects'] == 2

    def test_process_periods(self, window_2024, no_filters, make_record, ts):
        base = ts(2024, 6, 1)
        day = 86400
        records = [
            make_record(publish_time=base, bid_open_time=base + 7 * day),       # 7 -> 7天内
            make_record(publish_time=base, bid_open_time=base + 7 * day + 1),   # ceil -> 8
            make_record(publish_time=base, bid_open_time=base + 30 * day),      # 15-30
            make_record(publish_time=base, bid_open_time=base + 61 * day),      # 60+
            make_record(publish_time=base, bid_open_time=base - 2 * day),       # |gap| = 2
            make_record(publish_time=base, bid_open_time=None),
        ]
        result = time_pattern.compute(records, window_2024, no_filters)
        periods = result['processPeriods']
        assert periods['distribution']['labels'] == ['7天内', '8-14天', '15-30天', '31-60天', '60天以上']
        assert periods['distribution']['data'] == [2, 1, 1, 0, 1]
        assert periods['average'] == "21.6"    # (7 + 8 + 30 + 61 + 2) / 5

    def test_average_zero_without_pairs(self, window_2024, no_filters, make_record, ts):
        records = [make_record(publish_time=ts(2024, 6, 1))]
        result = time_pattern.compute(records, window_2024, no_filters)
        assert result['processPeriods']['average'] == "0"


# =============================================================================
# KEYWORD
# =============================================================================

class TestKeyword:

    def test_industry_counted_once_per_project(self, window_2024, no_filters, make_record):
        records = [
            make_record(title="医院医疗设备采购", detail="医疗 医疗 医疗"),
            make_record(title="学校教学楼修缮工程"),
        ]
        result = keyword.compute(records, window_2024, no_filters)
        counts = {item['label']: item['count'] for item in result['industryKeywords']}
        assert counts['医疗'] == 1
        assert counts['教育'] == 1
        assert counts['建筑'] == 1
        assert counts['能源'] == 0
        assert [item['label'] for item in result['industryKeywords']] == ['医疗', '教育', '建筑', '信息技术', '能源']

    def test_free_keywords_exclude_dictionary_and_stopwords(self, window_2024, no_filters, make_record):
        records = [make_record(title="医疗 采购"), make_record(title="园林绿化")]
        result = keyword.compute(records, window_2024, no_filters)
        labels = [item['label'] for item in result['topKeywords']]
        assert '医疗' not in labels
        assert '采购' not in labels
        assert '园林' in labels
        assert '园林绿化' in labels

    def test_top_keywords_capped_and_ranked(self, window_2024, no_filters, make_record):
        records = [make_record(title="绿化养护") for _ in range(3)] + [make_record(title="甲乙丙丁戊己庚辛壬癸子丑寅卯辰巳午未申酉戌亥")]
        result = keyword.compute(records, window_2024, no_filters)
        assert len(result['topKeywords']) == 20
        assert result['topKeywords'][0]['count'] == 3
        assert result['totalProjects'] == 4

    def test_non_cjk_ignored(self, window_2024, no_filters, make_record):
        records = [make_record(title="ABC 123")]
        result = keyword.compute(records, window_2024, no_filters)
        assert result['topKeywords'] == []


# =============================================================================
# ANOMALY
# =============================================================================

class TestBudgetAnomaly:

    def test_threshold_boundaries(self, window_2024, no_filters, make_record):
        records = [
            make_record(id="over", budget=D(1000), bid_amount=D(1510)),
            make_record(id="under", budget=D(1000), bid_amount=D(650)),
            make_record(id="ok", budget=D(1000), bid_amount=D(720)),
        ]
        result = anomaly.compute(records, window_2024, no_filters)
        items = {item['id']: item for item in result['budgetAnomalies']}

        assert items['over']['diffPercentage'] == "+51.0%"
        assert items['over']['anomalyType'] == "超预算"
        assert items['under']['diffPercentage'] == "-35.0%"
        assert items['under']['anomalyType'] == "低于预算"
        assert 'ok' not in items

    def test_exactly_fifty_percent_not_flagged(self, window_2024, no_filters, make_record):
        records = [make_record(budget=D(1000), bid_amount=D(1500))]
        result = anomaly.compute(records, window_2024, no_filters)
        assert result['budgetAnomalies'] == []

    def test_sorted_by_absolute_deviation(self, window_2024, no_filters, make_record):
        records = [
            make_record(id="a", budget=D(1000), bid_amount=D(1600)),   # +60
            make_record(id="b", budget=D(1000), bid_amount=D(200)),    # -80
            make_record(id="c", budget=D(1000), bid_amount=D(1700)),   # +70
        ]
        result = anomaly.compute(records, window_2024, no_filters)
        assert [item['id'] for item in result['budgetAnomalies']] == ["b", "c", "a"]

    def test_capped_at_ten(self, window_2024, no_filters, make_record):
        records = [make_record(budget=D(1000), bid_amount=D(2000 + i)) for i in range(15)]
        result = anomaly.compute(records, window_2024, no_filters)
        assert len(result['budgetAnomalies']) == 10


class TestValueAnomaly:

    def test_tiny_bid_on_large_budget(self, window_2024, no_filters, make_record):
        records = [make_record(id="tiny", budget=D(200000), bid_amount=D(50))]
        result = anomaly.compute(records, window_2024, no_filters)
        item = result['valueAnomalies'][0]
        assert item['id'] == "tiny"
        assert item['anomalyType'] == "极端差异"
        assert item['ratio'] == "0.00"

    def test_bid_over_ten_times_budget(self, window_2024, no_filters, make_record):
        records = [make_record(id="huge", budget=D(1000), bid_amount=D(12000))]
        result = anomaly.compute(records, window_2024, no_filters)
        assert result['valueAnomalies'][0]['ratio'] == "12.00"

    def test_small_budget_small_bid_not_extreme(self, window_2024, no_filters, make_record):
        records = [make_record(budget=D(50000), bid_amount=D(50))]
        result = anomaly.compute(records, window_2024, no_filters)
        assert result['valueAnomalies'] == []

    def test_sorted_by_extremity(self, window_2024, no_filters, make_record):
        records = [
            make_record(id="x20", budget=D(1000), bid_amount=D(20000)),
            make_record(id="zero", budget=D(200000), bid_amount=D(0)),
            make_record(id="x11", budget=D(1000), bid_amount=D(11000)),
        ]
        result = anomaly.compute(records, window_2024, no_filters)
        assert [item['id'] for item in result['valueAnomalies']] == ["zero", "x20", "x11"]


class TestTimeAnomaly:

    def test_three_day_floor(self, window_2024, no_filters, make_record, ts):
        t = ts(2024, 6, 1, 10)
        day = 86400
        records = [
            make_record(id="three", publish_time=t, bid_open_time=t + 3 * day),
            make_record(id="two", publish_time=t, bid_open_time=t + 2 * day),
        ]
        result = anomaly.compute(records, window_2024, no_filters)
        items = {item['id']: item for item in result['timeAnomalies']}
        assert 'three' not in items
        assert items['two']['anomalyType'] == "流程过短"
        assert items['two']['diffDays'] == 2

    def test_long_process(self, window_2024, no_filters, make_record, ts):
        t = ts(2024, 1, 1)
        records = [make_record(publish_time=t, bid_open_time=t + 181 * 86400)]
        result = anomaly.compute(records, window_2024, no_filters)
        assert result['timeAnomalies'][0]['anomalyType'] == "流程过长"
        assert result['timeAnomalies'][0]['diffDays'] == 181

    def test_negative_gap_counted_not_listed(self, window_2024, no_filters, make_record, ts):
        t = ts(2024, 6, 1)
        records = [make_record(publish_time=t, bid_open_time=t - 3600)]
        result = anomaly.compute(records, window_2024, no_filters)
        assert result['timeAnomalies'] == []
        assert result['statistics']['negativeGapCount'] == 1

    def test_sorted_by_distance_past_threshold(self, window_2024, no_filters, make_record, ts):
        t = ts(2024, 1, 1)
        day = 86400
        records = [
            make_record(id="short0", publish_time=t, bid_open_time=t),                 # 3 past floor
            make_record(id="long200", publish_time=t, bid_open_time=t + 200 * day),    # 20 past ceiling
            make_record(id="short2", publish_time=t, bid_open_time=t + 2 * day),       # 1 past floor
        ]
        result = anomaly.compute(records, window_2024, no_filters)
        assert [item['id'] for item in result['timeAnomalies']] == ["long200", "short0", "short2"]


class TestAnomalyStatistics:

    def test_means_exclude_zero_and_null(self, window_2024, no_filters, make_record):
        records = [
            make_record(budget=D(100000), bid_amount=D(80000)),
            make_record(budget=D(300000), bid_amount=None),
            make_record(budget=D(0), bid_amount=D(0)),
            make_record(budget=None, bid_amount=None),
        ]
        stats = anomaly.compute(records, window_2024, no_filters)['statistics']
        assert stats['avgBudget'] == 20.0
        assert stats['avgBidAmount'] == 8.0
        assert stats['budgetCount'] == 2
        assert stats['bidAmountCount'] == 1
        assert stats['totalProjects'] == 4

    def test_empty(self, window_2024, no_filters):
        result = anomaly.compute([], window_2024, no_filters)
        assert result == anomaly.default()
