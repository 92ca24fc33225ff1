"""
Centralized constants for the tender dashboard.

SINGLE SOURCE OF TRUTH for:
- Time range identifiers and cache TTL classes
- Field length limits applied when records are sanitized
- Area (province) name standardization table
- Industry keyword dictionary and keyword stop words
- Anomaly heuristic thresholds
- Chart labels shared by the aggregations

Every lookup table here is plain data. Logic that consumes it lives in
utils/sanitize.py and services/analytics/.
"""

# =============================================================================
# TIME RANGES
# =============================================================================

TIME_RANGE_YEAR = "year"
TIME_RANGE_QUARTER = "quarter"
TIME_RANGE_MONTH = "month"
TIME_RANGE_CUSTOM = "custom"

TIME_RANGES = [TIME_RANGE_YEAR, TIME_RANGE_QUARTER, TIME_RANGE_MONTH, TIME_RANGE_CUSTOM]
DEFAULT_TIME_RANGE = TIME_RANGE_YEAR

# Day-of-week and hour bucketing use this zone unless ANALYTICS_TIMEZONE overrides it.
DEFAULT_ANALYTICS_TIMEZONE = "Asia/Shanghai"

SECONDS_PER_DAY = 86400

# "all" on the wire means "no filter"
FILTER_ALL = "all"


# =============================================================================
# CACHE TTL CLASSES
# =============================================================================

TTL_SHORT = "short"
TTL_MEDIUM = "medium"
TTL_LONG = "long"

CACHE_TTL_SECONDS = {
    TTL_SHORT: 300,     # 5 minutes
    TTL_MEDIUM: 1800,   # 30 minutes
    TTL_LONG: 7200,     # 2 hours
}

DEFAULT_TTL_CLASS = TTL_MEDIUM


def get_ttl_seconds(ttl_class: str) -> int:
    """Map a TTL class to seconds. Unknown classes fall back to medium."""
    return CACHE_TTL_SECONDS.get(ttl_class, CACHE_TTL_SECONDS[DEFAULT_TTL_CLASS])


# =============================================================================
# FIELD CLEANING
# =============================================================================

# Column widths of tender_projects. Longer values are truncated on ingestion.
FIELD_MAX_LENGTHS = {
    'id': 255,
    'title': 500,
    'area': 50,
    'city': 50,
    'district': 50,
    'buyer': 300,
    'buyer_class': 100,
    'industry': 100,
    'subtype': 100,
    'winner': 300,
    'buyer_tel': 50,
    'buyer_person': 50,
    'agency': 300,
    'agency_tel': 50,
    'agency_person': 50,
    'site': 255,
}

TENANT_ID_MAX_LENGTH = 64

TIMESTAMP_FIELDS = ('publish_time', 'bid_open_time', 'bid_end_time', 'sign_end_time')
AMOUNT_FIELDS = ('budget', 'bid_amount')

# Anything above this magnitude is a millisecond timestamp
MILLISECOND_THRESHOLD = 10_000_000_000
MIN_VALID_YEAR = 1990
MAX_VALID_YEAR = 2050

# Sanity ceiling for currency amounts (10 billion yuan)
MAX_AMOUNT = 10_000_000_000

# Legacy uploads appended a JSON sidecar to `detail` after this marker
DETAIL_METADATA_DELIMITER = "<!-- METADATA_JSON -->"

# Upload payloads use camelCase; storage uses snake_case
RECORD_FIELD_ALIASES = {
    'publishTime': 'publish_time',
    'bidOpenTime': 'bid_open_time',
    'bidEndTime': 'bid_end_time',
    'signEndTime': 'sign_end_time',
    'bidAmount': 'bid_amount',
    'buyerClass': 'buyer_class',
    'buyerTel': 'buyer_tel',
    'buyerPerson': 'buyer_person',
    'agencyTel': 'agency_tel',
    'agencyPerson': 'agency_person',
}


# =============================================================================
# AREA NAME STANDARDIZATION
# =============================================================================

UNKNOWN_AREA = "未知"

# Short or colloquial names -> canonical province-level names.
# Best-effort lookup, not authoritative geocoding.
AREA_NAME_MAP = {
    '北京': '北京市',
    '天津': '天津市',
    '上海': '上海市',
    '重庆': '重庆市',
    '内蒙': '内蒙古自治区',
    '内蒙古': '内蒙古自治区',
    '广西': '广西壮族自治区',
    '西藏': '西藏自治区',
    '宁夏': '宁夏回族自治区',
    '新疆': '新疆维吾尔自治区',
    '香港': '香港特别行政区',
    '澳门': '澳门特别行政区',
}

# Names already carrying one of these suffixes pass through unchanged
CANONICAL_AREA_SUFFIXES = ('省', '市', '自治区', '特别行政区')

# Appended to anything that is neither mapped nor suffixed
DEFAULT_AREA_SUFFIX = '省'


# =============================================================================
# AGGREGATION LABELS
# =============================================================================

OTHER_LABEL = "其他"

MONTH_LABELS = [f"{m}月" for m in range(1, 13)]

# Index 0 is Sunday
WEEKDAY_LABELS = ['周日', '周一', '周二', '周三', '周四', '周五', '周六']

HOUR_LABELS = [f"{h}时" for h in range(24)]

# (label, inclusive upper bound in days); None = unbounded
PROCESS_PERIOD_BUCKETS = [
    ('7天内', 7),
    ('8-14天', 14),
    ('15-30天', 30),
    ('31-60天', 60),
    ('60天以上', None),
]

# 万元
AMOUNT_UNIT_DIVISOR = 10000

TOP_INDUSTRIES = 5
TOP_BUDGET_INDUSTRIES = 5
TOP_CITIES = 15
TOP_KEYWORDS = 20
MAX_ANOMALIES = 10


# =============================================================================
# KEYWORDS
# =============================================================================

# Order is the display order of industryKeywords
INDUSTRY_KEYWORDS = {
    '医疗': ['医疗', '医院', '卫生', '药品', '医用', '诊疗', '医疗器械', '疾控'],
    '教育': ['教育', '学校', '教学', '培训', '校园', '大学', '中学', '小学', '幼儿园'],
    '建筑': ['建筑', '施工', '工程', '装修', '改造', '修缮', '土建', '道路'],
    '信息技术': ['信息化', '软件', '系统', '网络', '数据', '平台', '智慧', '信息技术', '服务器'],
    '能源': ['能源', '电力', '光伏', '燃气', '供热', '新能源', '储能', '发电'],
}

DICTIONARY_KEYWORDS = frozenset(
    keyword for keywords in INDUSTRY_KEYWORDS.values() for keyword in keywords
)

# Procurement boilerplate that would otherwise top every keyword chart
KEYWORD_STOPWORDS = frozenset([
    '项目', '采购', '招标', '公告', '中标', '成交', '结果', '公开', '竞争性',
    '磋商', '谈判', '询价', '单一来源', '公示', '服务', '有限公司', '公司',
    '关于', '进行', '以及', '及其', '相关',
])

KEYWORD_MIN_LENGTH = 2
KEYWORD_MAX_LENGTH = 4


# =============================================================================
# ANOMALY THRESHOLDS
# =============================================================================

# Percent deviation of bidAmount from budget
OVER_BUDGET_PERCENT = 50
UNDER_BUDGET_PERCENT = -30

# Extreme value rule
EXTREME_LOW_BID = 100
EXTREME_LOW_BID_MIN_BUDGET = 100000
EXTREME_RATIO = 10

# Publish -> bid open gap in days
LONG_PROCESS_DAYS = 180
SHORT_PROCESS_DAYS = 3

ANOMALY_OVER_BUDGET = "超预算"
ANOMALY_UNDER_BUDGET = "低于预算"
ANOMALY_EXTREME_VALUE = "极端差异"
ANOMALY_LONG_PROCESS = "流程过长"
ANOMALY_SHORT_PROCESS = "流程过短"
