"""
Time Window Resolution

Turns the dashboard's (timeRange, startDate, endDate) filter tuple into a
concrete inclusive window of epoch seconds, evaluated against an injected
`now` so tests never depend on the wall clock.

Rules:
    - startDate AND endDate present -> custom window, takes priority over timeRange
      [startDate 00:00:00, endDate 23:59:59] in the analytics timezone
    - year    -> [Jan 1 00:00 of the current year, now]
    - quarter -> [1st day of the current calendar quarter, now]
    - month   -> [1st day of the current month, now]

The window is applied to publishTime only. Other time fields are never used
for primary filtering.

Usage:
    from services.time_window import resolve_time_window, InvalidRangeError

    window = resolve_time_window("quarter", now=datetime(2025, 5, 20, tzinfo=tz))
    # window.start -> 2025-04-01 00:00 local, window.end -> now
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Dict, Optional, Union

from dateutil import tz as dateutil_tz

from constants import (
    DEFAULT_ANALYTICS_TIMEZONE,
    TIME_RANGE_CUSTOM,
    TIME_RANGE_MONTH,
    TIME_RANGE_QUARTER,
    TIME_RANGE_YEAR,
    TIME_RANGES,
)
from utils.normalize import ValidationError, to_date


class InvalidRangeError(ValueError):
    """Malformed or inverted custom date range. Rejects the whole request."""

    def __init__(self, message: str, field: str = None, received_value=None):
        super().__init__(message)
        self.field = field
        self.received_value = received_value


DateLike = Union[str, date, datetime, None]


def get_analytics_timezone(name: Optional[str] = None) -> tzinfo:
    """Resolve a timezone name (default Asia/Shanghai). Unknown names raise ValueError."""
    name = name or DEFAULT_ANALYTICS_TIMEZONE
    zone = dateutil_tz.gettz(name)
    if zone is None:
        raise ValueError(f"Unknown timezone: {name!r}")
    return zone


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive [start, end] window in epoch seconds."""
    start: int
    end: int
    time_range: str
    tz_name: str = DEFAULT_ANALYTICS_TIMEZONE

    @property
    def tz(self) -> tzinfo:
        return get_analytics_timezone(self.tz_name)

    @property
    def start_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.start, tz=self.tz)

    @property
    def end_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.end, tz=self.tz)

    @property
    def year(self) -> int:
        """Calendar year the window ends in. Trend buckets are laid out for this year."""
        return self.end_datetime.year

    def contains(self, ts: Optional[int]) -> bool:
        return ts is not None and self.start <= ts <= self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            'start': self.start,
            'end': self.end,
            'startDate': self.start_datetime.date().isoformat(),
            'endDate': self.end_datetime.date().isoformat(),
            'timeRange': self.time_range,
            'timezone': self.tz_name,
        }


def _parse_date(value: DateLike, field: str) -> date:
    try:
        parsed = to_date(value, field=field)
    except ValidationError as e:
        raise InvalidRangeError(
            f"{field} must be a date (YYYY-MM-DD), got {value!r}",
            field=field,
            received_value=value,
        ) from e
    if parsed is None:
        raise InvalidRangeError(f"{field} is required", field=field)
    return parsed


def _localize_now(now: Optional[datetime], zone: tzinfo) -> datetime:
    if now is None:
        return datetime.now(tz=zone)
    if now.tzinfo is None:
        return now.replace(tzinfo=zone)
    return now.astimezone(zone)


def _epoch(dt: datetime) -> int:
    return int(dt.timestamp())


def resolve_time_window(
    time_range: Optional[str],
    start_date: DateLike = None,
    end_date: DateLike = None,
    now: Optional[datetime] = None,
    tz_name: Optional[str] = None,
) -> TimeWindow:
    """
    Resolve dashboard time filters to a TimeWindow.

    Args:
        time_range: 'year' | 'quarter' | 'month' | 'custom' (None -> 'year')
        start_date: Inclusive start date (YYYY-MM-DD string, date or datetime)
        end_date: Inclusive end date
        now: Reference instant; naive values are read in the analytics timezone
        tz_name: Analytics timezone name (default Asia/Shanghai)

    Returns:
        TimeWindow with inclusive epoch-second bounds

    Raises:
        InvalidRangeError: unknown time_range, unparsable dates, endDate < startDate,
            or 'custom' without both dates
    """
    tz_name = tz_name or DEFAULT_ANALYTICS_TIMEZONE
    zone = get_analytics_timezone(tz_name)
    time_range = time_range or TIME_RANGE_YEAR

    if time_range not in TIME_RANGES:
        raise InvalidRangeError(
            f"timeRange must be one of {TIME_RANGES}, got {time_range!r}",
            field='timeRange',
            received_value=time_range,
        )

    has_start = start_date not in (None, "")
    has_end = end_date not in (None, "")

    if has_start and has_end:
        start = _parse_date(start_date, 'startDate')
        end = _parse_date(end_date, 'endDate')
        if end < start:
            raise InvalidRangeError(
                f"endDate ({end.isoformat()}) is before startDate ({start.isoformat()})",
                field='endDate',
                received_value=end_date,
            )
        start_dt = datetime.combine(start, time.min, tzinfo=zone)
        # Inclusive end: last second of endDate
        end_dt = datetime.combine(end + timedelta(days=1), time.min, tzinfo=zone) - timedelta(seconds=1)
        return TimeWindow(_epoch(start_dt), _epoch(end_dt), TIME_RANGE_CUSTOM, tz_name)

    if time_range == TIME_RANGE_CUSTOM:
        raise InvalidRangeError(
            "timeRange=custom requires both startDate and endDate",
            field='startDate' if not has_start else 'endDate',
        )

    current = _localize_now(now, zone)

    if time_range == TIME_RANGE_YEAR:
        period_start = date(current.year, 1, 1)
    elif time_range == TIME_RANGE_QUARTER:
        quarter_month = ((current.month - 1) // 3) * 3 + 1
        period_start = date(current.year, quarter_month, 1)
    else:  # TIME_RANGE_MONTH
        period_start = date(current.year, current.month, 1)

    start_dt = datetime.combine(period_start, time.min, tzinfo=zone)
    return TimeWindow(_epoch(start_dt), _epoch(current), time_range, tz_name)
