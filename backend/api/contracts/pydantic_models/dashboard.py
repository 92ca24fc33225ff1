"""
Pydantic models for /dashboard endpoint params.

DashboardParams drives the seven aggregations; ProjectsParams adds paging
and free-text search for the project list.

Date RANGE validation (inverted range, custom without both dates) is not
done here. It belongs to the time window resolver, which raises
InvalidRangeError so the route can answer INVALID_RANGE rather than
INVALID_PARAMS.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import Field, field_validator

from .base import BaseParamsModel
from .types import CoercedBool, CoercedDate, CoercedInt, TimeRange


class DashboardParams(BaseParamsModel):
    """Pydantic model for /dashboard endpoint params."""

    # === Time Filter ===
    time_range: TimeRange = Field(
        default='year',
        alias='timeRange',
        description="Named range (year, quarter, month) or custom"
    )
    start_date: CoercedDate = Field(
        default=None,
        alias='startDate',
        description="Custom range start (inclusive, YYYY-MM-DD)"
    )
    end_date: CoercedDate = Field(
        default=None,
        alias='endDate',
        description="Custom range end (inclusive, YYYY-MM-DD)"
    )

    # === Dimension Filters ===
    area: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Area (province) filter, 'all' for none"
    )
    industry: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Industry filter, 'all' for none"
    )

    # === Options ===
    skip_cache: CoercedBool = Field(
        default=False,
        alias='skipCache',
        description="Bypass cache reads"
    )

    def to_filters(self) -> Dict[str, Any]:
        """Service-layer filter dict consumed by DashboardService.get_dashboard()."""
        return {
            'time_range': self.time_range,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'area': self.area,
            'industry': self.industry,
        }


class ProjectsParams(DashboardParams):
    """Pydantic model for /dashboard/projects endpoint params."""

    # Project list is not restricted to a window unless one is asked for
    time_range: Optional[Literal['year', 'quarter', 'month', 'custom']] = Field(
        default=None,
        alias='timeRange',
        description="Optional named range; omitted means all time"
    )
    search: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Substring match on title, buyer or winner"
    )
    page: CoercedInt = Field(default=1, ge=1)
    page_size: CoercedInt = Field(default=20, ge=1, le=100, alias='pageSize')

    @field_validator('time_range', mode='before')
    @classmethod
    def blank_time_range_is_none(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v
