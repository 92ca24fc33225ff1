"""
Shared Pydantic types and validators for API params.

These delegate to utils/normalize.py and leave rejection to Pydantic:
- CoercedDate: "2024-01-01" -> date(2024, 1, 1)
- CoercedInt: "3" -> 3
- CoercedBool: "true" / "1" / "yes" -> True
- TimeRange: 'year' | 'quarter' | 'month' | 'custom', default 'year'
"""

from datetime import date
from typing import Annotated, Any, Literal, Optional

from pydantic import BeforeValidator

from constants import DEFAULT_TIME_RANGE
from utils.normalize import ValidationError, to_bool, to_date


def coerce_date(v: Any) -> Optional[date]:
    """
    Coerce value to date object via utils.normalize.to_date.

    Unparseable strings ("2024-03", "03/01/2024") are returned unchanged so
    Pydantic reports them as date errors on the right field.
    """
    try:
        return to_date(v)
    except ValidationError:
        return v  # type: ignore


def coerce_int(v: Any) -> Optional[int]:
    """Coerce value to int."""
    if v is None or v == '':
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        try:
            return int(v.strip())
        except ValueError:
            return v  # type: ignore
    return v  # type: ignore


def coerce_bool(v: Any) -> bool:
    """Coerce value to bool. Unrecognized strings are left for Pydantic to reject."""
    try:
        return to_bool(v)
    except ValidationError:
        return v  # type: ignore


def default_time_range(v: Any) -> Any:
    """Empty timeRange means the default range."""
    if v is None or (isinstance(v, str) and v.strip() == ''):
        return DEFAULT_TIME_RANGE
    if isinstance(v, str):
        return v.strip().lower()
    return v


# Annotated types for use in Pydantic models
CoercedDate = Annotated[Optional[date], BeforeValidator(coerce_date)]
CoercedInt = Annotated[Optional[int], BeforeValidator(coerce_int)]
CoercedBool = Annotated[bool, BeforeValidator(coerce_bool)]
TimeRange = Annotated[
    Literal['year', 'quarter', 'month', 'custom'],
    BeforeValidator(default_time_range),
]
