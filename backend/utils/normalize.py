"""
Input Normalization Utilities
=============================

Single source of truth for normalizing scalar inputs (query strings,
env vars, service-layer dates). Pydantic param models and the time window
resolver both call into these.

Usage:
    from utils.normalize import to_date, to_bool, ValidationError

    try:
        start = to_date(request.args.get("startDate"), field="startDate")
    except ValidationError as e:
        return make_error_response("INVALID_PARAMS", str(e), field=e.field)
"""

from datetime import date, datetime
from typing import Optional, Union


class ValidationError(ValueError):
    """Raised when input cannot be normalized to expected type."""

    def __init__(self, message: str, field: str = None, received_value=None):
        super().__init__(message)
        self.field = field
        self.received_value = received_value


def to_bool(
    value: Optional[str],
    *,
    default: bool = False,
    field: str = None
) -> bool:
    """
    Convert string to bool.

    Accepts (case-insensitive):
        True: 'true', '1', 'yes', 'on'
        False: 'false', '0', 'no', 'off'

    Raises:
        ValidationError: If value is not a recognized boolean string
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    lower = str(value).strip().lower()
    if lower in ("true", "1", "yes", "on"):
        return True
    if lower in ("false", "0", "no", "off"):
        return False
    raise ValidationError(
        f"Expected bool, got: {value!r}",
        field=field,
        received_value=value
    )


def to_date(
    value: Optional[Union[str, date]],
    *,
    default: Optional[date] = None,
    field: str = None
) -> Optional[date]:
    """
    Convert a YYYY-MM-DD string to a date object.

    Dates and datetimes pass through (datetimes are truncated to their date).
    Partial dates such as "2024-03" are rejected: a custom range must name
    both of its days explicitly.

    Raises:
        ValidationError: If value cannot be parsed as date
    """
    if value is None or value == "":
        return default
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (ValueError, TypeError, AttributeError):
        raise ValidationError(
            f"Expected date (YYYY-MM-DD), got {type(value).__name__}: {value!r}",
            field=field,
            received_value=value
        )
