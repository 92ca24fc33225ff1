"""
Record Field Sanitization
=========================

Pure cleaning functions applied to tender record fields before any
aggregation trusts them. No I/O, no database access.

Storage invariant: every timestamp is Unix epoch SECONDS. Millisecond values
are converted here, at the boundary, and nowhere else.

Usage:
    from utils.sanitize import clean_timestamp, clean_amount, sanitize_record

    publish_time = clean_timestamp(raw.get('publishTime'))   # int | None
    budget = clean_amount(raw.get('budget'))                  # Decimal | None

    record, warnings = sanitize_record(raw)
    for w in warnings:
        logger.info("field_cleaned %s", w)
"""

import json
import logging
import math
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from constants import (
    AMOUNT_FIELDS,
    AREA_NAME_MAP,
    CANONICAL_AREA_SUFFIXES,
    DEFAULT_AREA_SUFFIX,
    DETAIL_METADATA_DELIMITER,
    FIELD_MAX_LENGTHS,
    MAX_AMOUNT,
    MAX_VALID_YEAR,
    MILLISECOND_THRESHOLD,
    MIN_VALID_YEAR,
    RECORD_FIELD_ALIASES,
    TIMESTAMP_FIELDS,
    UNKNOWN_AREA,
)

logger = logging.getLogger('sanitize')

_NON_NUMERIC = re.compile(r'[^0-9.\-]')


class FieldCleaningWarning(UserWarning):
    """A record field failed validation and was nulled or truncated.

    Never raised. Collected by sanitize_record() so callers can log or report
    them while the record continues processing without the bad field.
    """

    def __init__(self, field: str, received_value=None, reason: str = "invalid"):
        super().__init__(f"{field}: {reason} ({received_value!r})")
        self.field = field
        self.received_value = received_value
        self.reason = reason


def clean_timestamp(raw: Any) -> Optional[int]:
    """
    Normalize a timestamp to epoch seconds.

    Accepts ints, floats and numeric strings. Values above 10,000,000,000 are
    treated as milliseconds. Anything whose calendar year (UTC) falls outside
    [1990, 2050] is rejected.

    Returns:
        Epoch seconds, or None if the value is missing or invalid
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if raw == "":
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None

    if abs(value) > MILLISECOND_THRESHOLD:
        value = value / 1000

    seconds = int(value)
    try:
        year = datetime.fromtimestamp(seconds, tz=timezone.utc).year
    except (OverflowError, OSError, ValueError):
        return None
    if year < MIN_VALID_YEAR or year > MAX_VALID_YEAR:
        return None
    return seconds


def clean_amount(raw: Any) -> Optional[Decimal]:
    """
    Normalize a currency amount (base unit, yuan) to Decimal.

    Strings are stripped of anything that isn't a digit, '.' or '-'
    ("¥1,200.50元" -> 1200.50). Negative values, values above the 10 billion
    sanity ceiling and non-numeric input all yield None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        if isinstance(raw, float) and (math.isnan(raw) or math.isinf(raw)):
            return None
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        stripped = _NON_NUMERIC.sub('', raw)
        if stripped in ('', '-', '.', '-.'):
            return None
        try:
            value = Decimal(stripped)
        except InvalidOperation:
            return None
    else:
        return None

    if not value.is_finite():
        return None
    if value < 0 or value > MAX_AMOUNT:
        return None
    return value


def truncate_field(raw: Any, max_len: int) -> str:
    """
    Coerce to str and truncate to max_len characters.

    Lossy: characters past the limit are dropped. Truncation counts code
    points, so a multi-byte character is never split.
    """
    value = raw if isinstance(raw, str) else str(raw)
    if len(value) > max_len:
        return value[:max_len]
    return value


def standardize_area_name(raw: Any) -> str:
    """
    Map an area (province) name to its canonical form.

    Rules, in order:
        1. Empty / None -> "未知"
        2. Exact hit in AREA_NAME_MAP -> mapped name ("内蒙" -> "内蒙古自治区")
        3. Already ends in 省/市/自治区/特别行政区 -> unchanged
        4. Otherwise append "省" ("广东" -> "广东省")

    This is a heuristic for chart grouping, not authoritative geocoding.
    """
    if raw is None:
        return UNKNOWN_AREA
    name = str(raw).strip()
    if not name:
        return UNKNOWN_AREA
    if name in AREA_NAME_MAP:
        return AREA_NAME_MAP[name]
    if name.endswith(CANONICAL_AREA_SUFFIXES):
        return name
    return f"{name}{DEFAULT_AREA_SUFFIX}"


def split_detail_metadata(detail: Optional[str]) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
    """
    Split a legacy `detail` blob into (text, metadata).

    Old uploads appended "\\n\\n<!-- METADATA_JSON -->\\n{...}" to the detail text.
    Unparseable sidecars are dropped; the text part is always kept.
    """
    if not detail or DETAIL_METADATA_DELIMITER not in detail:
        return detail, None

    text, _, sidecar = detail.rpartition(DETAIL_METADATA_DELIMITER)
    text = text.rstrip()
    try:
        metadata = json.loads(sidecar.strip())
    except (TypeError, ValueError):
        logger.debug("detail_metadata_unparseable len=%d", len(sidecar))
        return text, None
    if not isinstance(metadata, dict):
        return text, None
    return text, metadata


def _canonical_key(key: str) -> str:
    return RECORD_FIELD_ALIASES.get(key, key)


def sanitize_record(raw: Dict[str, Any]) -> Tuple[Dict[str, Any], List[FieldCleaningWarning]]:
    """
    Clean one raw upload record.

    - camelCase keys are mapped to storage names (publishTime -> publish_time)
    - timestamps go through clean_timestamp(), amounts through clean_amount()
    - bounded string fields are truncated to FIELD_MAX_LENGTHS
    - a legacy metadata sidecar in `detail` is split into `detail_metadata`

    Invalid fields are set to None rather than rejecting the record.

    Returns:
        (cleaned record, list of FieldCleaningWarning for nulled/truncated fields)
    """
    record: Dict[str, Any] = {}
    warnings: List[FieldCleaningWarning] = []

    for key, value in raw.items():
        record[_canonical_key(key)] = value

    for field in TIMESTAMP_FIELDS:
        value = record.get(field)
        if value in (None, ""):
            record[field] = None
            continue
        cleaned = clean_timestamp(value)
        if cleaned is None:
            warnings.append(FieldCleaningWarning(field, value, "invalid timestamp"))
        record[field] = cleaned

    for field in AMOUNT_FIELDS:
        value = record.get(field)
        if value in (None, ""):
            record[field] = None
            continue
        cleaned = clean_amount(value)
        if cleaned is None:
            warnings.append(FieldCleaningWarning(field, value, "invalid amount"))
        record[field] = cleaned

    for field, max_len in FIELD_MAX_LENGTHS.items():
        value = record.get(field)
        if value is None or value == "":
            record[field] = None
            continue
        truncated = truncate_field(value, max_len)
        if len(truncated) < len(str(value)):
            warnings.append(FieldCleaningWarning(field, value, f"truncated to {max_len}"))
        record[field] = truncated

    detail = record.get('detail')
    if detail is not None and not isinstance(detail, str):
        detail = str(detail)
    text, metadata = split_detail_metadata(detail)
    record['detail'] = text
    if metadata is not None and not record.get('detail_metadata'):
        record['detail_metadata'] = metadata

    return record, warnings
