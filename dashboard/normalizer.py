"""Convert heterogeneous backend payloads into the dashboard's canonical shapes.

The backend is loose about what it returns: the count endpoint may answer with
plain text or JSON, and the by-year endpoint returns either ``[year, total]``
pairs or objects whose key names vary between deployments. Every function in
this module is total: malformed input degrades to an empty value instead of
raising.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .config import StudentFieldNames
from .models import StudentRecord, YearAggregate

logger = logging.getLogger("students.dashboard.normalizer")


class PayloadShape(str, Enum):
    LIST = "list"
    COUNT = "count"
    YEAR_AGGREGATES = "year_aggregates"


class RowKind(str, Enum):
    """Variants a single by-year row can take."""

    CANONICAL = "canonical"
    PAIR = "pair"
    KEYED = "keyed"
    UNKNOWN = "unknown"


def _is_sequence(value: object) -> bool:
    return isinstance(value, (list, tuple))


def _coerce_int(value: object) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if math.isfinite(number) else None
    return None


def normalize_list(payload: object) -> List[Any]:
    if _is_sequence(payload):
        return list(payload)  # type: ignore[arg-type]
    return []


def normalize_count(payload: object) -> int:
    """Parse a count sent as text or JSON. Anything unparsable counts as 0."""
    value = _coerce_int(payload)
    return value if value is not None else 0


def classify_row(row: object) -> RowKind:
    if isinstance(row, YearAggregate):
        return RowKind.CANONICAL
    if _is_sequence(row) and len(row) == 2:  # type: ignore[arg-type]
        return RowKind.PAIR
    if isinstance(row, Mapping):
        return RowKind.KEYED
    return RowKind.UNKNOWN


def _parse_canonical_row(row: YearAggregate) -> YearAggregate:
    return row


def _parse_pair_row(row: Sequence[object]) -> YearAggregate:
    return YearAggregate(year=_coerce_int(row[0]), total=_coerce_int(row[1]))


def _parse_keyed_row(row: Mapping[object, object]) -> YearAggregate:
    year: object = None
    total: object = None
    year_found = total_found = False
    for key, value in row.items():
        lowered = str(key).lower()
        if not year_found and "year" in lowered:
            year, year_found = value, True
        if not total_found and ("count" in lowered or "total" in lowered):
            total, total_found = value, True
    return YearAggregate(year=_coerce_int(year), total=_coerce_int(total))


def _parse_unknown_row(_row: object) -> YearAggregate:
    return YearAggregate(year=None, total=None)


_ROW_PARSERS: Dict[RowKind, Callable[[Any], YearAggregate]] = {
    RowKind.CANONICAL: _parse_canonical_row,
    RowKind.PAIR: _parse_pair_row,
    RowKind.KEYED: _parse_keyed_row,
    RowKind.UNKNOWN: _parse_unknown_row,
}


def parse_year_row(row: object) -> YearAggregate:
    return _ROW_PARSERS[classify_row(row)](row)


def normalize_year_aggregates(payload: object) -> List[YearAggregate]:
    """Map by-year rows to :class:`YearAggregate` and drop rows without a year."""
    rows = [parse_year_row(row) for row in normalize_list(payload)]
    return [row for row in rows if row.year is not None]


def normalize(payload: object, shape: PayloadShape) -> Any:
    shape = PayloadShape(shape)
    if shape is PayloadShape.LIST:
        return normalize_list(payload)
    if shape is PayloadShape.COUNT:
        return normalize_count(payload)
    if shape is PayloadShape.YEAR_AGGREGATES:
        return normalize_year_aggregates(payload)
    raise ValueError(f"Unknown payload shape: {shape!r}")


def _first_present(item: Mapping[str, object], keys: Sequence[str]) -> object:
    for key in keys:
        if key in item and item[key] is not None:
            return item[key]
    return None


def parse_birth_date(value: object) -> Optional[date]:
    """Read a date-only value, ignoring any time component the server adds."""
    if _is_sequence(value) and len(value) >= 3:  # type: ignore[arg-type]
        parts = [_coerce_int(part) for part in value[:3]]  # type: ignore[index]
        if None in parts:
            return None
        try:
            return date(*parts)  # type: ignore[arg-type]
        except (ValueError, OverflowError):
            return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def parse_student(item: object, fields: StudentFieldNames) -> Optional[StudentRecord]:
    if isinstance(item, StudentRecord):
        return item
    if not isinstance(item, Mapping):
        return None
    student_id = _coerce_int(item.get("id"))
    if student_id is None:
        return None

    first_name = _first_present(item, (fields.first_name, "firstName", "first_name"))
    last_name = _first_present(item, (fields.last_name, "lastName", "last_name"))
    birth_date = _first_present(item, (fields.birth_date, "birthDate", "birth_date"))
    return StudentRecord(
        id=student_id,
        first_name=str(first_name) if first_name is not None else "",
        last_name=str(last_name) if last_name is not None else "",
        birth_date=parse_birth_date(birth_date),
    )


def normalize_students(payload: object, fields: Optional[StudentFieldNames] = None) -> List[StudentRecord]:
    """Turn the student list payload into records, skipping unusable entries."""
    fields = fields or StudentFieldNames()
    students: List[StudentRecord] = []
    for item in normalize_list(payload):
        record = parse_student(item, fields)
        if record is None:
            logger.debug("Skipping malformed student entry: %r", item)
            continue
        students.append(record)
    return students


__all__ = [
    "PayloadShape",
    "RowKind",
    "classify_row",
    "normalize",
    "normalize_count",
    "normalize_list",
    "normalize_students",
    "normalize_year_aggregates",
    "parse_birth_date",
    "parse_student",
    "parse_year_row",
]
