"""
Row mapping (raw sheet rows -> typed records).

Sheet columns are maintained by hand, so the mappers are defensive:
- keys are trimmed and lower-cased before lookup
- each field accepts several column names, first non-blank value wins
- a row that cannot produce a valid record is dropped (None), never raised

Identity rules:
- a source "id" column is used as-is
- otherwise the id is derived from the row content, so fetching the same
  row twice always yields the same id (saved classes depend on this)
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional, TypeVar

from hxgny.model import ClassRecord, NoticeRecord, OneColumnRecord, derive_min_age

T = TypeVar("T")

__all__ = [
    "NOTICE_DATE_FORMATS",
    "derive_min_age",
    "map_class_row",
    "map_notice_row",
    "map_one_column_row",
    "map_rows",
    "normalize_row",
    "parse_notice_date",
    "stable_id",
    "value_for",
]

# Namespace for content-derived ids. Changing it changes every derived id.
_ID_NAMESPACE = uuid.UUID("6f1c2a4e-8a53-4f1e-9a55-3f0c1b7d2e90")

# yyyy-MM-dd, MM/dd/yyyy, M/d/yyyy, M/d/yy
# strptime accepts non-padded month/day for %m/%d, and %Y needs four digits,
# so "3/1/24" only matches the last format.
NOTICE_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y")


def normalize_row(row: Mapping[str, str]) -> dict[str, str]:
    """
    Trim and lower-case keys, trim values. Insertion order is kept.
    """
    out: dict[str, str] = {}
    for key, value in row.items():
        nkey = str(key).strip().lower()
        out[nkey] = "" if value is None else str(value).strip()
    return out


def value_for(row: Mapping[str, str], *keys: str) -> Optional[str]:
    """
    Return the first non-blank value among the given column names.

    The row must already be normalized.
    """
    for key in keys:
        value = row.get(key.lower())
        if value is not None and value.strip():
            return value.strip()
    return None


def stable_id(*parts: str) -> str:
    """
    Deterministic identifier derived from content parts.
    """
    key = "\x1f".join(p.strip() for p in parts)
    return str(uuid.uuid5(_ID_NAMESPACE, key))


def parse_notice_date(raw: str) -> Optional[float]:
    """
    Parse a free-text notice date into epoch seconds (local midnight).

    Returns None if the text matches none of NOTICE_DATE_FORMATS.
    """
    text = (raw or "").strip()
    if not text:
        return None
    for fmt in NOTICE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).timestamp()
        except ValueError:
            continue
    return None


def map_class_row(row: Mapping[str, str]) -> Optional[ClassRecord]:
    n = normalize_row(row)

    title = value_for(n, "title", "name")
    if title is None:
        return None

    teacher = value_for(n, "teacher", "instructor") or ""
    day = value_for(n, "day") or ""
    time_ = value_for(n, "time") or ""
    room = value_for(n, "room", "location") or ""

    rid = value_for(n, "id") or stable_id(title, teacher, day, time_, room)

    return ClassRecord(
        id=rid,
        title=title,
        teacher=teacher,
        chinese_teacher=value_for(n, "chineseteacher", "chinese teacher", "中文老师"),
        day=day,
        time=time_,
        grade=value_for(n, "grade", "age") or "",
        room=room,
        building_hint=value_for(n, "buildinghint", "building", "hint"),
        category=value_for(n, "category", "type") or "",
    )


def map_notice_row(row: Mapping[str, str], now: Optional[float] = None) -> Optional[NoticeRecord]:
    """
    Map one notice row.

    The message is the first non-blank value that differs from the date
    column. An unparseable or missing date falls back to `now`, so such
    notices sort as the most recent ones.
    """
    n = normalize_row(row)
    date_raw = n.get("date")

    message = None
    for value in n.values():
        if value and value != date_raw:
            message = value
            break
    if message is None:
        return None

    date_epoch = parse_notice_date(date_raw or "")
    if date_epoch is None:
        date_epoch = time.time() if now is None else now

    rid = value_for(n, "id") or stable_id(date_raw or "", message)
    return NoticeRecord(id=rid, date_epoch=date_epoch, message=message)


def map_one_column_row(row: Mapping[str, str], column: Optional[str] = None) -> Optional[OneColumnRecord]:
    """
    Map one row of a single-column page.

    With a configured column, that column is read (case-insensitive); if the
    sheet has no such column the first non-blank value is used instead.
    """
    n = normalize_row(row)

    text: Optional[str] = None
    if column is not None and column.strip().lower() in n:
        text = n[column.strip().lower()]
    else:
        text = next((v for v in n.values() if v), None)

    cleaned = (text or "").strip()
    if not cleaned:
        return None

    rid = value_for(n, "id") or stable_id(cleaned)
    return OneColumnRecord(id=rid, text=cleaned)


def map_rows(rows: Iterable[Mapping[str, str]], mapper: Callable[[Mapping[str, str]], Optional[T]]) -> list[T]:
    """
    Apply mapper to every row, dropping rows that map to None.
    """
    out: list[T] = []
    for row in rows:
        record = mapper(row)
        if record is not None:
            out.append(record)
    return out
