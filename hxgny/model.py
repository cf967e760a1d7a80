"""
Central data model definitions used across the project.

This module defines the canonical structure of the records shown by the app:
- ClassRecord: one class offering from the classes sheet
- NoticeRecord: one dated weekly notice
- OneColumnRecord: one text block of a one-column page (intro, contact, ...)

All records serialize to plain dicts so that cache files and the saved
schedule share the same JSON layout.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import Any, Optional


# "8岁" -> 8 (number of years followed by the age unit glyph)
_AGE_UNIT_RE = re.compile(r"(\d{1,2})(?=\s*岁)")

# Table order matters: "1st" is checked before "10th"/"11th".
GRADE_AGES: list[tuple[str, int]] = [
    ("1st", 6),
    ("2nd", 7),
    ("3rd", 8),
    ("4th", 9),
    ("5th", 10),
    ("6th", 11),
    ("7th", 12),
    ("8th", 13),
    ("9th", 14),
    ("10th", 15),
    ("11th", 16),
    ("12th", 17),
]


def derive_min_age(grade: str) -> Optional[int]:
    """
    Derive the minimum age from a free-text grade descriptor.

    Rules are evaluated in priority order, first match wins:
    1. "<n>岁"                     -> n
    2. "prek" / "pre-k"            -> 4
    3. contains "k" but not "1st"  -> 5
    4. ordinal grade table          -> 6..17
    5. "adult"                      -> 18
    otherwise None.
    """
    normalized = (grade or "").strip().lower()
    if not normalized:
        return None

    match = _AGE_UNIT_RE.search(normalized)
    if match:
        return int(match.group(1))

    if "prek" in normalized or "pre-k" in normalized:
        return 4
    if "k" in normalized and "1st" not in normalized:
        return 5

    for keyword, age in GRADE_AGES:
        if keyword in normalized:
            return age

    if "adult" in normalized:
        return 18
    return None


def _known_fields(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class ClassRecord:
    """
    Represents one class offering as stored in the classes cache slot.
    """

    id: str
    title: str
    teacher: str = ""
    chinese_teacher: Optional[str] = None
    day: str = ""
    time: str = ""
    grade: str = ""
    room: str = ""
    building_hint: Optional[str] = None
    category: str = ""

    @property
    def min_age(self) -> Optional[int]:
        return derive_min_age(self.grade)

    def display_fields(self) -> list[str]:
        values = [
            self.title,
            self.teacher,
            self.chinese_teacher,
            self.day,
            self.time,
            self.grade,
            self.room,
            self.category,
            self.building_hint,
        ]
        return [v for v in values if v is not None]

    def is_on_site(self) -> bool:
        room = self.room.lower()
        return not ("online" in room or "zoom" in room)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClassRecord":
        """
        Build a record from stored JSON.

        Unknown keys are ignored so older/newer cache files still load.
        Raises ValueError if the identity or title is missing.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")
        known = _known_fields(cls, data)
        rid = str(known.get("id") or "").strip()
        title = str(known.get("title") or "").strip()
        if not rid or not title:
            raise ValueError("Class record requires 'id' and 'title'")
        return cls(
            id=rid,
            title=title,
            teacher=str(known.get("teacher") or ""),
            chinese_teacher=_opt_str(known.get("chinese_teacher")),
            day=str(known.get("day") or ""),
            time=str(known.get("time") or ""),
            grade=str(known.get("grade") or ""),
            room=str(known.get("room") or ""),
            building_hint=_opt_str(known.get("building_hint")),
            category=str(known.get("category") or ""),
        )


@dataclass
class NoticeRecord:
    """
    One weekly notice. date_epoch is seconds since the epoch.
    """

    id: str
    date_epoch: float
    message: str

    @property
    def formatted_date(self) -> str:
        d = datetime.fromtimestamp(self.date_epoch)
        return f"{d:%b} {d.day}, {d.year}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NoticeRecord":
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")
        known = _known_fields(cls, data)
        rid = str(known.get("id") or "").strip()
        message = str(known.get("message") or "").strip()
        if not rid or not message:
            raise ValueError("Notice record requires 'id' and 'message'")
        try:
            date_epoch = float(known.get("date_epoch"))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid date_epoch: {known.get('date_epoch')!r}") from exc
        return cls(id=rid, date_epoch=date_epoch, message=message)


@dataclass
class OneColumnRecord:
    id: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OneColumnRecord":
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")
        known = _known_fields(cls, data)
        rid = str(known.get("id") or "").strip()
        text = str(known.get("text") or "").strip()
        if not rid or not text:
            raise ValueError("One-column record requires 'id' and 'text'")
        return cls(id=rid, text=text)
