"""
Class list filtering.

Given the full class list and the saved list, produce the visible list:

1. source = full list, or the saved list if the full list is empty
2. on-site only: drop rooms containing "online" or "zoom"
3. category: case-insensitive substring match
4. query: integer -> exact min_age match; text -> substring of all fields
5. sort by title (stable, case-sensitive)
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from hxgny.model import ClassRecord

_INT_RE = re.compile(r"^[+-]?\d+$")


def _parse_age(query: str) -> Optional[int]:
    if _INT_RE.match(query):
        return int(query)
    return None


def matches_query(record: ClassRecord, query: str) -> bool:
    q = (query or "").strip().lower()
    if not q:
        return True
    age = _parse_age(q)
    if age is not None:
        return record.min_age == age
    hay = " ".join(record.display_fields()).lower()
    return q in hay


def matches_category(record: ClassRecord, category: str) -> bool:
    wanted = (category or "").strip().lower()
    if not wanted:
        return True
    return wanted in record.category.lower()


def apply_filters(
    classes: Sequence[ClassRecord],
    saved: Sequence[ClassRecord] = (),
    query: str = "",
    category: str = "",
    on_site_only: bool = False,
) -> list[ClassRecord]:
    source = classes if classes else saved
    out = [
        c
        for c in source
        if (not on_site_only or c.is_on_site()) and matches_category(c, category) and matches_query(c, query)
    ]
    return sorted(out, key=lambda c: c.title)


def categories(classes: Sequence[ClassRecord]) -> list[str]:
    """
    Distinct non-blank categories, sorted.
    """
    return sorted({c.category.strip() for c in classes if c.category.strip()})
