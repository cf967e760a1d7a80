"""
Persistent storage for the user's saved classes ("my schedule").

This module manages the file:

    <data_dir>/saved_classes.json

Design rationale:
- the classes cache slot holds the complete fetched class list
- saved_classes.json stores full copies of the user's chosen classes

Keeping full copies (not just ids) means "my schedule" still shows a class
after it disappears from the sheet or before the first successful fetch.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from hxgny.cache import write_json_atomic
from hxgny.config import DEFAULT_DATA_DIR
from hxgny.model import ClassRecord


def _default_saved_path() -> Path:
    """
    Return the default path of saved_classes.json.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    return DEFAULT_DATA_DIR / "saved_classes.json"


def dedupe_by_id(items: Iterable[ClassRecord]) -> list[ClassRecord]:
    """
    Drop later records whose id was already seen, preserving order.
    """
    seen: set[str] = set()
    out: list[ClassRecord] = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        out.append(item)
    return out


def load_saved_classes(path: str | Path | None = None) -> list[ClassRecord]:
    """
    Load saved classes from saved_classes.json.

    Returns an empty list if the file does not exist or is invalid.
    Entries that are not valid class records are skipped.
    """
    saved_path = Path(path) if path is not None else _default_saved_path()

    # First run: nothing saved yet
    if not saved_path.exists():
        return []

    try:
        data = json.loads(saved_path.read_text(encoding="utf-8"))
        raw = data.get("saved_classes", [])
    except (OSError, json.JSONDecodeError, UnicodeDecodeError, AttributeError):
        return []

    if not isinstance(raw, list):
        return []

    out: list[ClassRecord] = []
    for entry in raw:
        try:
            out.append(ClassRecord.from_dict(entry))
        except ValueError:
            continue
    return dedupe_by_id(out)


def save_saved_classes(items: Iterable[ClassRecord], path: str | Path | None = None) -> None:
    """
    Save the full saved list, overwriting prior contents.

    The file is replaced atomically and parent directories are created
    if needed. Duplicates (same id) are dropped, the first occurrence wins.
    """
    saved_path = Path(path) if path is not None else _default_saved_path()
    payload = {"saved_classes": [c.to_dict() for c in dedupe_by_id(items)]}

    write_json_atomic(saved_path, payload)
