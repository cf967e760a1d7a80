"""
Local cache of fetched records.

Layout (one JSON file per named slot):

    <data_dir>/cache/classes.json
    <data_dir>/cache/notices.json
    <data_dir>/cache/onecol_<slug>.json

Each slot file holds {"updated_at": "<ISO time>", "items": [...]}.

Bundled seed files (hxgny/data/seed/<slot>.json) hold a plain list of the
same records and are only read when a slot has never been written.

Reads never raise: a missing, unreadable or corrupt slot is a cache miss.
Writes are best-effort: failures are logged and reported as False.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Sequence, TypeVar

import structlog

log = structlog.get_logger()

T = TypeVar("T")

CLASSES_SLOT = "classes"
NOTICES_SLOT = "notices"


def page_slot(slug: str) -> str:
    return f"onecol_{slug}"


def write_json_atomic(target: Path, payload: Any) -> None:
    """
    Write payload as JSON to a temp file next to target, then replace target.

    Readers see either the old or the new file, never a partial one.
    Parent directories are created. Raises OSError on failure.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.stem}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, ensure_ascii=False)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class Record(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


class SlotStore:
    """
    Named JSON slots in one directory: get / put / last_modified.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path(self, slot: str) -> Path:
        return self.root / f"{slot}.json"

    def get(self, slot: str) -> Any:
        """
        Return the decoded slot payload, or None if missing or unreadable.
        """
        p = self.path(slot)
        if not p.exists():
            return None
        try:
            return json.loads(p.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError):
            log.warning("cache_read_error", slot=slot, path=str(p), exc_info=True)
            return None

    def put(self, slot: str, payload: Any) -> None:
        """
        Atomically replace the slot with payload. Raises OSError on failure.
        """
        write_json_atomic(self.path(slot), payload)

    def last_modified(self, slot: str) -> Optional[datetime]:
        payload = self.get(slot)
        if not isinstance(payload, dict):
            return None
        raw = payload.get("updated_at")
        if not isinstance(raw, str):
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None


def _decode_list(items: Any, from_dict: Callable[[dict[str, Any]], T]) -> Optional[list[T]]:
    if not isinstance(items, list):
        return None
    try:
        return [from_dict(x) for x in items]
    except (TypeError, ValueError):
        return None


class CacheStore:
    """
    Typed list cache on top of SlotStore, with bundled seed fallback.
    """

    def __init__(self, root: str | Path, seed_dir: str | Path | None = None) -> None:
        self.slots = SlotStore(root)
        self.seed_dir = Path(seed_dir) if seed_dir is not None else None

    def load_list(self, slot: str, from_dict: Callable[[dict[str, Any]], T]) -> Optional[list[T]]:
        """
        Return the cached list for slot, or None on miss or corrupt data.
        """
        payload = self.slots.get(slot)
        if payload is None:
            return None
        items = payload.get("items") if isinstance(payload, dict) else None
        out = _decode_list(items, from_dict)
        if out is None:
            log.warning("cache_decode_error", slot=slot)
        return out

    def load_seed(self, slot: str, from_dict: Callable[[dict[str, Any]], T], name: str | None = None) -> Optional[list[T]]:
        """
        Return the bundled seed list for slot, or None if there is none.
        """
        if self.seed_dir is None:
            return None
        p = self.seed_dir / (name or f"{slot}.json")
        if not p.exists():
            return None
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError):
            log.warning("seed_read_error", slot=slot, path=str(p), exc_info=True)
            return None
        out = _decode_list(data, from_dict)
        if out is None:
            log.warning("seed_decode_error", slot=slot, path=str(p))
        return out

    def save_list(self, slot: str, items: Sequence[Record]) -> bool:
        """
        Overwrite slot with items and stamp the current time.
        """
        payload = {
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "items": [item.to_dict() for item in items],
        }
        try:
            self.slots.put(slot, payload)
        except OSError:
            log.warning("cache_write_error", slot=slot, exc_info=True)
            return False
        log.debug("cache_write", slot=slot, items=len(items))
        return True

    def last_updated(self, slot: str) -> Optional[datetime]:
        return self.slots.last_modified(slot)
