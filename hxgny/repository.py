"""
Repository: fetch -> map -> cache, per content type.

Two entry points per content type:
- load_*():    cache, else bundled seed, else []. No network, never raises.
- refresh_*(): fetch + map; the cache slot is only overwritten when at least
               one record was mapped. Returns True on success.

A slot that is already refreshing is not refreshed again concurrently: the
second call returns False right away.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from functools import partial
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar

import structlog

from hxgny.cache import CLASSES_SLOT, NOTICES_SLOT, CacheStore, page_slot
from hxgny.config import Settings
from hxgny.fetch import Row, fetch_rows
from hxgny.mapping import map_class_row, map_notice_row, map_one_column_row, map_rows
from hxgny.model import ClassRecord, NoticeRecord, OneColumnRecord
from hxgny.storage import load_saved_classes, save_saved_classes

log = structlog.get_logger()

T = TypeVar("T")

Fetcher = Callable[[str, float], list[Row]]

REFRESH_KINDS = ("classes", "notices", "page")


def reconcile_saved(saved: Sequence[ClassRecord], fresh: Sequence[ClassRecord]) -> list[ClassRecord]:
    """
    Replace saved entries by their fresh copy (same id); keep the rest as-is.
    """
    if not saved:
        return []
    by_id = {c.id: c for c in fresh}
    return [by_id.get(s.id, s) for s in saved]


class Repository:
    """
    Data access for classes, notices, one-column pages and the saved schedule.

    Construct once per process and pass it to whatever needs data.
    """

    def __init__(
        self,
        settings: Settings,
        fetcher: Fetcher = fetch_rows,
        cache: CacheStore | None = None,
    ) -> None:
        self.settings = settings
        self._fetcher = fetcher
        self.cache = cache if cache is not None else CacheStore(settings.cache_dir, settings.seed_dir)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._saved_lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def load_classes(self) -> list[ClassRecord]:
        return self._load(CLASSES_SLOT, ClassRecord.from_dict)

    def refresh_classes(self) -> bool:
        fresh = self._refresh(CLASSES_SLOT, self.settings.classes_url, map_class_row)
        if fresh is None:
            return False
        self._reconcile_saved_after_refresh(fresh)
        return True

    def last_updated_classes(self) -> Optional[datetime]:
        return self.cache.last_updated(CLASSES_SLOT)

    # ------------------------------------------------------------------
    # Notices
    # ------------------------------------------------------------------

    def load_notices(self) -> list[NoticeRecord]:
        return self._load(NOTICES_SLOT, NoticeRecord.from_dict)

    def refresh_notices(self) -> bool:
        # one fetch time shared by all undated notices
        now = time.time()
        notices = self._refresh(
            NOTICES_SLOT,
            self.settings.notices_url,
            partial(map_notice_row, now=now),
            sort_key=lambda n: n.date_epoch,
            reverse=True,
        )
        return notices is not None

    def last_updated_notices(self) -> Optional[datetime]:
        return self.cache.last_updated(NOTICES_SLOT)

    # ------------------------------------------------------------------
    # One-column pages
    # ------------------------------------------------------------------

    def load_page(self, slug: str) -> list[OneColumnRecord]:
        page = self.settings.get_page(slug)
        return self._load(page_slot(page.slug), OneColumnRecord.from_dict, seed=page.seed)

    def refresh_page(self, slug: str) -> bool:
        page = self.settings.get_page(slug)
        items = self._refresh(
            page_slot(page.slug),
            page.url,
            partial(map_one_column_row, column=page.column),
        )
        return items is not None

    def last_updated_page(self, slug: str) -> Optional[datetime]:
        page = self.settings.get_page(slug)
        return self.cache.last_updated(page_slot(page.slug))

    # ------------------------------------------------------------------
    # Saved schedule
    # ------------------------------------------------------------------

    def load_saved(self) -> list[ClassRecord]:
        return load_saved_classes(self.settings.saved_path)

    def save_saved(self, items: Sequence[ClassRecord]) -> bool:
        try:
            save_saved_classes(items, self.settings.saved_path)
        except OSError:
            log.warning("saved_write_error", path=str(self.settings.saved_path), exc_info=True)
            return False
        return True

    def toggle_saved(self, item: ClassRecord) -> list[ClassRecord]:
        """
        Add item to the saved list, or remove it if its id is already saved.

        Returns the new saved list.
        """
        with self._saved_lock:
            saved = self.load_saved()
            if any(s.id == item.id for s in saved):
                saved = [s for s in saved if s.id != item.id]
            else:
                saved.append(item)
            self.save_saved(saved)
            return saved

    def _reconcile_saved_after_refresh(self, fresh: Sequence[ClassRecord]) -> None:
        with self._saved_lock:
            saved = self.load_saved()
            if not saved:
                return
            reconciled = reconcile_saved(saved, fresh)
            if reconciled != saved:
                self.save_saved(reconciled)
                log.info("saved_reconciled", saved=len(reconciled))

    # ------------------------------------------------------------------
    # Background refresh
    # ------------------------------------------------------------------

    def refresh_in_background(
        self,
        kind: str,
        callback: Optional[Callable[[bool], Any]] = None,
        slug: Optional[str] = None,
    ) -> Future:
        """
        Start a refresh on a worker thread and return its Future[bool].

        kind is one of REFRESH_KINDS; "page" needs a slug. callback, if
        given, is called with the result once the refresh completes.
        """
        if kind not in REFRESH_KINDS:
            raise ValueError(f"Unknown refresh kind: {kind!r}")
        if kind == "classes":
            job: Callable[[], bool] = self.refresh_classes
        elif kind == "notices":
            job = self.refresh_notices
        else:
            if slug is None:
                raise ValueError("refresh of kind 'page' requires a slug")
            self.settings.get_page(slug)
            job = partial(self.refresh_page, slug)

        with self._locks_guard:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="hxgny-refresh")
            executor = self._executor

        # The callback runs inside the job, so future.result() also waits for it.
        def run() -> bool:
            try:
                result = job()
            except Exception:
                log.error("refresh_crashed", kind=kind, slug=slug, exc_info=True)
                result = False
            if callback is not None:
                try:
                    callback(result)
                except Exception:
                    log.error("refresh_callback_error", kind=kind, slug=slug, exc_info=True)
            return result

        return executor.submit(run)

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _lock_for(self, slot: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(slot)
            if lock is None:
                lock = self._locks[slot] = threading.Lock()
            return lock

    def _load(
        self,
        slot: str,
        from_dict: Callable[[dict[str, Any]], T],
        seed: Optional[str] = None,
    ) -> list[T]:
        cached = self.cache.load_list(slot, from_dict)
        if cached is not None:
            return cached
        seeded = self.cache.load_seed(slot, from_dict, name=seed)
        if seeded is not None:
            return seeded
        return []

    def _refresh(
        self,
        slot: str,
        url: Optional[str],
        mapper: Callable[[Mapping[str, str]], Optional[T]],
        sort_key: Optional[Callable[[T], Any]] = None,
        reverse: bool = False,
    ) -> Optional[list[T]]:
        """
        Fetch, map and cache one slot. Returns the mapped records, or None
        when nothing was mapped or the slot is already refreshing.
        """
        if not url:
            log.info("refresh_skipped", slot=slot, reason="no_url")
            return None

        lock = self._lock_for(slot)
        if not lock.acquire(blocking=False):
            log.info("refresh_in_progress", slot=slot)
            return None
        try:
            try:
                rows = self._fetcher(url, self.settings.timeout)
            except Exception:
                log.warning("fetch_crashed", slot=slot, url=url, exc_info=True)
                rows = []
            mapped = map_rows(rows, mapper)
            if not mapped:
                log.warning("refresh_failed", slot=slot, rows=len(rows))
                return None
            if sort_key is not None:
                mapped.sort(key=sort_key, reverse=reverse)
            self.cache.save_list(slot, mapped)
            log.info("refresh_complete", slot=slot, rows=len(rows), items=len(mapped))
            return mapped
        finally:
            lock.release()
