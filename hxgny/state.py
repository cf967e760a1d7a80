"""
Observable state for UI collaborators.

Controllers hold the current lists and filter settings, and notify
subscribers with an immutable snapshot whenever anything changes. They know
nothing about any UI toolkit: a listener is any callable taking the snapshot.

Refreshes run in the background through the Repository. Listeners may be
called from a worker thread.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Generic, Optional, TypeVar

import structlog

from hxgny.filters import apply_filters, categories
from hxgny.model import ClassRecord, NoticeRecord, OneColumnRecord
from hxgny.repository import Repository, reconcile_saved

log = structlog.get_logger()

S = TypeVar("S")
T = TypeVar("T")


@dataclass(frozen=True)
class ClassesState:
    is_loading: bool = True
    is_refreshing: bool = False
    all_classes: tuple[ClassRecord, ...] = ()
    saved: tuple[ClassRecord, ...] = ()
    visible: tuple[ClassRecord, ...] = ()
    query: str = ""
    category: str = ""
    on_site_only: bool = False
    last_updated: Optional[datetime] = None
    refresh_failed: bool = False


@dataclass(frozen=True)
class ListState(Generic[T]):
    is_loading: bool = True
    is_refreshing: bool = False
    items: tuple[T, ...] = field(default_factory=tuple)
    last_updated: Optional[datetime] = None
    refresh_failed: bool = False


class _Observable(Generic[S]):
    def __init__(self, initial: S) -> None:
        self._state = initial
        self._listeners: list[Callable[[S], object]] = []
        self._lock = threading.RLock()

    @property
    def state(self) -> S:
        return self._state

    def subscribe(self, listener: Callable[[S], object]) -> Callable[[], None]:
        """
        Register listener and return a function that unregisters it.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _update(self, fn: Callable[[S], S]) -> S:
        with self._lock:
            self._state = fn(self._state)
            snapshot = self._state
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                log.error("state_listener_error", listener=repr(listener), exc_info=True)
        return snapshot


class ClassesController(_Observable[ClassesState]):
    """
    Class list, saved schedule and filter settings.
    """

    def __init__(self, repository: Repository) -> None:
        super().__init__(ClassesState())
        self.repository = repository

    def load(self) -> ClassesState:
        classes = tuple(self.repository.load_classes())
        saved = tuple(reconcile_saved(self.repository.load_saved(), classes))
        last_updated = self.repository.last_updated_classes()
        return self._update(
            lambda s: self._refiltered(
                replace(s, is_loading=False, all_classes=classes, saved=saved, last_updated=last_updated)
            )
        )

    def refresh(self, wait: bool = False) -> Future:
        self._update(lambda s: replace(s, is_refreshing=True, refresh_failed=False))
        future = self.repository.refresh_in_background("classes", callback=self._on_refreshed)
        if wait:
            future.result()
        return future

    def _on_refreshed(self, success: bool) -> None:
        classes = tuple(self.repository.load_classes())
        saved = tuple(self.repository.load_saved())
        last_updated = self.repository.last_updated_classes()
        self._update(
            lambda s: self._refiltered(
                replace(
                    s,
                    is_loading=False,
                    is_refreshing=False,
                    all_classes=classes,
                    saved=saved,
                    last_updated=last_updated,
                    refresh_failed=not success,
                )
            )
        )

    def set_query(self, query: str) -> ClassesState:
        return self._update(lambda s: self._refiltered(replace(s, query=query)))

    def set_category(self, category: str) -> ClassesState:
        return self._update(lambda s: self._refiltered(replace(s, category=category)))

    def set_on_site_only(self, enabled: bool) -> ClassesState:
        return self._update(lambda s: self._refiltered(replace(s, on_site_only=enabled)))

    def toggle_saved(self, item: ClassRecord) -> ClassesState:
        saved = tuple(self.repository.toggle_saved(item))
        return self._update(lambda s: self._refiltered(replace(s, saved=saved)))

    def is_saved(self, class_id: str) -> bool:
        return any(c.id == class_id for c in self.state.saved)

    def saved_list(self) -> list[ClassRecord]:
        return list(self.state.saved)

    def class_by_id(self, class_id: str) -> Optional[ClassRecord]:
        s = self.state
        for c in s.all_classes:
            if c.id == class_id:
                return c
        for c in s.saved:
            if c.id == class_id:
                return c
        return None

    def categories(self) -> list[str]:
        return categories(self.state.all_classes)

    @property
    def visible(self) -> list[ClassRecord]:
        return list(self.state.visible)

    @staticmethod
    def _refiltered(s: ClassesState) -> ClassesState:
        visible = apply_filters(s.all_classes, s.saved, s.query, s.category, s.on_site_only)
        return replace(s, visible=tuple(visible))


class _ListController(_Observable[ListState[T]]):
    kind = ""

    def __init__(self, repository: Repository) -> None:
        super().__init__(ListState())
        self.repository = repository

    def _load_items(self) -> list[T]:
        raise NotImplementedError

    def _last_updated(self) -> Optional[datetime]:
        raise NotImplementedError

    def _slug(self) -> Optional[str]:
        return None

    def load(self) -> ListState[T]:
        items = tuple(self._load_items())
        last_updated = self._last_updated()
        return self._update(lambda s: replace(s, is_loading=False, items=items, last_updated=last_updated))

    def refresh(self, wait: bool = False) -> Future:
        self._update(lambda s: replace(s, is_refreshing=True, refresh_failed=False))
        future = self.repository.refresh_in_background(self.kind, callback=self._on_refreshed, slug=self._slug())
        if wait:
            future.result()
        return future

    def _on_refreshed(self, success: bool) -> None:
        items = tuple(self._load_items())
        last_updated = self._last_updated()
        self._update(
            lambda s: replace(
                s,
                is_loading=False,
                is_refreshing=False,
                items=items,
                last_updated=last_updated,
                refresh_failed=not success,
            )
        )


class NoticesController(_ListController[NoticeRecord]):
    kind = "notices"

    def _load_items(self) -> list[NoticeRecord]:
        return self.repository.load_notices()

    def _last_updated(self) -> Optional[datetime]:
        return self.repository.last_updated_notices()


class PageController(_ListController[OneColumnRecord]):
    kind = "page"

    def __init__(self, repository: Repository, slug: str) -> None:
        self.page = repository.settings.get_page(slug)
        super().__init__(repository)

    def _slug(self) -> Optional[str]:
        return self.page.slug

    def _load_items(self) -> list[OneColumnRecord]:
        return self.repository.load_page(self.page.slug)

    def _last_updated(self) -> Optional[datetime]:
        return self.repository.last_updated_page(self.page.slug)
