"""
Shared test helpers: a scripted fetcher and throwaway settings.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from hxgny.config import PAGES, Page, Settings


class FakeFetcher:
    """
    Returns scripted rows per URL and records every call.
    """

    def __init__(self, rows_by_url: Optional[dict[str, list[dict[str, str]]]] = None) -> None:
        self.rows_by_url = rows_by_url or {}
        self.calls: list[tuple[str, float]] = []
        self.gate: Optional[threading.Event] = None
        self.entered = threading.Event()

    def __call__(self, url: str, timeout: float) -> list[dict[str, str]]:
        self.calls.append((url, timeout))
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(5)
        return [dict(r) for r in self.rows_by_url.get(url, [])]


CLASSES_URL = "https://sheets.test/classes"
NOTICES_URL = "https://sheets.test/notices"


def make_settings(data_dir: Path, seed_dir: Optional[Path] = None) -> Settings:
    pages = dict(PAGES)
    pages["contact"] = Page("contact", "Contact Us", "https://sheets.test/contact", column="Info")
    pages["sponsors"] = Page("sponsors", "Sponsors", "https://sheets.test/sponsors")
    pages["join"] = Page("join", "Join Us", None)
    return Settings(
        data_dir=data_dir,
        timeout=3.0,
        classes_url=CLASSES_URL,
        notices_url=NOTICES_URL,
        pages=pages,
        seed_dir=seed_dir,
    )
