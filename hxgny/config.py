"""
Configuration: sheet endpoints, one-column pages and local paths.

All remote data comes from public Google Sheets exposed as JSON rows by
opensheet. Each content type has one fixed URL.

Local paths can be overridden through the environment:

    HXGNY_DATA_DIR   directory holding cache slots and the saved schedule
    HXGNY_TIMEOUT    HTTP connect/read timeout in seconds
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


PACKAGE_DIR = Path(__file__).resolve().parent
SEED_DIR = PACKAGE_DIR / "data" / "seed"

DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "hxgny"
DEFAULT_TIMEOUT = 15.0

_SHEET_BASE = "https://opensheet.vercel.app/1qgbo7IlKkuFpCTYzrtIWHwjo0K6zItfyEeY6t_YbLV4"

CLASSES_SHEET_URL = "https://opensheet.vercel.app/1uuM1vd0U1YDiHCnB9M-40hZIltGE0ij3ELVOBcnjRog/test"


class UnknownPageError(KeyError):
    """Raised when a one-column page slug is not configured."""


@dataclass(frozen=True)
class Page:
    """
    One single-column informational page.

    column: optional sheet column to read; None means "first non-blank value".
    seed: optional bundled JSON file name used before the first fetch.
    """

    slug: str
    title: str
    url: Optional[str]
    column: Optional[str] = None
    seed: Optional[str] = None


PAGES: dict[str, Page] = {
    p.slug: p
    for p in [
        Page("school_intro", "School Intro", f"{_SHEET_BASE}/schoolintro"),
        Page("join", "Join Us", f"{_SHEET_BASE}/joinus"),
        Page("lostfound", "Lost & Found", f"{_SHEET_BASE}/lostnFound"),
        Page("sponsors", "Sponsors", f"{_SHEET_BASE}/sponsors"),
        Page("contact", "Contact Us", f"{_SHEET_BASE}/contact"),
        Page("weeklynews", "Weekly News", f"{_SHEET_BASE}/notice"),
    ]
}

NOTICES_SHEET_URL = PAGES["weeklynews"].url


@dataclass
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    timeout: float = DEFAULT_TIMEOUT
    classes_url: Optional[str] = CLASSES_SHEET_URL
    notices_url: Optional[str] = NOTICES_SHEET_URL
    pages: dict[str, Page] = field(default_factory=lambda: dict(PAGES))
    seed_dir: Optional[Path] = SEED_DIR

    @property
    def cache_dir(self) -> Path:
        return self.data_dir / "cache"

    @property
    def saved_path(self) -> Path:
        return self.data_dir / "saved_classes.json"

    def get_page(self, slug: str) -> Page:
        key = (slug or "").strip().lower()
        try:
            return self.pages[key]
        except KeyError:
            raise UnknownPageError(slug) from None


def load_settings(data_dir: str | Path | None = None) -> Settings:
    """
    Build Settings from defaults, the environment and an explicit data_dir.

    An explicit data_dir (e.g. from --data-dir) wins over HXGNY_DATA_DIR.
    An unparseable HXGNY_TIMEOUT falls back to the default.
    """
    env_dir = os.environ.get("HXGNY_DATA_DIR", "").strip()
    if data_dir is not None:
        resolved = Path(data_dir).expanduser()
    elif env_dir:
        resolved = Path(env_dir).expanduser()
    else:
        resolved = DEFAULT_DATA_DIR

    timeout = DEFAULT_TIMEOUT
    env_timeout = os.environ.get("HXGNY_TIMEOUT", "").strip()
    if env_timeout:
        try:
            timeout = float(env_timeout)
        except ValueError:
            timeout = DEFAULT_TIMEOUT
        if timeout <= 0:
            timeout = DEFAULT_TIMEOUT

    return Settings(data_dir=resolved, timeout=timeout)


def get_page(slug: str) -> Page:
    return Settings().get_page(slug)
