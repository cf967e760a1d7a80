"""
CLI (Command Line Interface).

This module provides quick terminal commands on top of the Repository, e.g.:

    hxgny refresh [classes|notices|pages|all]
    hxgny classes [text] [--category STEM] [--on-site]
    hxgny add <class_id>
    hxgny remove <class_id>
    hxgny schedule
    hxgny notices
    hxgny page <slug>
    hxgny categories

Note:
- Commands read from the local cache (or bundled seed); only "refresh"
  touches the network
- This CLI is intentionally simple and prints plain text
"""

from __future__ import annotations

import argparse
from datetime import datetime
from typing import Optional, Sequence

from hxgny.config import UnknownPageError, load_settings
from hxgny.filters import apply_filters, categories
from hxgny.logs import configure_logging
from hxgny.model import ClassRecord
from hxgny.repository import Repository


def _fmt_updated(ts: Optional[datetime]) -> str:
    if ts is None:
        return "never"
    return ts.astimezone().strftime("%Y-%m-%d %H:%M")


def _fmt_class(c: ClassRecord) -> str:
    teacher = c.teacher
    if c.chinese_teacher:
        teacher = f"{teacher} / {c.chinese_teacher}" if teacher else c.chinese_teacher
    room = c.room
    if c.building_hint:
        room = f"{room} ({c.building_hint})" if room else c.building_hint
    parts = [c.title, teacher, f"{c.day} {c.time}".strip(), c.grade, room, c.category]
    return f"{c.id} | " + " | ".join(p for p in parts if p)


def _print_classes(items: Sequence[ClassRecord], limit: int = 50) -> None:
    for c in items[:limit]:
        print(_fmt_class(c))
    if len(items) > limit:
        print(f"... and {len(items) - limit} more results")


def _cmd_refresh(args: argparse.Namespace, repo: Repository) -> int:
    """
    Refresh the requested content types from the network.
    """
    target = args.target
    results: list[tuple[str, bool]] = []

    if target in ("classes", "all"):
        results.append(("classes", repo.refresh_classes()))
    if target in ("notices", "all"):
        results.append(("notices", repo.refresh_notices()))
    if target in ("pages", "all"):
        for slug in repo.settings.pages:
            results.append((f"page {slug}", repo.refresh_page(slug)))

    failed = 0
    for name, ok in results:
        if ok:
            print(f"Updated: {name}")
        else:
            failed += 1
            print(f"Refresh failed: {name} (keeping cached data)")
    return 1 if failed else 0


def _cmd_classes(args: argparse.Namespace, repo: Repository) -> int:
    """
    Search classes. A numeric text filters by minimum age.
    """
    classes = repo.load_classes()
    saved = repo.load_saved()
    visible = apply_filters(classes, saved, args.text or "", args.category or "", args.on_site)

    if not visible:
        print("No results.")
        return 0

    _print_classes(visible)
    print(f"Last updated: {_fmt_updated(repo.last_updated_classes())}")
    return 0


def _find_class(repo: Repository, class_id: str) -> Optional[ClassRecord]:
    for c in repo.load_classes():
        if c.id == class_id:
            return c
    for c in repo.load_saved():
        if c.id == class_id:
            return c
    return None


def _cmd_add(args: argparse.Namespace, repo: Repository) -> int:
    """
    Add a class to the saved schedule.
    """
    cid = (args.class_id or "").strip()
    if not cid:
        print("Please provide a class id.")
        return 1

    saved = repo.load_saved()
    if any(s.id == cid for s in saved):
        print(f"Already saved: {cid}")
        return 0

    item = _find_class(repo, cid)
    if item is None:
        print(f"Unknown class id: {cid}")
        return 1

    saved = repo.toggle_saved(item)
    print(f"Added: {item.title} (saved: {len(saved)})")
    return 0


def _cmd_remove(args: argparse.Namespace, repo: Repository) -> int:
    """
    Remove a class from the saved schedule.
    """
    cid = (args.class_id or "").strip()
    if not cid:
        print("Please provide a class id.")
        return 1

    item = next((s for s in repo.load_saved() if s.id == cid), None)
    if item is None:
        print(f"Not saved: {cid}")
        return 0

    saved = repo.toggle_saved(item)
    print(f"Removed: {item.title} (saved: {len(saved)})")
    return 0


def _cmd_schedule(args: argparse.Namespace, repo: Repository) -> int:
    saved = repo.load_saved()
    if not saved:
        print("No saved classes.")
        return 0
    _print_classes(sorted(saved, key=lambda c: (c.day, c.time, c.title)), limit=len(saved))
    return 0


def _cmd_notices(args: argparse.Namespace, repo: Repository) -> int:
    notices = repo.load_notices()
    if not notices:
        print("No notices.")
        return 0
    for n in notices:
        print(f"{n.formatted_date}: {n.message}")
    print(f"Last updated: {_fmt_updated(repo.last_updated_notices())}")
    return 0


def _cmd_page(args: argparse.Namespace, repo: Repository) -> int:
    try:
        page = repo.settings.get_page(args.slug)
    except UnknownPageError:
        print(f"Unknown page: {args.slug}")
        print("Available pages: " + ", ".join(repo.settings.pages))
        return 1

    items = repo.load_page(page.slug)
    print(page.title)
    print("=" * len(page.title))
    if not items:
        print("(no content yet, run: hxgny refresh pages)")
        return 0
    for item in items:
        print(item.text)
        print()
    print(f"Last updated: {_fmt_updated(repo.last_updated_page(page.slug))}")
    return 0


def _cmd_categories(args: argparse.Namespace, repo: Repository) -> int:
    cats = categories(repo.load_classes())
    if not cats:
        print("No categories.")
        return 0
    for c in cats:
        print(c)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="hxgny", description="HXGNY school info CLI")
    parser.add_argument("--data-dir", type=str, default=None, help="Directory for cache and saved schedule")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging on stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p_refresh = sub.add_parser("refresh", help="Fetch fresh data from the sheets")
    p_refresh.add_argument(
        "target", nargs="?", default="all", choices=["classes", "notices", "pages", "all"], help="What to refresh"
    )

    p_classes = sub.add_parser("classes", help="Search classes (numeric text = age)")
    p_classes.add_argument("text", nargs="?", default="", help="Search text or age")
    p_classes.add_argument("--category", "-c", type=str, default="", help="Category filter (substring)")
    p_classes.add_argument("--on-site", action="store_true", help="Hide online/zoom classes")

    p_add = sub.add_parser("add", help="Save a class to my schedule")
    p_add.add_argument("class_id", type=str, help="Class id (first column of 'classes' output)")

    p_remove = sub.add_parser("remove", help="Remove a class from my schedule")
    p_remove.add_argument("class_id", type=str, help="Class id")

    sub.add_parser("schedule", help="Show my saved classes")
    sub.add_parser("notices", help="Show weekly notices")

    p_page = sub.add_parser("page", help="Show a one-column page")
    p_page.add_argument("slug", type=str, help="Page slug (e.g. contact, sponsors)")

    sub.add_parser("categories", help="List class categories")

    return parser


COMMANDS = {
    "refresh": _cmd_refresh,
    "classes": _cmd_classes,
    "add": _cmd_add,
    "remove": _cmd_remove,
    "schedule": _cmd_schedule,
    "notices": _cmd_notices,
    "page": _cmd_page,
    "categories": _cmd_categories,
}


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    repo = Repository(load_settings(args.data_dir))
    try:
        handler = COMMANDS.get(args.command)
        if handler is None:
            raise SystemExit(2)
        raise SystemExit(handler(args, repo))
    finally:
        repo.close()
