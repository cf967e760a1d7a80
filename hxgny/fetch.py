"""
Row fetching (sheet URL -> list of string rows).

opensheet serves a sheet tab as a JSON array of flat objects:

    [{"Title": "Math A", "Teacher": "Li", "Room": "Room 5"}, ...]

The fetcher never raises: any HTTP, network or decoding problem yields an
empty list, which callers read as "could not refresh".
"""

from __future__ import annotations

import json
from typing import Any

import requests
import structlog

from hxgny.config import DEFAULT_TIMEOUT

log = structlog.get_logger()

Row = dict[str, str]


def _coerce_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def parse_rows(payload: Any) -> list[Row]:
    """
    Convert a decoded JSON payload into string rows.

    Anything that is not an array yields []. Non-object entries are skipped.
    """
    if not isinstance(payload, list):
        return []
    rows: list[Row] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        rows.append({str(k): _coerce_value(v) for k, v in entry.items()})
    return rows


def fetch_rows(url: str, timeout: float = DEFAULT_TIMEOUT) -> list[Row]:
    """
    GET url and return its rows, or [] on any failure.
    """
    try:
        resp = requests.get(url, timeout=(timeout, timeout))
    except requests.RequestException as exc:
        log.warning("fetch_failed", url=url, error=str(exc))
        return []

    if not 200 <= resp.status_code < 300:
        log.warning("fetch_bad_status", url=url, status=resp.status_code)
        return []

    try:
        payload = resp.json()
    except ValueError:
        log.warning("fetch_invalid_json", url=url)
        return []

    rows = parse_rows(payload)
    if not isinstance(payload, list):
        log.warning("fetch_unexpected_shape", url=url, type=type(payload).__name__)
    log.debug("fetch_complete", url=url, rows=len(rows))
    return rows
