"""Release (project version) helpers for the releases card."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

import pandas as pd

from .config import RELEASES_LIMIT
from .models import Release

_VERSION_TRIPLE = re.compile(r"(\d+)\.(\d+)\.(\d+)")

# Every value release_status can return, in display order
RELEASE_STATUSES: tuple[str, ...] = ("Released", "In Progress", "Planned", "Archived")


def version_tuple(name: str | None) -> tuple[int, int, int]:
    """First ``x.y.z`` triple in a version name; ``(0, 0, 0)`` when absent."""
    match = _VERSION_TRIPLE.search(name or "")
    if not match:
        return (0, 0, 0)
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def release_status(version: Mapping[str, Any], today: date) -> str:
    if version.get("released"):
        return "Released"
    if version.get("archived"):
        return "Archived"
    start = _parse_date(version.get("startDate"))
    if start is not None and start <= today:
        return "In Progress"
    return "Planned"


def map_releases(
    versions: Iterable[Mapping[str, Any]],
    server: str,
    project_key: str,
    *,
    today: date | None = None,
    limit: int = RELEASES_LIMIT,
) -> list[Release]:
    today = today or datetime.now().date()
    base = server.rstrip("/")
    releases = [
        Release(
            id=v.get("id"),
            name=v.get("name") or "",
            description=v.get("description") or "",
            status=release_status(v, today),
            released=bool(v.get("released")),
            release_date=v.get("releaseDate"),
            start_date=v.get("startDate"),
            overdue=bool(v.get("overdue")),
            url=f"{base}/projects/{project_key}/versions/{v.get('id')}",
        )
        for v in versions
    ]
    # sorted() is stable, so names without a version triple keep provider order
    releases = sorted(releases, key=lambda r: version_tuple(r.name))
    return releases[:limit]


def releases_to_dataframe(releases: Iterable[Release]) -> pd.DataFrame:
    rows = [
        {
            "name": r.name,
            "status": r.status,
            "start_date": r.start_date,
            "release_date": r.release_date,
            "overdue": r.overdue,
            "description": r.description,
            "url": r.url,
        }
        for r in releases
    ]
    return pd.DataFrame(rows)
