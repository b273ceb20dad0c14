"""Active sprint progress for the sprint board card."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

import pandas as pd
import pytz

from .models import SprintProgress

NO_ACTIVE_SPRINT = "No Active Sprint"


def count_completed(issues: Iterable[Mapping[str, Any]]) -> int:
    total = 0
    for issue in issues:
        status = (issue.get("fields") or {}).get("status") or {}
        if (status.get("statusCategory") or {}).get("key") == "done":
            total += 1
    return total


def days_left(end_date: Any, now: datetime | None = None) -> int:
    """Whole days until ``end_date`` rounded up; 0 once the sprint has ended."""
    if not end_date:
        return 0
    end = pd.to_datetime(end_date, utc=True, errors="coerce")
    if end is None or pd.isna(end):
        return 0
    now = now or datetime.now(pytz.UTC)
    if now.tzinfo is None:
        now = pytz.UTC.localize(now)
    seconds = max(0.0, (end.to_pydatetime() - now).total_seconds())
    return math.ceil(seconds / 86400)


def no_active_sprint() -> SprintProgress:
    return SprintProgress(name=NO_ACTIVE_SPRINT, status=NO_ACTIVE_SPRINT)


def build_progress(
    sprint: Mapping[str, Any],
    issues: list[Mapping[str, Any]] | None,
    *,
    now: datetime | None = None,
) -> SprintProgress:
    """Summarize a sprint; ``issues=None`` means the issue fetch failed."""
    name = sprint.get("name") or ""
    goal = sprint.get("goal") or ""
    if issues is None:
        return SprintProgress(name=name, goal=goal, status="Active (issues fetch failed)")
    total = len(issues)
    completed = count_completed(issues)
    # half-up rounding, so 12.5% shows as 13
    progress = math.floor(completed * 100 / total + 0.5) if total else 0
    return SprintProgress(
        name=name,
        goal=goal,
        days_left=days_left(sprint.get("endDate"), now),
        progress=progress,
        total=total,
        completed=completed,
        status="Active",
    )
