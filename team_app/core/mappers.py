"""Mapping raw Jira / Confluence JSON into display models."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from .config import AVATAR_SIZES
from .models import Person, TicketSummary, UnlabeledPage

logger = logging.getLogger(__name__)


def avatar_url(user: Mapping[str, Any] | None) -> str | None:
    if not user:
        return None
    urls = user.get("avatarUrls") or {}
    for size in AVATAR_SIZES:
        url = urls.get(size)
        if url:
            return url
    return None


def map_ticket(raw: Mapping[str, Any], server: str) -> TicketSummary:
    fields = raw.get("fields") or {}
    assignee = fields.get("assignee") or {}
    key = raw.get("key") or ""
    return TicketSummary(
        id=raw.get("id"),
        key=key,
        summary=fields.get("summary"),
        status=(fields.get("status") or {}).get("name"),
        type=(fields.get("issuetype") or {}).get("name") or "Unknown",
        assignee=Person(
            display_name=assignee.get("displayName") or "Unassigned",
            avatar_url=avatar_url(assignee),
        ),
        url=f"{server.rstrip('/')}/browse/{key}",
        updated=fields.get("updated"),
    )


def page_label_count(raw: Mapping[str, Any]) -> int | None:
    """Number of labels attached to a content page, or None if not expanded."""
    labels = (raw.get("metadata") or {}).get("labels")
    if not isinstance(labels, Mapping):
        return None
    results = labels.get("results")
    if not isinstance(results, list):
        return None
    return len(results)


def map_page(raw: Mapping[str, Any], server: str, avatar_map: Mapping[str, str]) -> UnlabeledPage:
    ancestors = raw.get("ancestors") or []
    parent = ancestors[-1] if ancestors else None
    history = raw.get("history") or {}
    creator = history.get("createdBy") or {}
    account_id = creator.get("accountId")
    webui = (raw.get("_links") or {}).get("webui")
    return UnlabeledPage(
        id=raw.get("id"),
        title=raw.get("title"),
        parent=(parent or {}).get("title") or None,
        url=f"{server.rstrip('/')}/wiki{webui}" if webui else None,
        updated=(history.get("lastUpdated") or {}).get("when"),
        author=Person(
            display_name=creator.get("displayName") or "Unknown",
            avatar_url=avatar_map.get(account_id) if account_id else None,
        ),
    )


def parse_user_list(payload: Any) -> list[dict[str, Any]]:
    """Accept either a bare user list or a paginated ``{"values": [...]}`` envelope."""
    if isinstance(payload, list):
        users = payload
    elif isinstance(payload, Mapping) and isinstance(payload.get("values"), list):
        users = payload["values"]
    else:
        logger.warning("Unexpected bulk user payload shape: %s", type(payload).__name__)
        return []
    return [u for u in users if isinstance(u, Mapping)]


def build_avatar_map(users: Iterable[Mapping[str, Any]]) -> dict[str, str]:
    out: dict[str, str] = {}
    for user in users:
        account_id = user.get("accountId")
        url = avatar_url(user)
        if account_id and url:
            out[account_id] = url
    return out


def tickets_to_dataframe(tickets: Iterable[TicketSummary]) -> pd.DataFrame:
    rows = [
        {
            "key": t.key,
            "summary": t.summary,
            "type": t.type,
            "status": t.status,
            "assignee": t.assignee.display_name,
            "assignee_avatar": t.assignee.avatar_url,
            "updated": t.updated,
            "url": t.url,
        }
        for t in tickets
    ]
    df = pd.DataFrame(rows)
    if "updated" in df.columns:
        df["updated"] = pd.to_datetime(df["updated"], utc=True, errors="coerce")
    return df


def pages_to_dataframe(pages: Iterable[UnlabeledPage]) -> pd.DataFrame:
    rows = [
        {
            "id": p.id,
            "title": p.title,
            "parent": p.parent,
            "author": p.author.display_name,
            "author_avatar": p.author.avatar_url,
            "updated": p.updated,
            "url": p.url,
        }
        for p in pages
    ]
    df = pd.DataFrame(rows)
    if "updated" in df.columns:
        df["updated"] = pd.to_datetime(df["updated"], utc=True, errors="coerce")
    return df
