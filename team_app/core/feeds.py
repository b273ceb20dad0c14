"""Personal feeds (due soon, needs reply) and the issue autocomplete search.

The feeds are built for one caller: "due soon" runs as the service account
(``currentUser()``), while "needs reply" first resolves the signed-in user's
email to a Jira account id and then looks at tickets and wiki pages where
someone other than that user had the last word.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

import pandas as pd
import pytz
from bs4 import BeautifulSoup

from .config import DEFAULT_PRIORITY, DUE_SOON_DAYS, SEARCH_AVATAR_SIZE, SYSTEM_COMMENT_AUTHORS
from .grooming import quote_project_key, quote_string
from .models import CommentPreview, FeedItem, Person, SearchHit

_KEY_QUERY = re.compile(r"^[A-Z]+-\d*$", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

EMPTY_COMMENT = "Content not available"


# ------------------ Queries ------------------
def due_soon_query(project_key: str, days: int = DUE_SOON_DAYS) -> str:
    return (
        f"project = {quote_project_key(project_key)} AND assignee = currentUser() "
        f"AND duedate >= now() AND duedate <= {days}d AND statusCategory != Done ORDER BY duedate ASC"
    )


def needs_reply_query(project_key: str, account_id: str) -> str:
    who = quote_string(account_id)
    return (
        f"project = {quote_project_key(project_key)} AND (assignee = {who} OR comment ~ {who}) "
        "ORDER BY updated DESC"
    )


def needs_reply_page_query(account_id: str) -> str:
    who = quote_string(account_id)
    return f"(creator = {who} OR text ~ {who}) AND type = page order by lastModified desc"


def is_key_query(query: str) -> bool:
    """True for inputs shaped like an issue key or key prefix ("RAL-", "ral-12")."""
    return bool(_KEY_QUERY.match(query))


def issue_search_query(query: str) -> str:
    query = query.strip()
    if is_key_query(query):
        literal = quote_string(query)
        return f"key = {literal} OR key ~ {literal} ORDER BY updated DESC"
    prefix = quote_string(f"{query}*")
    return f"summary ~ {prefix} OR key ~ {prefix} ORDER BY updated DESC"


# ------------------ Helpers ------------------
def html_to_text(markup: str | None) -> str:
    """Plain text of a rendered comment body, entities decoded and whitespace collapsed."""
    if not markup:
        return ""
    soup = BeautifulSoup(markup, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return _WHITESPACE.sub(" ", soup.get_text(separator=" ")).strip()


def _timestamp(value: Any) -> pd.Timestamp | None:
    if not value:
        return None
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    return None if pd.isna(ts) else ts


def sort_by_updated(items: Iterable[FeedItem]) -> list[FeedItem]:
    """Newest first; items without a parseable timestamp go last."""
    stamped = [(item, _timestamp(item.updated)) for item in items]
    dated = sorted((pair for pair in stamped if pair[1] is not None), key=lambda pair: pair[1], reverse=True)
    undated = [pair for pair in stamped if pair[1] is None]
    return [item for item, _ in dated + undated]


def _name(obj: Any, key: str = "name") -> str | None:
    return obj.get(key) if isinstance(obj, Mapping) else None


# ------------------ Due soon ------------------
def map_due_soon(raw: Mapping[str, Any], server: str, *, now: datetime | None = None) -> FeedItem:
    fields = raw.get("fields") or {}
    key = raw.get("key") or ""
    due = fields.get("duedate") or (now or datetime.now(pytz.UTC)).isoformat()
    return FeedItem(
        id=raw.get("id"),
        key=key,
        summary=fields.get("summary"),
        status=_name(fields.get("status")),
        priority=_name(fields.get("priority")) or DEFAULT_PRIORITY,
        updated=due,
        url=f"{server.rstrip('/')}/browse/{key}",
        assignee=_name(fields.get("assignee"), "displayName"),
    )


# ------------------ Needs reply: tickets ------------------
def _issue_comments(raw: Mapping[str, Any], section: str = "fields") -> list[Mapping[str, Any]]:
    comment = (raw.get(section) or {}).get("comment") or {}
    comments = comment.get("comments") if isinstance(comment, Mapping) else None
    return [c for c in comments or [] if isinstance(c, Mapping)]


def ticket_needs_reply(raw: Mapping[str, Any], account_id: str) -> bool:
    """The ticket has comments and the latest one was written by someone else."""
    comments = _issue_comments(raw)
    if not comments:
        return False
    return (comments[-1].get("author") or {}).get("accountId") != account_id


def map_reply_ticket(raw: Mapping[str, Any], server: str) -> FeedItem:
    fields = raw.get("fields") or {}
    key = raw.get("key") or ""
    comments = _issue_comments(raw)
    rendered = _issue_comments(raw, "renderedFields")
    last = comments[-1] if comments else None
    body = html_to_text(rendered[-1].get("body") if rendered else None)
    url = f"{server.rstrip('/')}/browse/{key}"
    preview = None
    if last is not None:
        url = f"{url}?focusedCommentId={last.get('id')}#comment-{last.get('id')}"
        preview = CommentPreview(
            author=(last.get("author") or {}).get("displayName") or "Unknown User",
            body=body or EMPTY_COMMENT,
            created=last.get("created"),
        )
    return FeedItem(
        id=raw.get("id"),
        key=key,
        summary=fields.get("summary"),
        status=_name(fields.get("status")),
        priority=_name(fields.get("priority")) or DEFAULT_PRIORITY,
        updated=fields.get("updated"),
        url=url,
        last_comment=preview,
    )


# ------------------ Needs reply: wiki pages ------------------
def _page_comments(raw: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    comment = (raw.get("children") or {}).get("comment") or {}
    results = comment.get("results") if isinstance(comment, Mapping) else None
    comments = [c for c in results or [] if isinstance(c, Mapping)]

    def created(comment: Mapping[str, Any]) -> tuple[bool, int]:
        ts = _timestamp((comment.get("history") or {}).get("createdDate"))
        return (ts is not None, ts.value if ts is not None else 0)

    # oldest first; undated comments sort before dated ones
    return sorted(comments, key=created)


def page_needs_reply(raw: Mapping[str, Any], account_id: str) -> bool:
    comments = _page_comments(raw)
    if not comments:
        return False
    author = (comments[-1].get("history") or {}).get("createdBy") or {}
    if author.get("accountId") == account_id:
        return False
    return author.get("displayName") not in SYSTEM_COMMENT_AUTHORS


def map_reply_page(raw: Mapping[str, Any], server: str) -> FeedItem:
    comments = _page_comments(raw)
    last = comments[-1] if comments else {}
    history = last.get("history") or {}
    body = html_to_text(((last.get("body") or {}).get("view") or {}).get("value"))
    webui = (raw.get("_links") or {}).get("webui") or ""
    page_history = raw.get("history") or {}
    return FeedItem(
        id=raw.get("id"),
        key="WIKI",
        summary=raw.get("title"),
        status=raw.get("status"),
        priority=DEFAULT_PRIORITY,
        updated=(page_history.get("lastUpdated") or {}).get("when") or (raw.get("version") or {}).get("when"),
        url=f"{server.rstrip('/')}/wiki{webui}?focusedCommentId={last.get('id')}#comment-{last.get('id')}",
        source="confluence",
        last_comment=CommentPreview(
            author=(history.get("createdBy") or {}).get("displayName") or "Unknown User",
            body=body or EMPTY_COMMENT,
            created=history.get("createdDate"),
        ),
    )


# ------------------ Issue search ------------------
def _badge(user: Any) -> Person | None:
    if not isinstance(user, Mapping):
        return None
    return Person(
        display_name=user.get("displayName") or "",
        avatar_url=(user.get("avatarUrls") or {}).get(SEARCH_AVATAR_SIZE) or "",
    )


def map_search_hit(raw: Mapping[str, Any]) -> SearchHit:
    fields = raw.get("fields") or {}
    status = fields.get("status") or {}
    priority = fields.get("priority") or {}
    issue_type = fields.get("issuetype") or {}
    return SearchHit(
        key=raw.get("key") or "",
        summary=fields.get("summary") or "",
        status=status.get("name") or "",
        status_color=(status.get("statusCategory") or {}).get("colorName") or "default",
        priority=priority.get("name") or "",
        priority_icon=priority.get("iconUrl") or "",
        issue_type=issue_type.get("name") or "",
        issue_type_icon=issue_type.get("iconUrl") or "",
        reporter=_badge(fields.get("reporter")),
        assignee=_badge(fields.get("assignee")),
    )


def feed_to_dataframe(items: Iterable[FeedItem]) -> pd.DataFrame:
    rows = [
        {
            "key": item.key,
            "summary": item.summary,
            "status": item.status,
            "priority": item.priority,
            "source": item.source,
            "assignee": item.assignee,
            "last_comment_author": item.last_comment.author if item.last_comment else None,
            "last_comment": item.last_comment.body if item.last_comment else None,
            "updated": item.updated,
            "url": item.url,
        }
        for item in items
    ]
    df = pd.DataFrame(rows)
    if "updated" in df.columns:
        df["updated"] = pd.to_datetime(df["updated"], utc=True, errors="coerce")
    return df
