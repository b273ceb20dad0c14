"""Central configuration, constants, and credential loading for the team dashboard."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

# =============================================================================
# Jira / Confluence Connection Settings
# =============================================================================
TIMEZONE = "Asia/Ho_Chi_Minh"
DEFAULT_PROJECT_KEY = "RAL"

# Seconds the field catalog stays cached inside JiraAPI (0 disables caching)
FIELD_CATALOG_CACHE_TTL = 300.0

# =============================================================================
# Grooming Workflow
# =============================================================================
# Semantic custom fields a groomed ticket must carry. Each entry lists the
# name fragments tried in order against the tracker's field catalog; within
# one fragment the first catalog entry wins.
GROOMING_FIELD_LABELS: dict[str, tuple[str, ...]] = {
    "story_points": ("Story Points", "Story point"),
    "acceptance_criteria": ("Acceptance Criteria",),
    "developer": ("Developer",),
}

# System fields that must be non-empty, expressed as JQL field names
GROOMING_SYSTEM_FIELDS: Sequence[str] = ("description", "labels", "duedate")

GROOMING_MAX_TICKETS = 20
GROOMING_PAGE_SEARCH_LIMIT = 50

GROOMING_TICKET_FIELDS: Sequence[str] = (
    "key",
    "summary",
    "status",
    "priority",
    "assignee",
    "updated",
    "issuetype",
)

CONTENT_PAGE_EXPAND: Sequence[str] = (
    "history.lastUpdated",
    "history.createdBy",
    "metadata.labels",
    "ancestors",
)

# Preferred avatar sizes, largest first
AVATAR_SIZES: Sequence[str] = ("48x48", "32x32")

# Emails allowed to open the grooming view when none are configured
DEFAULT_GROOMING_ALLOWED_EMAILS: frozenset[str] = frozenset()

# =============================================================================
# Releases / Sprint cards
# =============================================================================
RELEASES_LIMIT = 10
SPRINT_ISSUES_LIMIT = 100
SPRINT_BOARD_TYPES: Sequence[str] = ("delivery", "operation")

# =============================================================================
# Personal feeds and issue search
# =============================================================================
FEED_MAX_RESULTS = 10
DUE_SOON_DAYS = 7
DUE_SOON_FIELDS: Sequence[str] = ("key", "summary", "status", "priority", "duedate", "assignee")
NEEDS_REPLY_FIELDS: Sequence[str] = ("key", "summary", "status", "priority", "comment", "updated")
NEEDS_REPLY_PAGE_LIMIT = 5
NEEDS_REPLY_PAGE_EXPAND: Sequence[str] = (
    "children.comment.history",
    "children.comment.body.view",
    "history.lastUpdated",
    "version",
)
# Automation accounts whose page comments never need a reply
SYSTEM_COMMENT_AUTHORS: frozenset[str] = frozenset({"Oauth", "System"})
DEFAULT_PRIORITY = "Medium"

SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_MAX_RESULTS = 10
SEARCH_FIELDS: Sequence[str] = ("key", "summary", "reporter", "assignee", "status", "priority", "issuetype")
SEARCH_AVATAR_SIZE = "24x24"

# =============================================================================
# Table column sets (overridable via columns.yaml)
# =============================================================================
DISPLAY_ORDER_TICKETS: Sequence[str] = (
    "Ticket",
    "summary",
    "type",
    "status",
    "assignee",
    "assignee_avatar",
    "updated",
)

DISPLAY_ORDER_PAGES: Sequence[str] = (
    "Page",
    "title",
    "parent",
    "author",
    "author_avatar",
    "updated",
)

DISPLAY_ORDER_RELEASES: Sequence[str] = (
    "Release",
    "name",
    "status",
    "start_date",
    "release_date",
    "overdue",
    "description",
)

DISPLAY_ORDER_FEED: Sequence[str] = (
    "Link",
    "key",
    "summary",
    "status",
    "priority",
    "last_comment_author",
    "last_comment",
    "updated",
)


class ConfigError(RuntimeError):
    """Raised when required Jira credentials are missing."""


@dataclass(slots=True)
class JiraSettings:
    server: str | None = None
    email: str | None = None
    token: str | None = None
    project_key: str = DEFAULT_PROJECT_KEY
    board_ids: dict[str, str] = field(default_factory=dict)
    allowed_emails: frozenset[str] = DEFAULT_GROOMING_ALLOWED_EMAILS
    cache_ttl: float = FIELD_CATALOG_CACHE_TTL

    @property
    def is_configured(self) -> bool:
        return bool(self.server and self.email and self.token)

    def require_credentials(self) -> tuple[str, str, str]:
        if not self.is_configured:
            raise ConfigError("Misconfigured Jira Env")
        return self.server, self.email, self.token  # type: ignore[return-value]


def normalize_server(host: str | None) -> str | None:
    """Return an absolute base URL for a bare host such as ``acme.atlassian.net``."""
    if not host:
        return None
    text = host.strip().rstrip("/")
    if not text:
        return None
    if not text.startswith(("http://", "https://")):
        text = f"https://{text}"
    return text


def _split_emails(value: Any) -> frozenset[str]:
    if not value:
        return frozenset()
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return frozenset(str(item).strip().lower() for item in items if str(item).strip())


def load_settings(
    secrets: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> JiraSettings:
    """Build JiraSettings from Streamlit-style secrets, falling back to the environment.

    Secrets may hold the keys in a ``[jira]`` section or at the top level,
    mirroring ``.streamlit/secrets.toml`` layouts. ``JIRA_TOKEN`` is accepted as
    an alias of ``JIRA_API_TOKEN``.
    """
    secrets = secrets or {}
    env = os.environ if env is None else env
    section = secrets.get("jira", {}) or {}

    def pick(*names: str) -> Any:
        for name in names:
            for source in (section, secrets, env):
                value = source.get(name)
                if value:
                    return value
        return None

    board_ids = {}
    for board_type in SPRINT_BOARD_TYPES:
        board_id = pick(f"JIRA_{board_type.upper()}_BOARD_ID")
        if board_id:
            board_ids[board_type] = str(board_id)

    ttl_raw = pick("JIRA_CACHE_TTL")
    try:
        cache_ttl = float(ttl_raw) if ttl_raw is not None else FIELD_CATALOG_CACHE_TTL
    except (TypeError, ValueError):
        cache_ttl = FIELD_CATALOG_CACHE_TTL

    return JiraSettings(
        server=normalize_server(pick("JIRA_SERVER", "JIRA_HOST")),
        email=pick("JIRA_EMAIL"),
        token=pick("JIRA_API_TOKEN", "JIRA_TOKEN"),
        project_key=pick("JIRA_PROJECT_KEY") or DEFAULT_PROJECT_KEY,
        board_ids=board_ids,
        allowed_emails=_split_emails(pick("GROOMING_ALLOWED_EMAILS")) or DEFAULT_GROOMING_ALLOWED_EMAILS,
        cache_ttl=max(0.0, cache_ttl),
    )


@dataclass(slots=True)
class AppSettings:
    max_table_rows: int = 1000
    download_encoding: str = "utf-8"


SETTINGS = AppSettings()
