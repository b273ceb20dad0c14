"""Central column metadata and helpers for table rendering."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import streamlit as st

# Mapping of raw column keys to (label, help text, format key)
# format key: "image" -> avatar image, "datetime" -> timestamp, "bool" -> checkbox, None -> text
COLUMN_METADATA: dict[str, tuple[str, str, str | None]] = {
    # Tickets
    "summary": ("Summary", "Issue summary from Jira.", None),
    "type": ("Type", "Jira issue type.", None),
    "status": ("Status", "Current workflow status.", None),
    "assignee": ("Assignee", "Current owner responsible for the issue.", None),
    "assignee_avatar": ("", "Assignee avatar.", "image"),
    "updated": ("Updated", "Timestamp of the most recent update.", "datetime"),
    # Pages
    "title": ("Title", "Confluence page title.", None),
    "parent": ("Parent", "Nearest ancestor page.", None),
    "author": ("Author", "Account that created the page.", None),
    "author_avatar": ("", "Author avatar.", "image"),
    # Releases
    "name": ("Version", "Jira release name.", None),
    "start_date": ("Start", "Planned start date of the release.", None),
    "release_date": ("Release Date", "Planned or actual release date.", None),
    "overdue": ("Overdue", "Release date has passed without a release.", "bool"),
    "description": ("Description", "Release description.", None),
    # Feeds
    "key": ("Key", "Issue key, or WIKI for Confluence pages.", None),
    "priority": ("Priority", "Jira priority.", None),
    "last_comment_author": ("Last Comment By", "Author of the most recent comment.", None),
    "last_comment": ("Last Comment", "Plain text of the most recent comment.", None),
}


def apply_column_metadata(
    columns: Iterable[str],
    existing: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Return a column_config dictionary with human labels and hover help."""

    config: dict[str, Any] = dict(existing or {})
    for col in columns:
        if col in config:
            continue
        meta = COLUMN_METADATA.get(col)
        if not meta:
            continue
        label, help_text, fmt = meta
        if fmt == "image":
            config[col] = st.column_config.ImageColumn(label, help=help_text, width="small")
        elif fmt == "datetime":
            config[col] = st.column_config.DatetimeColumn(label, help=help_text, format="YYYY-MM-DD HH:mm")
        elif fmt == "bool":
            config[col] = st.column_config.CheckboxColumn(label, help=help_text)
        else:
            config[col] = st.column_config.Column(label, help=help_text)
    return config
