"""Jira Feeds page: tickets needing a reply, tickets due soon, issue lookup."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from team_app.app import register_page
from team_app.core.feeds import feed_to_dataframe
from team_app.core.service import FeedService
from team_app.pages._session import current_user_email, get_api, get_settings
from team_app.visual.column_metadata import apply_column_metadata
from team_app.visual.tables import prepare_feed_table

PAGE_KEY = "feeds"


def _render_feed(title: str, caption: str, items, error: str | None) -> None:
    st.subheader(title)
    st.caption(caption)
    if error:
        st.error(error)
        return
    df = feed_to_dataframe(items)
    if df.empty:
        st.info("Nothing here right now.")
        return
    prepared, display_cols, cfg = prepare_feed_table(df)
    st.dataframe(prepared[display_cols], hide_index=True, column_config=apply_column_metadata(display_cols, cfg))


@register_page("Jira Feeds")
def feeds_page():
    st.title("Jira Feeds")
    st.caption("Track your tickets and blockers")
    api = get_api()
    if api is None:
        st.warning("Initialize connection on Setup page first.")
        return
    service = FeedService(api, get_settings())

    left, right = st.columns(2)
    with left:
        email = current_user_email()
        if not email:
            st.subheader("Needs Reply")
            st.info("Sign in to see tickets waiting on your reply.")
        else:
            with st.spinner("Loading conversations..."):
                items, error = service.needs_reply(email)
            _render_feed("Needs Reply", "Tickets where you were mentioned but haven't replied", items, error)
    with right:
        with st.spinner("Loading due dates..."):
            items, error = service.due_soon()
        _render_feed("Due Soon", "Tickets due in the next 7 days", items, error)

    st.markdown("---")
    st.subheader("Find an issue")
    query = st.text_input("Key or summary", key=f"{PAGE_KEY}_query", placeholder="RAL-12 or login")
    hits = service.search_issues(query)
    if query and not hits:
        st.caption("No matching issues.")
    if hits:
        rows = [
            {
                "key": hit.key,
                "summary": hit.summary,
                "type": hit.issue_type,
                "status": hit.status,
                "priority": hit.priority,
                "assignee": hit.assignee.display_name if hit.assignee else "Unassigned",
            }
            for hit in hits
        ]
        st.dataframe(pd.DataFrame(rows), hide_index=True)
