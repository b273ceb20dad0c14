"""Releases & Sprint page: upcoming versions and active sprint progress."""

from __future__ import annotations

import streamlit as st

from team_app.app import register_page
from team_app.core.config import SPRINT_BOARD_TYPES, ConfigError
from team_app.core.jira_client import JiraRequestError
from team_app.core.releases import RELEASE_STATUSES, releases_to_dataframe
from team_app.core.service import BoardService
from team_app.pages._session import get_api, get_settings
from team_app.visual.column_metadata import apply_column_metadata
from team_app.visual.tables import prepare_release_table


def _render_sprint(service: BoardService, board_type: str) -> None:
    st.markdown(f"**{board_type.title()} board**")
    try:
        sprint = service.fetch_sprint_progress(board_type)
    except ConfigError as exc:
        st.caption(str(exc))
        return
    except JiraRequestError as exc:
        st.error(f"Jira API error: {exc.status}")
        return
    st.metric(sprint.name, f"{sprint.progress}%", help=sprint.goal or None)
    st.progress(sprint.progress / 100)
    st.caption(f"{sprint.completed}/{sprint.total} done · {sprint.days_left} day(s) left · {sprint.status}")


@register_page("Releases & Sprint")
def boards_page():
    st.title("Releases & Sprint")
    api = get_api()
    if api is None:
        st.warning("Initialize connection on Setup page first.")
        return
    service = BoardService(api, get_settings())

    cols = st.columns(len(SPRINT_BOARD_TYPES))
    for col, board_type in zip(cols, SPRINT_BOARD_TYPES, strict=True):
        with col:
            _render_sprint(service, board_type)

    st.markdown("---")
    st.subheader("Releases")
    releases, error = service.fetch_releases()
    if error:
        st.error(error)
        return
    df = releases_to_dataframe(releases)
    if df.empty:
        st.info("No releases found.")
        return
    status_filter = st.radio("Status", ["All", *RELEASE_STATUSES], horizontal=True)
    if status_filter != "All":
        df = df[df["status"] == status_filter]
    prepared, display_cols, cfg = prepare_release_table(df)
    if not display_cols:
        st.info(f"No {status_filter.lower()} releases.")
        return
    st.dataframe(prepared[display_cols], hide_index=True, column_config=apply_column_metadata(display_cols, cfg))
