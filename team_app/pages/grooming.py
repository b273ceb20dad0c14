"""Grooming page.

Lists open tickets missing planning fields and Confluence pages without
labels for the configured project, restricted to allow-listed managers.
"""

from __future__ import annotations

import logging

import streamlit as st

from team_app.app import register_page
from team_app.core.auth import is_allowed
from team_app.core.config import SETTINGS
from team_app.core.mappers import pages_to_dataframe, tickets_to_dataframe
from team_app.core.service import GroomingError, GroomingService
from team_app.pages._session import current_user_email, get_api, get_settings
from team_app.visual.charts import ungroomed_by_assignee, ungroomed_by_status
from team_app.visual.column_metadata import apply_column_metadata
from team_app.visual.progress import ProgressReporter
from team_app.visual.tables import prepare_page_table, prepare_ticket_table

logger = logging.getLogger(__name__)

PAGE_KEY = "grooming"


@register_page("Grooming")
def grooming_page():
    st.title("Grooming")
    st.caption("Open tickets missing planning fields and documentation pages with no labels.")
    api = get_api()
    if api is None:
        st.warning("Initialize connection on Setup page first.")
        return
    settings = get_settings()
    if not is_allowed(current_user_email(), settings.allowed_emails):
        st.error("Unauthorized")
        return

    project = st.text_input("Project / Space Key", value=settings.project_key, key=f"{PAGE_KEY}_project")
    if st.button("Fetch Grooming Report", type="primary", key=f"{PAGE_KEY}_fetch"):
        reporter = ProgressReporter(f"Collecting grooming data for {project}")
        try:
            report = GroomingService(api, settings).build_report(project, progress=reporter.callback)
        except GroomingError as exc:
            logger.error("Grooming report failed: %s", exc)
            reporter.error(str(exc))
            return
        st.session_state[f"{PAGE_KEY}_report"] = report
        reporter.complete(f"Loaded {len(report.tickets)} ticket(s) and {len(report.pages)} page(s).")

    report = st.session_state.get(f"{PAGE_KEY}_report")
    if report is None:
        st.info("Click 'Fetch Grooming Report' to load data.")
        return

    tickets_df = tickets_to_dataframe(report.tickets)
    pages_df = pages_to_dataframe(report.pages)

    st.markdown("---")
    st.subheader(f"Ungroomed Tickets ({len(tickets_df)})")
    if tickets_df.empty:
        st.info("No ungroomed tickets found")
    else:
        left, right = st.columns(2)
        status_chart = ungroomed_by_status(tickets_df)
        assignee_chart = ungroomed_by_assignee(tickets_df)
        if status_chart is not None:
            left.altair_chart(status_chart, use_container_width=True)
        if assignee_chart is not None:
            right.altair_chart(assignee_chart, use_container_width=True)
        prepared, display_cols, cfg = prepare_ticket_table(tickets_df)
        st.dataframe(
            prepared[display_cols].head(SETTINGS.max_table_rows),
            hide_index=True,
            column_config=apply_column_metadata(display_cols, cfg),
        )
        with st.expander("Query"):
            st.code(report.jql or "", language="sql")

    st.subheader(f"Unlabeled Pages ({len(pages_df)})")
    st.caption("Confluence pages with no labels")
    if pages_df.empty:
        st.info("No unlabeled pages found")
    else:
        prepared, display_cols, cfg = prepare_page_table(pages_df)
        st.dataframe(
            prepared[display_cols].head(SETTINGS.max_table_rows),
            hide_index=True,
            column_config=apply_column_metadata(display_cols, cfg),
        )

    if not tickets_df.empty:
        csv = tickets_df.drop(columns=["assignee_avatar"], errors="ignore").to_csv(index=False)
        st.download_button(
            "Download Tickets CSV",
            data=csv.encode(SETTINGS.download_encoding),
            file_name=f"grooming_{report.project_key}.csv",
            mime="text/csv",
        )
