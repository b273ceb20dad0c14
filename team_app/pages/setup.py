"""Connection setup page: collect Jira credentials and initialize the API client."""

from __future__ import annotations

import streamlit as st

from team_app.app import register_page
from team_app.core.config import JiraSettings, load_settings, normalize_server
from team_app.core.jira_client import JiraAPI
from team_app.pages._session import read_secrets


@register_page("Setup / Connection")
def setup_page():
    st.title("Jira Connection Setup")
    st.caption("Enter credentials (use secrets manager in production).")

    # Pre-fill from secrets / environment (user can override)
    defaults = load_settings(read_secrets())
    current: JiraSettings = st.session_state.get("jira_settings") or defaults

    server = st.text_input("Jira Site URL", value=current.server or "")
    email = st.text_input("Email / Username", value=current.email or "")
    token = st.text_input("API Token", type="password", value=defaults.token or "")
    project_key = st.text_input("Project / Space Key", value=current.project_key)
    allowed = st.text_area(
        "Grooming allow-list (one email per line)",
        value="\n".join(sorted(current.allowed_emails)),
    )
    ttl = st.number_input(
        "Field catalog cache TTL (seconds, 0 disables)",
        min_value=0,
        max_value=3600,
        value=int(current.cache_ttl),
    )
    init_btn = st.button("Initialize Connection", type="primary")

    if init_btn:
        if not (server and email and token):
            st.error("All credential fields required.")
            return
        settings = JiraSettings(
            server=normalize_server(server),
            email=email,
            token=token,
            project_key=project_key.strip() or defaults.project_key,
            board_ids=dict(defaults.board_ids),
            allowed_emails=frozenset(line.strip().lower() for line in allowed.splitlines() if line.strip()),
            cache_ttl=float(ttl),
        )
        try:
            api = JiraAPI(settings.server, email, token, cache_ttl=settings.cache_ttl)
        except Exception as e:  # pragma: no cover
            st.error(f"Failed to initialize Jira client: {e}")
            return
        st.session_state["jira_settings"] = settings
        st.session_state["jira_api"] = api
        st.success("Connection initialized.")

    if "jira_api" in st.session_state:
        st.info("Jira client ready.")
