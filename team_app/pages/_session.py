"""Session-state accessors shared by the Streamlit pages."""

from __future__ import annotations

import streamlit as st

from team_app.core.config import JiraSettings
from team_app.core.jira_client import JiraAPI


def get_api() -> JiraAPI | None:
    return st.session_state.get("jira_api")


def get_settings() -> JiraSettings:
    return st.session_state.get("jira_settings") or JiraSettings()


def current_user_email() -> str | None:
    """Email of the signed-in viewer when Streamlit authentication is enabled."""
    user = getattr(st, "user", None)
    if user is None:
        return None
    try:
        email = user.get("email")
    except (AttributeError, KeyError):
        return None
    return email if isinstance(email, str) else None


def read_secrets():
    """``st.secrets`` when a secrets file exists, otherwise an empty mapping."""
    try:
        st.secrets.get("jira")
    except FileNotFoundError:
        return {}
    return st.secrets
