"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``team_app/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st

from team_app.app import main
from team_app.core.config import load_settings
from team_app.pages._session import read_secrets

st.set_page_config(layout="wide")
logger = logging.getLogger(__name__)


def _auto_init_jira_api():
    """Initialize the Jira client from Streamlit secrets or environment if available."""
    if "jira_api" in st.session_state:
        return

    settings = load_settings(read_secrets())
    if not settings.is_configured:
        st.sidebar.warning("Jira credentials not found. Please use the Setup page.")
        return

    from team_app.core.jira_client import JiraAPI

    server, email, token = settings.require_credentials()
    st.session_state["jira_settings"] = settings
    st.session_state["jira_api"] = JiraAPI(server, email, token, cache_ttl=settings.cache_ttl)
    st.sidebar.success("Jira client configured.")


_auto_init_jira_api()

PAGES_DIR = Path(__file__).parent / "team_app" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"team_app.pages.{py.stem}"
    try:
        import_module(mod_name)
    except ImportError as e:  # pragma: no cover
        logger.error("Failed importing page %s: %s", mod_name, e)

if __name__ == "__main__":
    main()
