"""Reusable table helpers for Streamlit rendering."""

from __future__ import annotations

import pandas as pd
import pytz
import streamlit as st

from team_app.core.column_config import get_columns
from team_app.core.config import TIMEZONE


def add_link_column(
    df: pd.DataFrame,
    *,
    url_col: str = "url",
    label: str = "Ticket",
    display_text: str = r"browse/(.*)$",
    help_text: str = "Open in Jira",
):
    if df.empty or url_col not in df.columns:
        return df, {}
    out = df.copy()
    out[label] = out[url_col].fillna("").astype(str)
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=display_text,
            help=help_text,
            width="medium",
        )
    }
    return out, cfg


def localize_updated(df: pd.DataFrame, col: str = "updated") -> pd.DataFrame:
    if df.empty or col not in df.columns:
        return df
    out = df.copy()
    tz = pytz.timezone(TIMEZONE)
    out[col] = pd.to_datetime(out[col], utc=True, errors="coerce").dt.tz_convert(tz)
    return out


def prepare_table(
    df: pd.DataFrame,
    set_name: str,
    *,
    link_label: str,
    display_text: str,
    help_text: str,
) -> tuple[pd.DataFrame, list[str], dict[str, object]]:
    if df.empty:
        return df, [], {}

    table, cfg = add_link_column(df, label=link_label, display_text=display_text, help_text=help_text)
    table = localize_updated(table)
    display_cols = [col for col in get_columns(set_name) if col in table.columns]
    if link_label in table.columns and link_label not in display_cols:
        display_cols.insert(0, link_label)
    if not display_cols:
        display_cols = [col for col in table.columns if col != "url"]
    return table, display_cols, cfg


def prepare_ticket_table(df: pd.DataFrame):
    return prepare_table(df, "tickets", link_label="Ticket", display_text=r"browse/(.*)$", help_text="Open in Jira")


def prepare_page_table(df: pd.DataFrame):
    return prepare_table(df, "pages", link_label="Page", display_text=r"pages/\d+/([^/?#]+)", help_text="Open in Confluence")


def prepare_release_table(df: pd.DataFrame):
    return prepare_table(df, "releases", link_label="Release", display_text=r"versions/(\d+)$", help_text="Open release in Jira")


def prepare_feed_table(df: pd.DataFrame):
    # feed rows mix Jira tickets and wiki pages, so the link text is fixed
    return prepare_table(df, "feed", link_label="Link", display_text="Open", help_text="Open in Jira / Confluence")
