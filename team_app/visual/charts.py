"""Chart builders (Altair) for the grooming view."""

from __future__ import annotations

import altair as alt
import pandas as pd


def _format_ticket_list(group: pd.DataFrame) -> str:
    items: list[str] = []
    for _, row in group.iterrows():
        key = str(row.get("key") or "").strip()
        if not key:
            continue
        summary = str(row.get("summary") or "").strip()
        items.append(f"{key}: {summary}" if summary else key)
    return "\n".join(items)


def count_by(df: pd.DataFrame, column: str) -> pd.DataFrame:
    """Ticket counts per value of ``column`` with a tooltip list of keys, largest first."""
    if df.empty or column not in df.columns:
        return pd.DataFrame(columns=[column, "count", "tickets"])
    tmp = df.copy()
    tmp[column] = tmp[column].fillna("Unknown").astype(str)
    rows = []
    for value, group in tmp.groupby(column, sort=False):
        rows.append({column: value, "count": int(len(group)), "tickets": _format_ticket_list(group)})
    out = pd.DataFrame(rows)
    return out.sort_values(by=["count", column], ascending=[False, True]).reset_index(drop=True)


def ungroomed_by_status(df: pd.DataFrame):
    counts = count_by(df, "status")
    if counts.empty:
        return None
    return (
        alt.Chart(counts)
        .mark_bar()
        .encode(
            x=alt.X("count:Q", title="Tickets"),
            y=alt.Y("status:N", sort="-x", title="Status"),
            tooltip=["status", "count", "tickets"],
        )
        .properties(height=max(120, 28 * len(counts)))
    )


def ungroomed_by_assignee(df: pd.DataFrame):
    counts = count_by(df, "assignee")
    if counts.empty:
        return None
    return (
        alt.Chart(counts)
        .mark_bar()
        .encode(
            x=alt.X("count:Q", title="Tickets"),
            y=alt.Y("assignee:N", sort="-x", title="Assignee"),
            tooltip=["assignee", "count", "tickets"],
        )
        .properties(height=max(120, 28 * len(counts)))
    )
