import pandas as pd

from team_app.visual.charts import count_by, ungroomed_by_assignee, ungroomed_by_status


def _sample_df():
    return pd.DataFrame(
        [
            {"key": "RAL-1", "summary": "Login", "status": "To Do", "assignee": "Unassigned"},
            {"key": "RAL-2", "summary": "Logout", "status": "In Progress", "assignee": "Bao"},
            {"key": "RAL-3", "summary": "", "status": "To Do", "assignee": "Bao"},
            {"key": "RAL-4", "summary": "Search", "status": None, "assignee": "Bao"},
        ]
    )


def test_count_by_status():
    counts = count_by(_sample_df(), "status")
    assert counts.iloc[0]["status"] == "To Do"
    assert counts.iloc[0]["count"] == 2
    assert counts.iloc[0]["tickets"] == "RAL-1: Login\nRAL-3"
    assert "Unknown" in set(counts["status"])


def test_count_by_missing_column():
    assert count_by(_sample_df(), "priority").empty


def test_charts_build():
    df = _sample_df()
    assert ungroomed_by_status(df) is not None
    assert ungroomed_by_assignee(df) is not None
    assert ungroomed_by_status(pd.DataFrame()) is None
