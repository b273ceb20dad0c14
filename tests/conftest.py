"""Shared fixtures; also puts the project root on sys.path for non-installed runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from team_app.core.config import JiraSettings  # noqa: E402


@pytest.fixture
def settings():
    return JiraSettings(
        server="https://acme.atlassian.net",
        email="bot@acme.test",
        token="secret",
        project_key="RAL",
        board_ids={"delivery": "7"},
        allowed_emails=frozenset({"lead@acme.test"}),
    )
