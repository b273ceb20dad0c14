"""In-memory stand-ins for the Jira / Confluence client and sample payloads."""

from __future__ import annotations

import requests

from team_app.core.jira_client import JiraAPI, JiraRequestError

SERVER = "https://acme.atlassian.net"

CATALOG = [
    {"id": "summary", "name": "Summary"},
    {"id": "customfield_10016", "name": "Story point estimate"},
    {"id": "customfield_10040", "name": "Acceptance Criteria"},
    {"id": "customfield_10050", "name": "Developer"},
]


def make_issue(key, *, status="In Progress", category="indeterminate", **fields):
    base = {
        "summary": f"Summary of {key}",
        "status": {"name": status, "statusCategory": {"key": category}},
        "issuetype": {"name": "Story"},
        "assignee": None,
        "updated": "2026-10-01T10:00:00.000+0000",
        "description": None,
        "labels": [],
        "duedate": None,
    }
    base.update(fields)
    return {"id": key.split("-")[-1], "key": key, "fields": base}


def make_page(page_id, *, labels=0, creator="acc-1", creator_name="Alice", ancestors=("Home",)):
    return {
        "id": page_id,
        "title": f"Page {page_id}",
        "_links": {"webui": f"/spaces/RAL/pages/{page_id}/Page+{page_id}"},
        "history": {
            "lastUpdated": {"when": "2026-10-02T08:00:00.000Z"},
            "createdBy": {"accountId": creator, "displayName": creator_name} if creator else {},
        },
        "metadata": {"labels": {"results": [{"name": f"l{i}"} for i in range(labels)]}},
        "ancestors": [{"title": title} for title in ancestors],
    }


def make_user(account_id, size="48x48"):
    return {"accountId": account_id, "avatarUrls": {size: f"https://avatars.example/{account_id}.png"}}


class FakeJiraAPI(JiraAPI):
    """Records every call.

    Endpoints listed in ``fail`` answer with a 500; endpoints listed in
    ``offline`` raise a connection error before any response arrives.
    """

    def __init__(
        self,
        *,
        catalog=None,
        issues=None,
        pages=None,
        users=None,
        versions=None,
        sprint=None,
        sprint_issues=None,
        fail=(),
        offline=(),
        user_matches=None,
    ):
        self.server = SERVER
        self._cache = {}
        self._cache_ttl = 0
        self.catalog = list(CATALOG if catalog is None else catalog)
        self.issues = list(issues or [])
        self.pages = list(pages or [])
        self.users = users if users is not None else []
        self.versions = list(versions or [])
        self.sprint = sprint
        self.sprint_issue_list = list(sprint_issues or [])
        self.fail = set(fail)
        self.offline = set(offline)
        self.user_matches = list(user_matches or [])
        self.calls: list[tuple[str, object]] = []

    def _maybe_fail(self, name):
        if name in self.offline:
            raise requests.ConnectionError(f"{name} unreachable")
        if name in self.fail:
            raise JiraRequestError(f"/{name}", 500, f"{name} exploded")

    def fetch_field_catalog(self):
        self.calls.append(("fields", None))
        self._maybe_fail("fields")
        return self.catalog

    def search_jql(self, jql, *, fields=None, max_results=50, expand=None):
        self.calls.append(("search", {"jql": jql, "fields": fields, "max_results": max_results}))
        self._maybe_fail("search")
        return self.issues[:max_results]

    def search_content(self, cql, *, limit=50, expand=None):
        self.calls.append(("content", {"cql": cql, "limit": limit, "expand": expand}))
        self._maybe_fail("content")
        return self.pages[:limit]

    def bulk_users(self, account_ids):
        self.calls.append(("users", list(account_ids)))
        self._maybe_fail("users")
        return self.users

    def search_users(self, query):
        self.calls.append(("user_search", query))
        self._maybe_fail("user_search")
        return self.user_matches

    def project_versions(self, project_key):
        self.calls.append(("versions", project_key))
        self._maybe_fail("versions")
        return self.versions

    def active_sprint(self, board_id):
        self.calls.append(("sprint", board_id))
        self._maybe_fail("sprint")
        return self.sprint

    def sprint_issues(self, sprint_id, *, max_results=100):
        self.calls.append(("sprint_issues", sprint_id))
        self._maybe_fail("sprint_issues")
        return self.sprint_issue_list

    def calls_to(self, name):
        return [payload for call, payload in self.calls if call == name]


def make_commented_issue(key, comments, *, rendered=None, updated="2026-10-10T09:00:00.000+0000"):
    """Issue whose comment thread is ``comments`` as (comment id, author account id) pairs."""
    issue = make_issue(key, updated=updated)
    issue["fields"]["priority"] = {"name": "High"}
    issue["fields"]["comment"] = {
        "comments": [
            {
                "id": cid,
                "author": {"accountId": author, "displayName": f"User {author}"},
                "created": "2026-10-09T08:00:00.000+0000",
            }
            for cid, author in comments
        ]
    }
    if rendered is not None:
        issue["renderedFields"] = {"comment": {"comments": [{"body": body} for body in rendered]}}
    return issue


def make_commented_page(page_id, comments, *, updated="2026-10-11T09:00:00.000Z"):
    """Wiki page with comments given as (comment id, author account id, display name, created)."""
    return {
        "id": page_id,
        "title": f"Page {page_id}",
        "status": "current",
        "_links": {"webui": f"/spaces/RAL/pages/{page_id}"},
        "history": {"lastUpdated": {"when": updated}},
        "children": {
            "comment": {
                "results": [
                    {
                        "id": cid,
                        "history": {
                            "createdBy": {"accountId": author, "displayName": name},
                            "createdDate": created,
                        },
                        "body": {"view": {"value": f"<p>Reply from {name} &amp; co</p>"}},
                    }
                    for cid, author, name, created in comments
                ]
            }
        },
    }


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Replays canned responses (or raises canned exceptions) in order."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


class FakeClient:
    def __init__(self, session):
        self._session = session


def session_api(*responses, ttl=0.0):
    """A real JiraAPI whose HTTP session replays ``responses``."""
    api = JiraAPI.__new__(JiraAPI)
    api.server = SERVER
    api.client = FakeClient(FakeSession(responses))
    api._cache = {}
    api._cache_ttl = ttl
    return api
