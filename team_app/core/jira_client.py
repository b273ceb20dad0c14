"""Jira / Confluence API client wrapper (REST v3 + wiki content search + agile)."""

from __future__ import annotations

import time
from collections.abc import Sequence
from typing import Any

from jira import JIRA, JIRAError

from .config import FIELD_CATALOG_CACHE_TTL


class JiraRequestError(RuntimeError):
    """Non-2xx response from a Jira or Confluence REST endpoint."""

    def __init__(self, endpoint: str, status: int, body: str):
        self.endpoint = endpoint
        self.status = status
        self.body = body
        super().__init__(f"{endpoint} failed {status}: {body[:200]}")


class JiraAPI:
    def __init__(self, server: str, email: str, token: str, *, cache_ttl: float = FIELD_CATALOG_CACHE_TTL):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token),
            options={"server": self.server, "rest_api_version": "3"},
            get_server_info=False,
            max_retries=0,
        )
        # Field catalog cache: (timestamp, entries)
        self._cache: dict[str, tuple[float, list]] = {}
        self._cache_ttl = cache_ttl

    def clear_cache(self) -> None:
        """Reset the in-memory field catalog cache."""
        cache = getattr(self, "_cache", None)
        if isinstance(cache, dict):
            cache.clear()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: dict[str, Any] | None = None,
        expect: type | None = None,
    ) -> Any:
        """Send one REST call and return the decoded body.

        ``expect`` is the container type the endpoint is documented to return
        (``dict`` for envelopes, ``list`` for bare arrays); any other payload
        raises JiraRequestError like an error status would.
        """
        session = getattr(self.client, "_session", None)
        if session is None:
            raise RuntimeError("JIRA session unavailable")
        url = f"{self.server}{path}"
        headers = {"Accept": "application/json"}
        if json is not None:
            headers["Content-Type"] = "application/json"
        try:
            resp = session.request(method, url, params=params, json=json, headers=headers)
        except JIRAError as exc:
            # ResilientSession raises on error statuses before returning
            raise JiraRequestError(path, exc.status_code or 0, exc.text or "") from exc
        if resp.status_code >= 400:
            raise JiraRequestError(path, resp.status_code, resp.text or "")
        try:
            data = resp.json()
        except ValueError as exc:
            raise JiraRequestError(path, resp.status_code, "invalid JSON payload") from exc
        if expect is not None and not isinstance(data, expect):
            raise JiraRequestError(path, resp.status_code, f"unexpected payload: {type(data).__name__}")
        return data

    # ------------------ Ticket tracker ------------------
    def fetch_field_catalog(self) -> list[dict[str, Any]]:
        """Return every field (system and custom) the tracker defines, in provider order."""
        now = time.time()
        cached = self._cache.get("fields")
        if cached and self._cache_ttl > 0 and (now - cached[0]) < self._cache_ttl:
            return cached[1]
        data = self._request("GET", "/rest/api/3/field", expect=list)
        out = [entry for entry in data if isinstance(entry, dict)]
        if self._cache_ttl > 0:
            self._cache["fields"] = (now, out)
        return out

    def search_jql(
        self,
        jql: str,
        *,
        fields: Sequence[str] | None = None,
        max_results: int = 50,
        expand: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        body: dict[str, Any] = {"jql": jql, "maxResults": max_results}
        if fields:
            body["fields"] = list(fields)
        if expand:
            body["expand"] = ",".join(expand)
        data = self._request("POST", "/rest/api/3/search/jql", json=body, expect=dict)
        return _records(data, "issues")

    def bulk_users(self, account_ids: Sequence[str]) -> Any:
        """Resolve many account ids in one call; returns the raw payload.

        The payload is either a bare list of users or a ``{"values": [...]}``
        page depending on the Jira deployment.
        """
        params: list[tuple[str, str | int]] = [("accountId", account_id) for account_id in account_ids]
        params.append(("maxResults", max(len(account_ids), 1)))
        return self._request("GET", "/rest/api/3/user/bulk", params=params)

    def search_users(self, query: str) -> list[dict[str, Any]]:
        """Users whose name or email matches ``query``, best match first."""
        data = self._request("GET", "/rest/api/3/user/search", params={"query": query}, expect=list)
        return [user for user in data if isinstance(user, dict)]

    def project_versions(self, project_key: str) -> list[dict[str, Any]]:
        data = self._request("GET", f"/rest/api/3/project/{project_key}/versions", expect=list)
        return [version for version in data if isinstance(version, dict)]

    # ------------------ Agile boards ------------------
    def active_sprint(self, board_id: str) -> dict[str, Any] | None:
        data = self._request(
            "GET", f"/rest/agile/1.0/board/{board_id}/sprint", params={"state": "active"}, expect=dict
        )
        values = _records(data, "values")
        return values[0] if values else None

    def sprint_issues(self, sprint_id: int | str, *, max_results: int = 100) -> list[dict[str, Any]]:
        data = self._request(
            "GET",
            f"/rest/agile/1.0/sprint/{sprint_id}/issue",
            params={"maxResults": max_results, "fields": "status,resolution"},
            expect=dict,
        )
        return _records(data, "issues")

    # ------------------ Content / wiki ------------------
    def search_content(
        self,
        cql: str,
        *,
        limit: int = 50,
        expand: Sequence[str] | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"cql": cql, "limit": limit}
        if expand:
            params["expand"] = ",".join(expand)
        data = self._request("GET", "/wiki/rest/api/content/search", params=params, expect=dict)
        return _records(data, "results")


def _records(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    items = data.get(key) or []
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]
