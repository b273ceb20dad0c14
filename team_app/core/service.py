"""Services orchestrating the grooming workflow, the board cards and the personal feeds."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from requests import RequestException

from .config import (
    CONTENT_PAGE_EXPAND,
    DUE_SOON_FIELDS,
    FEED_MAX_RESULTS,
    GROOMING_MAX_TICKETS,
    GROOMING_PAGE_SEARCH_LIMIT,
    GROOMING_SYSTEM_FIELDS,
    GROOMING_TICKET_FIELDS,
    NEEDS_REPLY_FIELDS,
    NEEDS_REPLY_PAGE_EXPAND,
    NEEDS_REPLY_PAGE_LIMIT,
    SEARCH_FIELDS,
    SEARCH_MAX_RESULTS,
    SEARCH_MIN_QUERY_LENGTH,
    SPRINT_ISSUES_LIMIT,
    ConfigError,
    JiraSettings,
)
from .feeds import (
    due_soon_query,
    issue_search_query,
    map_due_soon,
    map_reply_page,
    map_reply_ticket,
    map_search_hit,
    needs_reply_page_query,
    needs_reply_query,
    page_needs_reply,
    sort_by_updated,
    ticket_needs_reply,
)
from .grooming import (
    build_completeness_query,
    build_page_query,
    collect_creator_ids,
    is_ungroomed,
    resolve_field_set,
)
from .jira_client import JiraAPI, JiraRequestError
from .mappers import build_avatar_map, map_page, map_ticket, page_label_count, parse_user_list
from .models import (
    FeedItem,
    GroomingReport,
    Release,
    SearchHit,
    SprintProgress,
    TicketSummary,
    UnlabeledPage,
)
from .releases import map_releases
from .sprint import build_progress, no_active_sprint

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]


class GroomingError(RuntimeError):
    """The grooming workflow could not produce a ticket list."""


class GroomingService:
    """Collect ungroomed tickets and unlabeled pages for one project.

    Network calls run strictly in sequence (field catalog, tickets, pages,
    bulk avatars). Ticket-side failures abort the whole report; page-side
    failures degrade to fewer results.
    """

    def __init__(self, api: JiraAPI, settings: JiraSettings | None = None):
        self.api = api
        self.settings = settings or JiraSettings()

    # ------------------ Tickets ------------------
    def find_ungroomed_tickets(
        self,
        project_key: str,
        *,
        progress: ProgressCallback | None = None,
    ) -> tuple[list[TicketSummary], str]:
        if progress:
            progress("Discovering custom field ids", None, None)
        try:
            catalog = self.api.fetch_field_catalog()
        except JiraRequestError as exc:
            logger.error("Failed to fetch fields: %s %s", exc.status, exc.body)
            raise GroomingError("Failed to fetch fields") from exc
        except RequestException as exc:
            logger.error("Failed to fetch fields: %s", exc)
            raise GroomingError("Failed to fetch fields") from exc
        resolved = resolve_field_set(catalog)
        jql = build_completeness_query(project_key, resolved)
        logger.debug("Generated grooming JQL: %s", jql)

        if progress:
            progress(f"Querying ungroomed tickets for {project_key}", None, None)
        fields = list(GROOMING_TICKET_FIELDS) + list(GROOMING_SYSTEM_FIELDS) + resolved.field_ids()
        try:
            raw = self.api.search_jql(jql, fields=fields, max_results=GROOMING_MAX_TICKETS)
        except JiraRequestError as exc:
            logger.error("Failed to fetch issues. Status: %s", exc.status)
            logger.error("Jira error body: %s", exc.body)
            raise GroomingError(f"Failed to fetch issues: {exc.body}") from exc
        except RequestException as exc:
            logger.error("Failed to fetch issues: %s", exc)
            raise GroomingError(f"Failed to fetch issues: {exc}") from exc

        tickets: list[TicketSummary] = []
        for issue in raw:
            if not is_ungroomed(issue.get("fields") or {}, resolved):
                logger.debug("Skipping %s: tracker returned a groomed or done ticket", issue.get("key"))
                continue
            tickets.append(map_ticket(issue, self.api.server))
        return tickets[:GROOMING_MAX_TICKETS], jql

    # ------------------ Pages ------------------
    def find_unlabeled_pages(
        self,
        project_key: str,
        *,
        progress: ProgressCallback | None = None,
    ) -> list[UnlabeledPage]:
        cql = build_page_query(project_key)
        if progress:
            progress(f"Searching recent pages in space {project_key}", None, None)
        logger.debug("Fetching pages with CQL: %s", cql)
        try:
            raw_pages = self.api.search_content(
                cql,
                limit=GROOMING_PAGE_SEARCH_LIMIT,
                expand=CONTENT_PAGE_EXPAND,
            )
        except JiraRequestError as exc:
            logger.error("Failed to fetch pages: %s %s", exc.status, exc.body)
            return []
        except RequestException as exc:
            logger.error("Failed to fetch pages: %s", exc)
            return []

        unlabeled = [page for page in raw_pages if page_label_count(page) == 0]
        account_ids = collect_creator_ids(unlabeled)
        if progress:
            progress("Resolving page author avatars", None, None)
        avatar_map = self.fetch_avatar_map(account_ids)
        return [map_page(page, self.api.server, avatar_map) for page in unlabeled]

    def fetch_avatar_map(self, account_ids: Sequence[str]) -> dict[str, str]:
        """One bulk user lookup for all ids; any failure yields an empty map."""
        if not account_ids:
            return {}
        try:
            payload = self.api.bulk_users(list(account_ids))
        except JiraRequestError as exc:
            logger.warning("Failed to bulk fetch users: %s", exc.status)
            return {}
        except RequestException as exc:
            logger.warning("Error fetching bulk users: %s", exc)
            return {}
        return build_avatar_map(parse_user_list(payload))

    # ------------------ Report ------------------
    def build_report(
        self,
        project_key: str | None = None,
        *,
        progress: ProgressCallback | None = None,
    ) -> GroomingReport:
        project = project_key or self.settings.project_key
        tickets, jql = self.find_ungroomed_tickets(project, progress=progress)
        pages = self.find_unlabeled_pages(project, progress=progress)
        if progress:
            progress(f"Found {len(tickets)} ticket(s) and {len(pages)} page(s)", 1, 1)
        return GroomingReport(project_key=project, tickets=tickets, pages=pages, jql=jql)


class BoardService:
    """Releases and active-sprint cards."""

    def __init__(self, api: JiraAPI, settings: JiraSettings | None = None):
        self.api = api
        self.settings = settings or JiraSettings()

    def fetch_releases(self, project_key: str | None = None) -> tuple[list[Release], str | None]:
        project = project_key or self.settings.project_key
        try:
            versions = self.api.project_versions(project)
        except JiraRequestError as exc:
            logger.error("Jira releases request failed (%s): %s", exc.status, exc.body)
            return [], "Failed to fetch releases"
        except RequestException as exc:
            logger.error("Jira releases request failed: %s", exc)
            return [], "Failed to fetch releases"
        return map_releases(versions, self.api.server, project), None

    def fetch_sprint_progress(self, board_type: str, *, now: datetime | None = None) -> SprintProgress:
        """Progress of the active sprint on the configured board.

        Raises ConfigError when no board id is configured for ``board_type`` and
        JiraRequestError when the sprint lookup itself fails (status 0 when Jira
        is unreachable).
        """
        board_id = self.settings.board_ids.get(board_type or "")
        if not board_id:
            raise ConfigError(f"No Jira board configured for {board_type!r}")
        try:
            sprint = self.api.active_sprint(board_id)
        except RequestException as exc:
            logger.error("Jira sprint request failed: %s", exc)
            raise JiraRequestError(f"/rest/agile/1.0/board/{board_id}/sprint", 0, str(exc)) from exc
        if not sprint:
            return no_active_sprint()
        try:
            issues = self.api.sprint_issues(sprint.get("id"), max_results=SPRINT_ISSUES_LIMIT)
        except (JiraRequestError, RequestException) as exc:
            logger.error("Jira sprint issues request failed: %s", exc)
            issues = None
        return build_progress(sprint, issues, now=now)


class FeedService:
    """Per-user feeds shown on the Jira Feeds page, plus issue autocomplete."""

    def __init__(self, api: JiraAPI, settings: JiraSettings | None = None):
        self.api = api
        self.settings = settings or JiraSettings()

    def due_soon(self, project_key: str | None = None) -> tuple[list[FeedItem], str | None]:
        project = project_key or self.settings.project_key
        jql = due_soon_query(project)
        logger.debug("Due-soon JQL: %s", jql)
        try:
            raw = self.api.search_jql(jql, fields=DUE_SOON_FIELDS, max_results=FEED_MAX_RESULTS)
        except JiraRequestError as exc:
            logger.error("Jira due-soon request failed (%s): %s", exc.status, exc.body)
            return [], "Failed to fetch Jira data"
        except RequestException as exc:
            logger.error("Jira due-soon request failed: %s", exc)
            return [], "Failed to fetch Jira data"
        return [map_due_soon(issue, self.api.server) for issue in raw], None

    def resolve_account_id(self, email: str) -> str | None:
        """Jira account id for ``email``; None when unknown or the lookup fails."""
        try:
            users = self.api.search_users(email)
        except (JiraRequestError, RequestException) as exc:
            logger.warning("User lookup failed for %s: %s", email, exc)
            return None
        for user in users:
            if user.get("accountId"):
                return user["accountId"]
        return None

    def needs_reply(self, email: str, project_key: str | None = None) -> tuple[list[FeedItem], str | None]:
        """Tickets and wiki pages where the last comment is not from ``email``'s account.

        A rejected ticket search is skipped like the best-effort page search;
        an unreachable tracker fails the whole feed.
        """
        account_id = self.resolve_account_id(email)
        if not account_id:
            return [], None
        project = project_key or self.settings.project_key
        items: list[FeedItem] = []
        try:
            raw = self.api.search_jql(
                needs_reply_query(project, account_id),
                fields=NEEDS_REPLY_FIELDS,
                max_results=FEED_MAX_RESULTS,
                expand=("renderedFields",),
            )
        except JiraRequestError as exc:
            logger.error("Jira needs-reply search failed (%s): %s", exc.status, exc.body)
        except RequestException as exc:
            logger.error("Jira needs-reply search failed: %s", exc)
            return [], "Failed to fetch data"
        else:
            items.extend(
                map_reply_ticket(issue, self.api.server) for issue in raw if ticket_needs_reply(issue, account_id)
            )

        try:
            pages = self.api.search_content(
                needs_reply_page_query(account_id),
                limit=NEEDS_REPLY_PAGE_LIMIT,
                expand=NEEDS_REPLY_PAGE_EXPAND,
            )
        except (JiraRequestError, RequestException) as exc:
            logger.warning("Confluence needs-reply search unavailable: %s", exc)
        else:
            items.extend(map_reply_page(page, self.api.server) for page in pages if page_needs_reply(page, account_id))
        return sort_by_updated(items), None

    def search_issues(self, query: str | None) -> list[SearchHit]:
        """Autocomplete matches for a key prefix or summary text; empty on any failure."""
        query = (query or "").strip()
        if len(query) < SEARCH_MIN_QUERY_LENGTH:
            return []
        jql = issue_search_query(query)
        logger.debug("Issue search JQL: %s", jql)
        try:
            raw = self.api.search_jql(jql, fields=SEARCH_FIELDS, max_results=SEARCH_MAX_RESULTS)
        except (JiraRequestError, RequestException) as exc:
            logger.error("Jira issue search failed: %s", exc)
            return []
        return [map_search_hit(issue) for issue in raw]
