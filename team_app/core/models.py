"""Domain data models for the grooming workflow and dashboard cards.

All models are transient projections rebuilt on every request; ``to_dict``
produces the camelCase JSON shape served to the dashboard frontend.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class FieldCatalogEntry:
    id: str
    name: str


@dataclass(slots=True, frozen=True)
class ResolvedFieldSet:
    story_points: str | None = None
    acceptance_criteria: str | None = None
    developer: str | None = None

    def field_ids(self) -> list[str]:
        """Resolved ids in fixed clause order, skipping unresolved fields."""
        return [fid for fid in (self.story_points, self.acceptance_criteria, self.developer) if fid]


@dataclass(slots=True)
class Person:
    display_name: str
    avatar_url: str | None = None

    def to_dict(self) -> dict:
        return {"displayName": self.display_name, "avatarUrl": self.avatar_url}


@dataclass(slots=True)
class TicketSummary:
    id: str | None
    key: str
    summary: str | None
    status: str | None
    type: str
    assignee: Person
    url: str
    updated: str | None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "summary": self.summary,
            "status": self.status,
            "type": self.type,
            "assignee": self.assignee.to_dict(),
            "url": self.url,
            "updated": self.updated,
        }


@dataclass(slots=True)
class UnlabeledPage:
    id: str | None
    title: str | None
    parent: str | None
    url: str | None
    updated: str | None
    author: Person

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "parent": self.parent,
            "url": self.url,
            "updated": self.updated,
            "author": self.author.to_dict(),
        }


@dataclass(slots=True)
class GroomingReport:
    project_key: str
    tickets: list[TicketSummary] = field(default_factory=list)
    pages: list[UnlabeledPage] = field(default_factory=list)
    jql: str | None = None

    def to_dict(self) -> dict:
        return {
            "tickets": [t.to_dict() for t in self.tickets],
            "pages": [p.to_dict() for p in self.pages],
        }


@dataclass(slots=True)
class Release:
    id: str | None
    name: str
    description: str
    status: str
    released: bool
    release_date: str | None
    start_date: str | None
    overdue: bool
    url: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
            "released": self.released,
            "releaseDate": self.release_date,
            "startDate": self.start_date,
            "overdue": self.overdue,
            "url": self.url,
        }


@dataclass(slots=True)
class SprintProgress:
    name: str
    status: str
    goal: str = ""
    days_left: int = 0
    progress: int = 0
    total: int = 0
    completed: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "goal": self.goal,
            "daysLeft": self.days_left,
            "progress": self.progress,
            "total": self.total,
            "completed": self.completed,
            "status": self.status,
        }


@dataclass(slots=True)
class CommentPreview:
    author: str
    body: str
    created: str | None = None

    def to_dict(self) -> dict:
        return {"author": self.author, "body": self.body, "created": self.created}


@dataclass(slots=True)
class FeedItem:
    """One row of a personal feed (due soon, needs reply)."""

    id: str | None
    key: str
    summary: str | None
    status: str | None
    priority: str
    updated: str | None
    url: str
    source: str = "jira"
    assignee: str | None = None
    last_comment: CommentPreview | None = None

    def to_dict(self) -> dict:
        out = {
            "id": self.id,
            "key": self.key,
            "summary": self.summary,
            "status": self.status,
            "priority": self.priority,
            "updated": self.updated,
            "url": self.url,
            "source": self.source,
        }
        if self.assignee is not None:
            out["assignee"] = self.assignee
        if self.last_comment is not None:
            out["lastComment"] = self.last_comment.to_dict()
        return out


def _person_badge(person: Person | None) -> dict | None:
    if person is None:
        return None
    return {"name": person.display_name, "avatar": person.avatar_url or ""}


@dataclass(slots=True)
class SearchHit:
    key: str
    summary: str
    status: str
    status_color: str
    priority: str
    priority_icon: str
    issue_type: str
    issue_type_icon: str
    reporter: Person | None = None
    assignee: Person | None = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "summary": self.summary,
            "status": self.status,
            "statusColor": self.status_color,
            "priority": self.priority,
            "priorityIcon": self.priority_icon,
            "issueType": self.issue_type,
            "issueTypeIcon": self.issue_type_icon,
            "reporter": _person_badge(self.reporter),
            "assignee": _person_badge(self.assignee),
        }
