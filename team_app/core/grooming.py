"""Pure helpers behind the grooming view: field discovery and completeness queries.

Custom field ids differ between Jira sites, so the semantic fields a groomed
ticket needs ("Story Points", "Acceptance Criteria", "Developer") are located
by case-insensitive substring match on the field catalog. When several fields
match, the first one in catalog order wins (e.g. "Story Points" is picked
over "Epic Story Points" only if it is listed first). A field missing from
the catalog is left out of the query instead of being treated as empty.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from .config import GROOMING_FIELD_LABELS, GROOMING_SYSTEM_FIELDS
from .models import FieldCatalogEntry, ResolvedFieldSet

_PLAIN_KEY = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

CatalogEntry = FieldCatalogEntry | Mapping[str, Any]


def _entry_parts(entry: CatalogEntry) -> tuple[str | None, str]:
    if isinstance(entry, FieldCatalogEntry):
        return entry.id, entry.name
    name = entry.get("name")
    return entry.get("id"), name if isinstance(name, str) else ""


def resolve_field_id(catalog: Iterable[CatalogEntry], name_part: str) -> str | None:
    """Return the id of the first catalog entry whose name contains ``name_part``."""
    needle = name_part.lower()
    if not needle:
        return None
    for entry in catalog:
        field_id, name = _entry_parts(entry)
        if name and needle in name.lower():
            return field_id or None
    return None


def resolve_field_set(catalog: Iterable[CatalogEntry]) -> ResolvedFieldSet:
    entries = list(catalog)
    resolved: dict[str, str | None] = {}
    for attr, fragments in GROOMING_FIELD_LABELS.items():
        resolved[attr] = None
        for fragment in fragments:
            field_id = resolve_field_id(entries, fragment)
            if field_id:
                resolved[attr] = field_id
                break
    return ResolvedFieldSet(**resolved)


def quote_string(value: str) -> str:
    """Double-quoted JQL / CQL string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def quote_project_key(project_key: str) -> str:
    key = project_key.strip()
    if _PLAIN_KEY.match(key):
        return key
    return quote_string(key)


def build_completeness_query(project_key: str, resolved: ResolvedFieldSet) -> str:
    """JQL selecting open tickets in ``project_key`` missing at least one required field."""
    clauses = [f"{name} is EMPTY" for name in GROOMING_SYSTEM_FIELDS]
    clauses.extend(f"{field_id} is EMPTY" for field_id in resolved.field_ids())
    return (
        f"project = {quote_project_key(project_key)} AND ({' OR '.join(clauses)}) "
        "AND statusCategory != Done ORDER BY updated DESC"
    )


def build_page_query(space_key: str) -> str:
    # CQL has no "label is empty" predicate; unlabeled pages are filtered locally
    return f'space = {quote_string(space_key.strip())} AND type = "page" order by lastModified desc'


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def is_done(fields: Mapping[str, Any]) -> bool:
    status = fields.get("status") or {}
    category = status.get("statusCategory") or {}
    key = str(category.get("key") or "").lower()
    name = str(category.get("name") or "").lower()
    return key == "done" or name == "done"


def is_ungroomed(fields: Mapping[str, Any], resolved: ResolvedFieldSet) -> bool:
    """Evaluate the completeness query locally against a raw ``fields`` block."""
    if is_done(fields):
        return False
    required = list(GROOMING_SYSTEM_FIELDS) + resolved.field_ids()
    return any(_is_empty(fields.get(name)) for name in required)


def collect_creator_ids(pages: Iterable[Mapping[str, Any]]) -> list[str]:
    """Distinct page-creator account ids, in first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for page in pages:
        creator = ((page.get("history") or {}).get("createdBy")) or {}
        account_id = creator.get("accountId")
        if account_id and account_id not in seen:
            seen.add(account_id)
            out.append(account_id)
    return out
