from team_app.core.grooming import (
    build_completeness_query,
    build_page_query,
    collect_creator_ids,
    is_ungroomed,
    quote_project_key,
    resolve_field_id,
    resolve_field_set,
)
from team_app.core.models import FieldCatalogEntry, ResolvedFieldSet

from fakes import CATALOG, make_page


def test_resolve_field_id_no_match():
    catalog = [{"id": "1", "name": "Summary"}, {"id": "2", "name": "Priority"}]
    assert resolve_field_id(catalog, "Developer") is None


def test_resolve_field_id_case_insensitive_single_match():
    catalog = [{"id": "1", "name": "Summary"}, {"id": "10050", "name": "Lead DEVELOPER"}]
    assert resolve_field_id(catalog, "developer") == "10050"


def test_resolve_field_id_first_match_wins():
    catalog = [
        {"id": "10010", "name": "Epic Story Points"},
        {"id": "10016", "name": "Story Points"},
    ]
    assert resolve_field_id(catalog, "Story Points") == "10010"
    assert resolve_field_id(list(reversed(catalog)), "Story Points") == "10016"


def test_resolve_field_id_accepts_entries_and_skips_nameless():
    catalog = [{"id": "x"}, {"id": "y", "name": None}, FieldCatalogEntry(id="10040", name="Acceptance Criteria")]
    assert resolve_field_id(catalog, "acceptance") == "10040"


def test_resolve_field_set_story_point_estimate():
    resolved = resolve_field_set([{"id": "10001", "name": "Story point estimate"}])
    assert resolved.story_points == "10001"
    assert resolved.acceptance_criteria is None
    assert resolved.developer is None


def test_resolve_field_set_full_catalog():
    resolved = resolve_field_set(CATALOG)
    assert resolved == ResolvedFieldSet(
        story_points="customfield_10016",
        acceptance_criteria="customfield_10040",
        developer="customfield_10050",
    )


def test_query_without_resolved_fields():
    jql = build_completeness_query("RAL", ResolvedFieldSet())
    assert jql == (
        "project = RAL AND (description is EMPTY OR labels is EMPTY OR duedate is EMPTY) "
        "AND statusCategory != Done ORDER BY updated DESC"
    )


def test_query_with_resolved_fields_in_fixed_order():
    resolved = ResolvedFieldSet(story_points="cf_1", acceptance_criteria="cf_2", developer="cf_3")
    jql = build_completeness_query("RAL", resolved)
    assert "OR cf_1 is EMPTY OR cf_2 is EMPTY OR cf_3 is EMPTY)" in jql
    assert jql.endswith("AND statusCategory != Done ORDER BY updated DESC")


def test_query_omits_unresolved_clause():
    jql = build_completeness_query("RAL", ResolvedFieldSet(developer="cf_3"))
    assert "cf_3 is EMPTY" in jql
    assert jql.count("is EMPTY") == 4


def test_quote_project_key():
    assert quote_project_key("RAL") == "RAL"
    assert quote_project_key('my "team"') == '"my \\"team\\""'


def _groomed_fields(**overrides):
    fields = {
        "description": {"type": "doc", "content": [{"type": "paragraph"}]},
        "labels": ["backend"],
        "duedate": "2026-11-01",
        "cf_dev": {"accountId": "acc-9"},
        "status": {"name": "In Progress", "statusCategory": {"key": "indeterminate"}},
    }
    fields.update(overrides)
    return fields


def test_ticket_missing_developer_is_ungroomed():
    resolved = ResolvedFieldSet(developer="cf_dev")
    assert is_ungroomed(_groomed_fields(cf_dev=None), resolved)


def test_fully_groomed_ticket_is_excluded():
    resolved = ResolvedFieldSet(developer="cf_dev")
    assert not is_ungroomed(_groomed_fields(), resolved)


def test_done_ticket_is_excluded_even_when_empty():
    fields = {"status": {"name": "Done", "statusCategory": {"key": "done"}}}
    assert not is_ungroomed(fields, ResolvedFieldSet(developer="cf_dev"))


def test_unresolved_field_is_never_required():
    # cf_dev absent from the fields block but not resolved either
    fields = _groomed_fields()
    fields.pop("cf_dev")
    assert not is_ungroomed(fields, ResolvedFieldSet())


def test_blank_description_and_empty_labels_count_as_empty():
    resolved = ResolvedFieldSet()
    assert is_ungroomed(_groomed_fields(description="   "), resolved)
    assert is_ungroomed(_groomed_fields(labels=[]), resolved)


def test_collect_creator_ids_deduplicates_in_order():
    pages = [
        make_page("1", creator="acc-2"),
        make_page("2", creator="acc-1"),
        make_page("3", creator="acc-2"),
        make_page("4", creator=None),
    ]
    assert collect_creator_ids(pages) == ["acc-2", "acc-1"]


def test_page_query_quotes_space_key():
    assert build_page_query("RAL") == 'space = "RAL" AND type = "page" order by lastModified desc'
    assert build_page_query('R"AL').startswith('space = "R\\"AL" AND')
