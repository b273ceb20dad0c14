from datetime import datetime

import pytz

from team_app.core.feeds import (
    due_soon_query,
    html_to_text,
    issue_search_query,
    map_due_soon,
    map_reply_page,
    map_reply_ticket,
    map_search_hit,
    needs_reply_query,
    page_needs_reply,
    sort_by_updated,
    ticket_needs_reply,
)
from team_app.core.models import FeedItem
from team_app.core.service import FeedService

from fakes import SERVER, FakeJiraAPI, make_commented_issue, make_commented_page, make_issue


def test_due_soon_query():
    assert due_soon_query("RAL") == (
        "project = RAL AND assignee = currentUser() AND duedate >= now() AND duedate <= 7d "
        "AND statusCategory != Done ORDER BY duedate ASC"
    )


def test_needs_reply_query_quotes_account():
    jql = needs_reply_query("RAL", "712020:abc")
    assert 'assignee = "712020:abc" OR comment ~ "712020:abc"' in jql
    assert jql.endswith("ORDER BY updated DESC")


def test_issue_search_query_key_vs_text():
    assert issue_search_query("ral-12") == 'key = "ral-12" OR key ~ "ral-12" ORDER BY updated DESC'
    assert issue_search_query(' login "flow" ') == (
        'summary ~ "login \\"flow\\"*" OR key ~ "login \\"flow\\"*" ORDER BY updated DESC'
    )


def test_html_to_text_decodes_entities():
    assert html_to_text("<p>Hi&nbsp;<b>Bao</b> &amp; team</p>\n<script>x()</script>") == "Hi Bao & team"
    assert html_to_text(None) == ""


def test_map_due_soon_uses_due_date_and_default_priority():
    item = map_due_soon(make_issue("RAL-3", duedate="2026-10-20"), SERVER)
    assert item.updated == "2026-10-20"
    assert item.priority == "Medium"
    assert item.url == f"{SERVER}/browse/RAL-3"
    now = pytz.UTC.localize(datetime(2026, 10, 18, 12, 0))
    assert map_due_soon(make_issue("RAL-4"), SERVER, now=now).updated == now.isoformat()


def test_ticket_needs_reply_when_someone_else_spoke_last():
    assert ticket_needs_reply(make_commented_issue("RAL-1", [("1", "me"), ("2", "bao")]), "me")
    assert not ticket_needs_reply(make_commented_issue("RAL-2", [("1", "bao"), ("2", "me")]), "me")
    assert not ticket_needs_reply(make_commented_issue("RAL-3", []), "me")


def test_map_reply_ticket_links_last_comment():
    issue = make_commented_issue("RAL-1", [("1", "me"), ("2", "bao")], rendered=["<p>old</p>", "<p>Can you &quot;check&quot;?</p>"])
    item = map_reply_ticket(issue, SERVER)
    assert item.url == f"{SERVER}/browse/RAL-1?focusedCommentId=2#comment-2"
    assert item.priority == "High"
    assert item.last_comment.author == "User bao"
    assert item.last_comment.body == 'Can you "check"?'
    assert item.to_dict()["lastComment"]["body"] == 'Can you "check"?'


def test_map_reply_ticket_without_rendered_body():
    item = map_reply_ticket(make_commented_issue("RAL-1", [("7", "bao")]), SERVER)
    assert item.last_comment.body == "Content not available"


def test_page_needs_reply_orders_comments_by_date():
    page = make_commented_page(
        "9",
        [
            ("c2", "bao", "Bao", "2026-10-05T10:00:00.000Z"),
            ("c1", "me", "Me", "2026-10-01T10:00:00.000Z"),
        ],
    )
    assert page_needs_reply(page, "me")
    item = map_reply_page(page, SERVER)
    assert item.key == "WIKI"
    assert item.source == "confluence"
    assert item.url == f"{SERVER}/wiki/spaces/RAL/pages/9?focusedCommentId=c2#comment-c2"
    assert item.last_comment.body == "Reply from Bao & co"


def test_page_from_automation_account_is_ignored():
    page = make_commented_page("9", [("c1", "bot", "System", "2026-10-05T10:00:00.000Z")])
    assert not page_needs_reply(page, "me")
    assert not page_needs_reply(make_commented_page("10", []), "me")


def test_sort_by_updated_mixes_timezones():
    items = [
        FeedItem(id="1", key="A", summary=None, status=None, priority="Medium", updated="2026-10-10T09:00:00.000+0700", url=""),
        FeedItem(id="2", key="B", summary=None, status=None, priority="Medium", updated=None, url=""),
        FeedItem(id="3", key="C", summary=None, status=None, priority="Medium", updated="2026-10-10T03:00:00.000Z", url=""),
    ]
    assert [i.key for i in sort_by_updated(items)] == ["C", "A", "B"]


def test_map_search_hit_badges():
    reporter = {"displayName": "Bao", "avatarUrls": {"24x24": "https://a/24.png"}}
    hit = map_search_hit(make_issue("RAL-9", reporter=reporter, priority=None))
    out = hit.to_dict()
    assert out["reporter"] == {"name": "Bao", "avatar": "https://a/24.png"}
    assert out["assignee"] is None
    assert out["statusColor"] == "default"
    assert out["priority"] == ""


def test_needs_reply_merges_and_sorts_sources(settings):
    api = FakeJiraAPI(
        user_matches=[{"displayName": "no id"}, {"accountId": "me"}],
        issues=[
            make_commented_issue("RAL-1", [("1", "bao")], updated="2026-10-10T09:00:00.000+0000"),
            make_commented_issue("RAL-2", [("1", "me")]),
        ],
        pages=[make_commented_page("9", [("c1", "bao", "Bao", "2026-10-05T10:00:00.000Z")], updated="2026-10-11T09:00:00.000Z")],
    )
    items, error = FeedService(api, settings).needs_reply("lead@acme.test")
    assert error is None
    assert [i.key for i in items] == ["WIKI", "RAL-1"]
    search = api.calls_to("search")[0]
    assert 'assignee = "me"' in search["jql"]
    assert api.calls_to("content")[0]["limit"] == 5


def test_needs_reply_unknown_user_is_empty(settings):
    api = FakeJiraAPI(user_matches=[])
    assert FeedService(api, settings).needs_reply("ghost@acme.test") == ([], None)
    assert api.calls_to("search") == []


def test_needs_reply_user_lookup_failure_is_empty(settings):
    api = FakeJiraAPI(offline={"user_search"})
    assert FeedService(api, settings).needs_reply("lead@acme.test") == ([], None)


def test_needs_reply_rejected_search_keeps_pages(settings):
    api = FakeJiraAPI(
        user_matches=[{"accountId": "me"}],
        pages=[make_commented_page("9", [("c1", "bao", "Bao", "2026-10-05T10:00:00.000Z")])],
        fail={"search"},
    )
    items, error = FeedService(api, settings).needs_reply("lead@acme.test")
    assert error is None
    assert [i.key for i in items] == ["WIKI"]


def test_needs_reply_unreachable_tracker_fails(settings):
    api = FakeJiraAPI(user_matches=[{"accountId": "me"}], offline={"search"})
    assert FeedService(api, settings).needs_reply("lead@acme.test") == ([], "Failed to fetch data")


def test_needs_reply_wiki_outage_keeps_tickets(settings):
    api = FakeJiraAPI(
        user_matches=[{"accountId": "me"}],
        issues=[make_commented_issue("RAL-1", [("1", "bao")])],
        offline={"content"},
    )
    items, _ = FeedService(api, settings).needs_reply("lead@acme.test")
    assert [i.key for i in items] == ["RAL-1"]


def test_due_soon_unreachable_tracker(settings):
    api = FakeJiraAPI(offline={"search"})
    assert FeedService(api, settings).due_soon() == ([], "Failed to fetch Jira data")


def test_search_issues_short_query_and_failure(settings):
    api = FakeJiraAPI(issues=[make_issue("RAL-1")])
    service = FeedService(api, settings)
    assert service.search_issues(" a ") == []
    assert api.calls_to("search") == []
    assert [h.key for h in service.search_issues("login")] == ["RAL-1"]
    api.offline.add("search")
    assert service.search_issues("login") == []
