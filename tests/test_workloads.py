import re
from datetime import datetime, timedelta, timezone

import pytest

from graph_workloads import config
from graph_workloads.core.exceptions import ClassifiedError, ErrorKind
from graph_workloads.core.facade import CrudFacade
from graph_workloads.core.principal import get_current_user, get_user_groups
from graph_workloads.workloads import EVENTS, REGISTRY, calendar, planner

from .conftest import EVENT_ID, EVENTS_URL, GRAPH_ENDPOINT, next_link, page_pattern, sent_requests

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)
EVENTS_QUERY = re.compile(rf"^{re.escape(EVENTS_URL)}\?.*$")
PLAN_ID = "xqQg5FS2LkCp935s-FIFm2QAFkHM"


async def test_registry():
    assert set(REGISTRY) == {"events", "plans", "buckets", "tasks"}
    assert REGISTRY["events"] is EVENTS


async def test_upcoming_events(client, rmock):
    rmock.get(EVENTS_QUERY, payload={"value": [{"id": "1"}]})
    records = await calendar.upcoming_events(CrudFacade(client, EVENTS), days=2, now=NOW)
    assert records == [{"id": "1"}]
    [(_, url, _)] = sent_requests(rmock)
    assert url.query["$filter"] == (
        "start/dateTime ge '2026-10-19T09:30:00.000Z' "
        "and start/dateTime le '2026-10-21T09:30:00.000Z'"
    )
    assert url.query["$orderby"] == "start/dateTime"
    assert url.query["$top"] == str(config.UPCOMING_EVENTS_TOP)


async def test_upcoming_events_default_window(client, rmock):
    rmock.get(EVENTS_QUERY, payload={"value": []})
    await calendar.upcoming_events(CrudFacade(client, EVENTS), now=NOW)
    [(_, url, _)] = sent_requests(rmock)
    assert "2026-10-26T09:30:00.000Z" in url.query["$filter"]


async def test_todays_events(client, rmock):
    rmock.get(EVENTS_QUERY, payload={"value": []})
    assert await calendar.todays_events(CrudFacade(client, EVENTS), now=NOW) == []
    [(_, url, _)] = sent_requests(rmock)
    assert url.query["$filter"] == (
        "start/dateTime ge '2026-10-19T00:00:00.000Z' "
        "and start/dateTime lt '2026-10-20T00:00:00.000Z'"
    )
    assert "$top" not in url.query


async def test_calendar_view_follows_pages(client, rmock):
    view_url = f"{GRAPH_ENDPOINT}/me/calendarView"
    rmock.get(
        re.compile(rf"^{re.escape(view_url)}\?.*startDateTime.*$"),
        payload={"value": [{"id": "1"}], "@odata.nextLink": next_link("/me/calendarView", "p2")},
    )
    rmock.get(page_pattern("/me/calendarView", "p2"), payload={"value": [{"id": "2"}]})
    records = await calendar.calendar_view(client, "2026-10-19T00:00:00Z", "2026-10-26T00:00:00Z")
    assert [r["id"] for r in records] == ["1", "2"]
    _, first_url, _ = sent_requests(rmock)[0]
    assert first_url.query["startDateTime"] == "2026-10-19T00:00:00Z"
    assert first_url.query["endDateTime"] == "2026-10-26T00:00:00Z"


async def test_calendar_view_requires_bounds(client, rmock):
    with pytest.raises(ClassifiedError) as exc_info:
        await calendar.calendar_view(client, "", "2026-10-26T00:00:00Z")
    assert exc_info.value.kind is ErrorKind.VALIDATION
    assert sent_requests(rmock) == []


async def test_meeting_payload():
    start = {"dateTime": "2026-10-20T10:00:00", "timeZone": "UTC"}
    end = {"dateTime": "2026-10-20T11:00:00", "timeZone": "UTC"}
    payload = calendar.meeting_payload(
        "Design review", start, end, ["ada@example.com"], body="<p>Agenda</p>", location="Room 4"
    )
    assert payload == {
        "subject": "Design review",
        "start": start,
        "end": end,
        "attendees": [{"emailAddress": {"address": "ada@example.com", "name": "ada@example.com"}}],
        "body": {"content": "<p>Agenda</p>", "contentType": "HTML"},
        "location": {"displayName": "Room 4"},
    }
    assert "body" not in calendar.meeting_payload("x", start, end, [])


async def test_create_meeting(client, rmock):
    rmock.post(EVENTS_URL, status=201, payload={"id": "m1"})
    start = {"dateTime": "2026-10-20T10:00:00", "timeZone": "UTC"}
    record = await calendar.create_meeting(
        CrudFacade(client, EVENTS), "Sync", start, start, ["bob@example.com"]
    )
    assert record == {"id": "m1"}
    [(_, _, call)] = sent_requests(rmock)
    assert call.kwargs["json"]["attendees"][0]["emailAddress"]["address"] == "bob@example.com"


@pytest.mark.parametrize("response", ["accept", "decline", "tentativelyAccept"])
async def test_respond_to_invitation(client, rmock, response):
    rmock.post(re.compile(rf"^{re.escape(EVENTS_URL)}/.+/{response}$"), status=202)
    await calendar.respond_to_invitation(client, EVENT_ID, response, comment="See you")
    [(_, url, call)] = sent_requests(rmock)
    assert url.path.endswith(f"/{response}")
    assert call.kwargs["json"] == {"comment": "See you"}


async def test_respond_to_invitation_rejects_unknown_response(client, rmock):
    with pytest.raises(ClassifiedError) as exc_info:
        await calendar.respond_to_invitation(client, EVENT_ID, "maybe")
    assert exc_info.value.kind is ErrorKind.VALIDATION
    assert sent_requests(rmock) == []


async def test_respond_to_invitation_forbidden(client, rmock):
    rmock.post(re.compile(rf"^{re.escape(EVENTS_URL)}/.+/decline$"), status=403)
    with pytest.raises(ClassifiedError) as exc_info:
        await calendar.respond_to_invitation(client, EVENT_ID, "decline")
    assert "decline meeting invitation" in str(exc_info.value)


async def test_task_payload():
    assert planner.task_payload(" p1 ", "b1", " Write docs ") == {
        "title": "Write docs",
        "planId": "p1",
        "bucketId": "b1",
    }
    payload = planner.task_payload("p1", "b1", "Write docs", assignee_id="user-1")
    assert payload["assignments"] == {
        "user-1": {"@odata.type": "microsoft.graph.plannerAssignment", "orderHint": " !"}
    }


async def test_plan_payload():
    assert planner.plan_payload(" Roadmap ", "group-1") == {
        "title": "Roadmap",
        "container": {"url": f"{GRAPH_ENDPOINT}/groups/group-1"},
    }


async def test_my_plans_selects_fields(client, rmock):
    rmock.get(re.compile(rf"^{re.escape(GRAPH_ENDPOINT)}/me/planner/plans\?.*$"), payload={"value": []})
    assert await planner.my_plans(CrudFacade(client, planner.PLANS)) == []
    [(_, url, _)] = sent_requests(rmock)
    assert url.query["$select"] == "id,title,createdDateTime,owner,createdBy,container"


async def test_plan_tasks(client, rmock):
    rmock.get(f"{GRAPH_ENDPOINT}/planner/plans/{PLAN_ID}/tasks", payload={"value": [{"id": "t1"}]})
    assert await planner.plan_tasks(client, PLAN_ID) == [{"id": "t1"}]


async def test_plan_tasks_requires_plan(client, rmock):
    with pytest.raises(ClassifiedError) as exc_info:
        await planner.plan_tasks(client, " ")
    assert str(exc_info.value) == "Invalid input for retrieve plan tasks: Plan ID is required"


async def test_create_task_uses_first_bucket(client, rmock):
    rmock.get(
        f"{GRAPH_ENDPOINT}/planner/plans/{PLAN_ID}/buckets",
        payload={"value": [{"id": "b1"}, {"id": "b2"}]},
    )
    rmock.post(f"{GRAPH_ENDPOINT}/planner/tasks", status=201, payload={"id": "t1"})
    assert await planner.create_task(client, PLAN_ID, "Ship it") == {"id": "t1"}
    post = [call for method, _, call in sent_requests(rmock) if method == "POST"]
    assert post[0].kwargs["json"] == {"title": "Ship it", "planId": PLAN_ID, "bucketId": "b1"}


async def test_create_task_creates_default_bucket(client, rmock):
    rmock.get(f"{GRAPH_ENDPOINT}/planner/plans/{PLAN_ID}/buckets", payload={"value": []})
    rmock.post(f"{GRAPH_ENDPOINT}/planner/buckets", status=201, payload={"id": "new-bucket"})
    rmock.post(f"{GRAPH_ENDPOINT}/planner/tasks", status=201, payload={"id": "t1"})
    await planner.create_task(client, PLAN_ID, "Ship it")
    posts = [(url, call) for method, url, call in sent_requests(rmock) if method == "POST"]
    assert posts[0][1].kwargs["json"] == {
        "name": config.DEFAULT_BUCKET_NAME,
        "planId": PLAN_ID,
        "orderHint": " !",
    }
    assert posts[1][1].kwargs["json"]["bucketId"] == "new-bucket"


async def test_create_task_with_bucket_skips_lookup(client, rmock):
    rmock.post(f"{GRAPH_ENDPOINT}/planner/tasks", status=201, payload={"id": "t1"})
    await planner.create_task(client, PLAN_ID, "Ship it", bucket_id="b9", assignee_id="u1")
    [(method, _, call)] = sent_requests(rmock)
    assert method == "POST"
    assert "u1" in call.kwargs["json"]["assignments"]


async def test_create_task_bucket_lookup_failure_propagates(client, rmock):
    rmock.get(f"{GRAPH_ENDPOINT}/planner/plans/{PLAN_ID}/buckets", status=403)
    with pytest.raises(ClassifiedError) as exc_info:
        await planner.create_task(client, PLAN_ID, "Ship it")
    assert exc_info.value.kind is ErrorKind.FORBIDDEN
    assert "retrieve plan buckets" in str(exc_info.value)


async def test_get_current_user(client, rmock):
    rmock.get(f"{GRAPH_ENDPOINT}/me", payload={"id": "u1", "displayName": "Ada"})
    assert await get_current_user(client) == {"id": "u1", "displayName": "Ada"}


async def test_get_user_groups_filters_groups(client, rmock):
    rmock.get(
        f"{GRAPH_ENDPOINT}/me/memberOf",
        payload={
            "value": [
                {"id": "g1", "@odata.type": "#microsoft.graph.group"},
                {"id": "r1", "@odata.type": "#microsoft.graph.directoryRole"},
            ],
            "@odata.nextLink": next_link("/me/memberOf", "p2"),
        },
    )
    rmock.get(
        page_pattern("/me/memberOf", "p2"),
        payload={"value": [{"id": "g2", "@odata.type": "#microsoft.graph.group"}]},
    )
    groups = await get_user_groups(client)
    assert [group["id"] for group in groups] == ["g1", "g2"]


async def test_todays_events_in_given_timezone(client, rmock):
    rmock.get(EVENTS_QUERY, payload={"value": []})
    paris_summer = timezone(timedelta(hours=2))
    await calendar.todays_events(CrudFacade(client, EVENTS), now=NOW, tz=paris_summer)
    [(_, url, _)] = sent_requests(rmock)
    assert url.query["$filter"] == (
        "start/dateTime ge '2026-10-18T22:00:00.000Z' "
        "and start/dateTime lt '2026-10-19T22:00:00.000Z'"
    )


async def test_respond_to_invitation_rejects_non_string_comment(client, rmock):
    with pytest.raises(ClassifiedError) as exc_info:
        await calendar.respond_to_invitation(client, EVENT_ID, "accept", comment={"text": "hi"})
    assert exc_info.value.kind is ErrorKind.VALIDATION
    assert sent_requests(rmock) == []


@pytest.mark.parametrize(
    "kwargs",
    [
        {"title": 5},
        {"title": "Ship it", "bucket_id": 7},
        {"title": "Ship it", "bucket_id": "b1", "assignee_id": ["u1"]},
    ],
)
async def test_create_task_rejects_non_string_input(client, rmock, kwargs):
    with pytest.raises(ClassifiedError) as exc_info:
        await planner.create_task(client, PLAN_ID, **kwargs)
    assert exc_info.value.kind is ErrorKind.VALIDATION
    assert sent_requests(rmock) == []


def group_pattern(group_id: str) -> re.Pattern:
    return re.compile(rf"^{re.escape(GRAPH_ENDPOINT)}/groups/{group_id}\?.*$")


async def test_my_plans_adds_group_details(client, rmock):
    rmock.get(
        re.compile(rf"^{re.escape(GRAPH_ENDPOINT)}/me/planner/plans\?.*$"),
        payload={
            "value": [
                {"id": "p1", "title": "Roadmap", "container": {"containerId": "g1"}},
                {"id": "p2", "title": "Personal", "container": {}},
            ]
        },
    )
    rmock.get(group_pattern("g1"), payload={"displayName": "Product", "description": "Product team"})
    plans = await planner.my_plans(CrudFacade(client, planner.PLANS))
    assert plans == [
        {
            "id": "p1",
            "title": "Roadmap",
            "container": {"containerId": "g1"},
            "groupName": "Product",
            "groupDescription": "Product team",
        },
        {"id": "p2", "title": "Personal", "container": {}},
    ]
    group_calls = [url for _, url, _ in sent_requests(rmock) if "/groups/" in url.path]
    assert [url.query["$select"] for url in group_calls] == ["displayName,description"]


@pytest.mark.parametrize("status", [403, 404])
async def test_plans_with_groups_keeps_plan_when_group_unreadable(client, rmock, status):
    plans = [
        {"id": "p1", "container": {"containerId": "g1"}},
        {"id": "p2", "container": {"containerId": "g2"}},
    ]
    rmock.get(group_pattern("g1"), status=status, payload={"error": {"code": "Forbidden"}})
    rmock.get(group_pattern("g2"), payload={"displayName": "Ops", "description": None})
    enriched = await planner.plans_with_groups(client, plans)
    assert enriched[0] == plans[0]
    assert enriched[1]["groupName"] == "Ops"


async def test_plans_with_groups_propagates_other_failures(client, rmock):
    rmock.get(group_pattern("g1"), status=429, payload={"error": {"code": "TooManyRequests"}})
    with pytest.raises(ClassifiedError) as exc_info:
        await planner.plans_with_groups(client, [{"id": "p1", "container": {"containerId": "g1"}}])
    assert exc_info.value.kind is ErrorKind.RATE_LIMIT
