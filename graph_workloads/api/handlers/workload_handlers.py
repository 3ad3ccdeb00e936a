"""
Workload-related request handlers.

Each handler stands in for a bot action: it builds a resource client from the
caller's bearer token, runs one facade or workload operation and renders the
result as records or as an Adaptive Card (`?format=card`).
"""

from aiohttp import web

from graph_workloads.cards import confirmation_card, detail_card, list_card
from graph_workloads.core.client import ResourceClient
from graph_workloads.core.exceptions import ClassifiedError, ErrorKind, QueryException
from graph_workloads.core.facade import CrudFacade
from graph_workloads.core.models import QueryOptions, WorkloadConfig
from graph_workloads.core.principal import get_current_user, get_user_groups
from graph_workloads.workloads import REGISTRY
from graph_workloads.workloads import calendar, planner

INT_OPTIONS = ("top", "skip")
LIST_OPTIONS = ("select", "expand")


def _get_client(request, context: str) -> ResourceClient:
    """ResourceClient for the caller, sharing the application's session."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise ClassifiedError(ErrorKind.AUTH, context)
    return ResourceClient(token.strip(), session=request.app["csession"])


def _get_workload(request) -> WorkloadConfig:
    name = request.match_info["workload"]
    workload = REGISTRY.get(name)
    if workload is None:
        raise QueryException(404, None, "Unknown workload", f"No workload named {name!r}")
    return workload


def _get_facade(request, verb: str, plural: bool = False) -> CrudFacade:
    workload = _get_workload(request)
    context = f"{verb} {workload.plural if plural else workload.label}"
    return CrudFacade(_get_client(request, context), workload)


def _parse_int(request, name: str) -> int | None:
    raw = request.query.get(name)
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise QueryException(400, None, "Invalid query string", f"{name} must be an integer")
    if value < 0:
        raise QueryException(400, None, "Invalid query string", f"{name} must be positive")
    return value


def _parse_options(request) -> QueryOptions | None:
    query = request.query
    kwargs = {}
    for name in LIST_OPTIONS:
        if query.get(name):
            kwargs[name] = tuple(part.strip() for part in query[name].split(",") if part.strip())
    for name in ("filter", "orderby"):
        if query.get(name):
            kwargs[name] = query[name]
    for name in INT_OPTIONS:
        value = _parse_int(request, name)
        if value is not None:
            kwargs[name] = value
    return QueryOptions(**kwargs) if kwargs else None


async def _read_body(request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise QueryException(400, None, "Invalid body", "Request body must be valid JSON")
    if not isinstance(body, dict):
        raise QueryException(400, None, "Invalid body", "Request body must be a JSON object")
    return body


def _wants_card(request) -> bool:
    return request.query.get("format") == "card"


def _records_response(request, workload: WorkloadConfig, records: list) -> web.Response:
    if _wants_card(request):
        return web.json_response(list_card(workload, records))
    return web.json_response({"value": records})


async def handle_list(request):
    facade = _get_facade(request, "retrieve", plural=True)
    records = await facade.list(_parse_options(request))
    return _records_response(request, facade.workload, records)


async def handle_list_mine(request):
    facade = _get_facade(request, "retrieve your", plural=True)
    records = await facade.list_mine(_parse_options(request))
    return _records_response(request, facade.workload, records)


async def handle_create(request):
    facade = _get_facade(request, "create")
    record = await facade.create(await _read_body(request))
    if _wants_card(request):
        return web.json_response(confirmation_card(facade.workload, record, "created"), status=201)
    return web.json_response(record, status=201)


async def handle_get(request):
    facade = _get_facade(request, "retrieve")
    record = await facade.get_by_id(request.match_info["item_id"], _parse_options(request))
    if _wants_card(request):
        return web.json_response(detail_card(facade.workload, record))
    return web.json_response(record)


async def handle_update(request):
    facade = _get_facade(request, "update")
    record = await facade.update(
        request.match_info["item_id"],
        await _read_body(request),
        etag=request.headers.get("If-Match"),
    )
    if _wants_card(request):
        return web.json_response(confirmation_card(facade.workload, record, "updated"))
    return web.json_response(record)


async def handle_delete(request):
    facade = _get_facade(request, "delete")
    await facade.delete(request.match_info["item_id"], etag=request.headers.get("If-Match"))
    return web.Response(status=204)


async def handle_me(request):
    client = _get_client(request, "get current user information")
    return web.json_response(await get_current_user(client))


async def handle_my_groups(request):
    client = _get_client(request, "get user groups")
    return web.json_response({"value": await get_user_groups(client)})


async def handle_upcoming_events(request):
    facade = CrudFacade(_get_client(request, "retrieve upcoming events"), calendar.EVENTS)
    records = await calendar.upcoming_events(facade, days=_parse_int(request, "days"))
    return _records_response(request, calendar.EVENTS, records)


async def handle_todays_events(request):
    facade = CrudFacade(_get_client(request, "retrieve today's events"), calendar.EVENTS)
    records = await calendar.todays_events(facade)
    return _records_response(request, calendar.EVENTS, records)


async def handle_respond_to_event(request):
    client = _get_client(request, "respond to meeting invitation")
    body = await _read_body(request)
    await calendar.respond_to_invitation(
        client, request.match_info["item_id"], body.get("response", ""), body.get("comment")
    )
    return web.Response(status=202)


async def handle_plan_tasks(request):
    client = _get_client(request, "retrieve plan tasks")
    records = await planner.plan_tasks(client, request.match_info["plan_id"])
    return _records_response(request, planner.TASKS, records)


async def handle_create_plan_task(request):
    client = _get_client(request, "create task")
    body = await _read_body(request)
    record = await planner.create_task(
        client,
        request.match_info["plan_id"],
        body.get("title", ""),
        bucket_id=body.get("bucketId"),
        assignee_id=body.get("assigneeId"),
    )
    if _wants_card(request):
        return web.json_response(confirmation_card(planner.TASKS, record, "created"), status=201)
    return web.json_response(record, status=201)
