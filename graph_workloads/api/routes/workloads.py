"""
Workload-related route definitions.

Specific routes are declared before the generic `/api/{workload}/` ones so
that they win the match.
"""

from aiohttp import web

from ..handlers import (
    handle_create,
    handle_create_plan_task,
    handle_delete,
    handle_get,
    handle_list,
    handle_list_mine,
    handle_me,
    handle_my_groups,
    handle_plan_tasks,
    handle_respond_to_event,
    handle_todays_events,
    handle_upcoming_events,
    handle_update,
)

routes = web.RouteTableDef()


@routes.get(r"/api/me/", name="me")
async def me(request):
    """Get the signed-in user."""
    return await handle_me(request)


@routes.get(r"/api/me/groups/", name="my_groups")
async def my_groups(request):
    """Get the groups of the signed-in user."""
    return await handle_my_groups(request)


@routes.get(r"/api/calendar/upcoming/", name="upcoming_events")
async def upcoming_events(request):
    """Get events starting in the next days."""
    return await handle_upcoming_events(request)


@routes.get(r"/api/calendar/today/", name="todays_events")
async def todays_events(request):
    """Get events starting today."""
    return await handle_todays_events(request)


@routes.post(r"/api/calendar/{item_id}/respond/", name="respond_to_event")
async def respond_to_event(request):
    """Accept, decline or tentatively accept an invitation."""
    return await handle_respond_to_event(request)


@routes.get(r"/api/planner/plans/{plan_id}/tasks/", name="plan_tasks")
async def plan_tasks(request):
    """Get the tasks of a plan."""
    return await handle_plan_tasks(request)


@routes.post(r"/api/planner/plans/{plan_id}/tasks/", name="create_plan_task")
async def create_plan_task(request):
    """Create a task in a plan, in its first bucket unless one is given."""
    return await handle_create_plan_task(request)


@routes.get(r"/api/{workload}/mine/", name="mine")
async def list_mine(request):
    """Get the signed-in user's items of a workload."""
    return await handle_list_mine(request)


@routes.get(r"/api/{workload}/", name="items")
async def list_items(request):
    """Get every item of a workload."""
    return await handle_list(request)


@routes.post(r"/api/{workload}/")
async def create_item(request):
    """Create an item."""
    return await handle_create(request)


@routes.get(r"/api/{workload}/{item_id}/", name="item")
async def get_item(request):
    """Get one item."""
    return await handle_get(request)


@routes.patch(r"/api/{workload}/{item_id}/")
async def update_item(request):
    """Update one item."""
    return await handle_update(request)


@routes.delete(r"/api/{workload}/{item_id}/")
async def delete_item(request):
    """Delete one item."""
    return await handle_delete(request)
