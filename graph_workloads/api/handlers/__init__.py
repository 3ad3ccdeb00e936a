"""
Request handlers for the API module.
"""

from .workload_handlers import (
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

__all__ = [
    "handle_list",
    "handle_list_mine",
    "handle_create",
    "handle_get",
    "handle_update",
    "handle_delete",
    "handle_me",
    "handle_my_groups",
    "handle_upcoming_events",
    "handle_todays_events",
    "handle_respond_to_event",
    "handle_plan_tasks",
    "handle_create_plan_task",
]
