"""
Planner workloads: plans, buckets and tasks.

Planner rejects updates and deletes without the item's current etag, pass it
through `CrudFacade.update(..., etag=record["@odata.etag"])`.
"""

import asyncio
import logging

from graph_workloads import config
from graph_workloads.core.client import ResourceClient
from graph_workloads.core.exceptions import ClassifiedError, ErrorKind, validation_error
from graph_workloads.core.facade import CrudFacade
from graph_workloads.core.models import QueryOptions, Record, WorkloadConfig, item_path

logger = logging.getLogger(__name__)

PLANS = WorkloadConfig(
    name="plans",
    label="plan",
    plural="plans",
    endpoint="/planner/plans",
    mine_endpoint="/me/planner/plans",
    required_fields=("title", "container"),
    title_field="title",
    subtitle_field="createdBy.user.displayName",
    fact_fields={"Created": "createdDateTime", "Group": "container.containerId"},
    icon="📋",
)

BUCKETS = WorkloadConfig(
    name="buckets",
    label="bucket",
    plural="buckets",
    endpoint="/planner/buckets",
    required_fields=("name", "planId"),
    title_field="name",
    fact_fields={"Plan": "planId"},
    icon="🗂️",
)

TASKS = WorkloadConfig(
    name="tasks",
    label="task",
    plural="tasks",
    endpoint="/planner/tasks",
    mine_endpoint="/me/planner/tasks",
    required_fields=("title", "planId", "bucketId"),
    title_field="title",
    subtitle_field="dueDateTime",
    fact_fields={
        "Progress": "percentComplete",
        "Priority": "priority",
        "Created": "createdDateTime",
        "Plan": "planId",
    },
    icon="✅",
)

PLAN_SELECT = ("id", "title", "createdDateTime", "owner", "createdBy", "container")
GROUP_SELECT = ("displayName", "description")


def plan_payload(title: str, group_id: str) -> dict:
    return {
        "title": title.strip(),
        "container": {"url": f"{config.GRAPH_ENDPOINT}/groups/{group_id.strip()}"},
    }


def task_payload(
    plan_id: str, bucket_id: str, title: str, assignee_id: str | None = None
) -> dict:
    payload = {"title": title.strip(), "planId": plan_id.strip(), "bucketId": bucket_id.strip()}
    if isinstance(assignee_id, str) and assignee_id.strip():
        payload["assignments"] = {
            assignee_id.strip(): {
                "@odata.type": "microsoft.graph.plannerAssignment",
                "orderHint": " !",
            }
        }
    return payload


def _require(value, context: str, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise validation_error(context, f"{what} is required")
    return value.strip()


def _optional(value, context: str, what: str) -> str | None:
    """Stripped value, or None when unset or blank."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise validation_error(context, f"{what} must be a string")
    return value.strip() or None


async def _with_group(client: ResourceClient, plan: Record) -> Record:
    group_id = (plan.get("container") or {}).get("containerId")
    if not isinstance(group_id, str) or not group_id.strip():
        return plan
    try:
        group = await client.get_by_id(
            "/groups",
            group_id,
            QueryOptions(select=GROUP_SELECT),
            context="retrieve plan group",
        )
    except ClassifiedError as e:
        if e.kind not in (ErrorKind.NOT_FOUND, ErrorKind.FORBIDDEN):
            raise
        return plan
    return {
        **plan,
        "groupName": group.get("displayName"),
        "groupDescription": group.get("description"),
    }


async def plans_with_groups(client: ResourceClient, plans: list[Record]) -> list[Record]:
    """Add `groupName` and `groupDescription` of the owning group to each plan.

    A plan whose group cannot be found or read is returned unchanged.
    """
    return list(await asyncio.gather(*(_with_group(client, plan) for plan in plans)))


async def my_plans(facade: CrudFacade) -> list[Record]:
    plans = await facade.list_mine(QueryOptions(select=PLAN_SELECT))
    return await plans_with_groups(facade.client, plans)


async def plan_tasks(client: ResourceClient, plan_id: str) -> list[Record]:
    context = "retrieve plan tasks"
    plan_id = _require(plan_id, context, "Plan ID")
    return await client.get_all(f"{item_path(PLANS.endpoint, plan_id)}/tasks", context=context)


async def plan_buckets(client: ResourceClient, plan_id: str) -> list[Record]:
    context = "retrieve plan buckets"
    plan_id = _require(plan_id, context, "Plan ID")
    return await client.get_all(f"{item_path(PLANS.endpoint, plan_id)}/buckets", context=context)


async def create_task(
    client: ResourceClient,
    plan_id: str,
    title: str,
    bucket_id: str | None = None,
    assignee_id: str | None = None,
) -> Record:
    """Create a task, placing it in the plan's first bucket when none is given.

    A plan without any bucket gets a default one first.
    """
    context = "create task"
    plan_id = _require(plan_id, context, "Plan ID")
    title = _require(title, context, "Task title")
    bucket_id = _optional(bucket_id, context, "Bucket ID")
    assignee_id = _optional(assignee_id, context, "Assignee ID")
    if bucket_id is None:
        buckets = await plan_buckets(client, plan_id)
        if buckets:
            bucket_id = buckets[0]["id"]
        else:
            logger.info("Plan %s has no bucket, creating %r", plan_id, config.DEFAULT_BUCKET_NAME)
            bucket = await CrudFacade(client, BUCKETS).create(
                {"name": config.DEFAULT_BUCKET_NAME, "planId": plan_id, "orderHint": " !"}
            )
            bucket_id = bucket["id"]
    return await CrudFacade(client, TASKS).create(
        task_payload(plan_id, bucket_id, title, assignee_id)
    )
