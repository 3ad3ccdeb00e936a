"""
Calendar events workload.

Compositions of query options and payloads over the generic facade: the
facade itself never knows what "today's events" means.
"""

from datetime import datetime, timedelta, timezone, tzinfo

from graph_workloads import config
from graph_workloads.core.client import ResourceClient
from graph_workloads.core.exceptions import validation_error
from graph_workloads.core.facade import CrudFacade
from graph_workloads.core.models import QueryOptions, Record, WorkloadConfig, item_path

EVENTS = WorkloadConfig(
    name="events",
    label="calendar event",
    plural="calendar events",
    endpoint="/me/events",
    mine_endpoint="/me/events",
    required_fields=("subject", "start", "end"),
    title_field="subject",
    subtitle_field="start.dateTime",
    description_field="bodyPreview",
    fact_fields={
        "Start": "start.dateTime",
        "End": "end.dateTime",
        "Location": "location.displayName",
        "Organizer": "organizer.emailAddress.name",
        "Importance": "importance",
    },
    icon="📅",
)

CALENDAR_VIEW_ENDPOINT = "/me/calendarView"

RESPONSES = ("accept", "decline", "tentativelyAccept")


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")


def start_between_filter(start: datetime, end: datetime, inclusive_end: bool = True) -> str:
    operator = "le" if inclusive_end else "lt"
    return f"start/dateTime ge '{_iso(start)}' and start/dateTime {operator} '{_iso(end)}'"


async def upcoming_events(
    facade: CrudFacade, days: int | None = None, now: datetime | None = None
) -> list[Record]:
    """Events starting within the next `days` days, soonest first."""
    now = now or datetime.now(timezone.utc)
    days = config.UPCOMING_EVENTS_DAYS if days is None else days
    options = QueryOptions(
        filter=start_between_filter(now, now + timedelta(days=days)),
        orderby="start/dateTime",
        top=config.UPCOMING_EVENTS_TOP,
    )
    return await facade.list(options)


async def todays_events(
    facade: CrudFacade, now: datetime | None = None, tz: tzinfo = timezone.utc
) -> list[Record]:
    """Events starting between midnight and the next midnight, in `tz` (UTC by default)."""
    now = (now or datetime.now(timezone.utc)).astimezone(tz)
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    options = QueryOptions(
        filter=start_between_filter(
            start_of_day, start_of_day + timedelta(days=1), inclusive_end=False
        ),
        orderby="start/dateTime",
    )
    return await facade.list(options)


async def calendar_view(client: ResourceClient, start: str, end: str) -> list[Record]:
    """Every occurrence (recurring events expanded) between two ISO timestamps."""
    context = "retrieve calendar view"
    if not start or not end:
        raise validation_error(context, "Start and end times are required")
    options = QueryOptions(params={"startDateTime": start, "endDateTime": end})
    return await client.get_all(CALENDAR_VIEW_ENDPOINT, options, context=context)


def meeting_payload(
    subject: str,
    start: dict,
    end: dict,
    attendees: list[str],
    body: str | None = None,
    location: str | None = None,
) -> dict:
    payload = {
        "subject": subject,
        "start": start,
        "end": end,
        "attendees": [
            {"emailAddress": {"address": email, "name": email}} for email in attendees
        ],
    }
    if body:
        payload["body"] = {"content": body, "contentType": "HTML"}
    if location:
        payload["location"] = {"displayName": location}
    return payload


async def create_meeting(
    facade: CrudFacade,
    subject: str,
    start: dict,
    end: dict,
    attendees: list[str],
    body: str | None = None,
    location: str | None = None,
) -> Record:
    return await facade.create(meeting_payload(subject, start, end, attendees, body, location))


async def respond_to_invitation(
    client: ResourceClient, event_id: str, response: str, comment: str | None = None
) -> None:
    """Accept, decline or tentatively accept a meeting invitation."""
    context = "respond to meeting invitation"
    if response not in RESPONSES:
        raise validation_error(context, f"Response must be one of: {', '.join(RESPONSES)}")
    context = {
        "accept": "accept meeting invitation",
        "decline": "decline meeting invitation",
        "tentativelyAccept": "tentatively accept meeting invitation",
    }[response]
    if not isinstance(event_id, str) or not event_id.strip():
        raise validation_error(context, "Event ID is required")
    if comment is not None and not isinstance(comment, str):
        raise validation_error(context, "Comment must be a string")
    data = {"comment": comment} if comment else {}
    await client.post(f"{item_path(EVENTS.endpoint, event_id)}/{response}", data, context=context)
