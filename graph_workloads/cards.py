"""
Adaptive Card rendering for workload records.

Rendering never fails: a missing field is shown as placeholder text.
"""

from typing import Any, Mapping, Sequence

from graph_workloads.core.models import WorkloadConfig

CARD_VERSION = "1.4"
PLACEHOLDER = "Not specified"


def lookup(record: Mapping[str, Any], path: str | None) -> Any:
    """Follow a dotted path ("start.dateTime") into nested mappings."""
    if not path:
        return None
    value: Any = record
    for key in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def display(value: Any, placeholder: str = PLACEHOLDER) -> str:
    if value is None or value == "" or value == [] or value == {}:
        return placeholder
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def _header(text: str) -> dict:
    return {"type": "TextBlock", "text": text, "size": "Large", "weight": "Bolder", "color": "Accent"}


def _card(body: list) -> dict:
    return {
        "type": "AdaptiveCard",
        "$schema": "http://adaptivecards.io/schemas/adaptive-card.json",
        "version": CARD_VERSION,
        "body": body,
    }


def _title(workload: WorkloadConfig, record: Mapping[str, Any]) -> str:
    return display(lookup(record, workload.title_field), f"Untitled {workload.label}")


def _facts(workload: WorkloadConfig, record: Mapping[str, Any]) -> list[dict]:
    facts = [{"title": "ID", "value": display(record.get("id"))}]
    facts.extend(
        {"title": title, "value": display(lookup(record, path))}
        for title, path in workload.fact_fields.items()
    )
    return facts


def list_card(workload: WorkloadConfig, records: Sequence[Mapping[str, Any]]) -> dict:
    body = [_header(f"{workload.icon} Your {workload.plural}".strip())]
    if not records:
        body.append(
            {
                "type": "TextBlock",
                "text": f"You don't have any {workload.plural} yet. Create one by asking me!",
                "wrap": True,
            }
        )
        return _card(body)

    items = []
    for record in records:
        lines = [
            {
                "type": "TextBlock",
                "text": f"**{_title(workload, record)}**",
                "size": "Medium",
                "weight": "Bolder",
                "wrap": True,
            }
        ]
        if workload.subtitle_field:
            lines.append(
                {
                    "type": "TextBlock",
                    "text": display(lookup(record, workload.subtitle_field)),
                    "size": "Small",
                    "color": "Accent",
                    "wrap": True,
                }
            )
        lines.append(
            {
                "type": "TextBlock",
                "text": f"ID: {display(record.get('id'))}",
                "size": "Small",
                "isSubtle": True,
                "wrap": True,
            }
        )
        items.append({"type": "Container", "style": "emphasis", "spacing": "Medium", "items": lines})
    body.append({"type": "Container", "items": items})
    return _card(body)


def detail_card(workload: WorkloadConfig, record: Mapping[str, Any]) -> dict:
    details: list[dict] = [
        {
            "type": "TextBlock",
            "text": f"**{_title(workload, record)}**",
            "size": "Large",
            "weight": "Bolder",
            "wrap": True,
        }
    ]
    if workload.description_field:
        details.append(
            {
                "type": "TextBlock",
                "text": display(lookup(record, workload.description_field), "No description"),
                "wrap": True,
                "spacing": "Medium",
            }
        )
    details.append({"type": "FactSet", "facts": _facts(workload, record)})
    return _card(
        [
            _header(f"{workload.icon} {workload.label.capitalize()} details".strip()),
            {"type": "Container", "style": "emphasis", "spacing": "Medium", "items": details},
        ]
    )


def confirmation_card(workload: WorkloadConfig, record: Mapping[str, Any], action: str) -> dict:
    """Short card acknowledging a create or update."""
    return _card(
        [
            _header(f"✅ {workload.label.capitalize()} {action}"),
            {"type": "FactSet", "facts": _facts(workload, record)},
        ]
    )
