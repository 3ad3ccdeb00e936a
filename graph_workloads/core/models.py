"""
Data models for the core module.

This module contains the value objects shared by the resource client, the
CRUD facade and the workload definitions.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence
from urllib.parse import quote

Record = dict[str, Any]


@dataclass(frozen=True)
class QueryOptions:
    """Optional query modifiers for a collection or single-item request.

    A field left to None means "use the remote default". Values are not
    checked against any vocabulary, the remote API validates them.
    """

    select: Sequence[str] | None = None
    filter: str | None = None
    orderby: str | None = None
    top: int | None = None
    skip: int | None = None
    expand: Sequence[str] | None = None
    # non-reserved parameters, e.g. startDateTime/endDateTime for a calendar view
    params: Mapping[str, str] | None = None


@dataclass(frozen=True)
class CollectionPage:
    """One page of a remote collection."""

    items: list[Record]
    next_link: str | None = None


@dataclass(frozen=True)
class WorkloadConfig:
    """Describes one workload: where it lives and how it is displayed."""

    name: str
    label: str
    plural: str
    endpoint: str
    create_endpoint: str | None = None
    mine_endpoint: str | None = None
    required_fields: tuple[str, ...] = ()
    title_field: str = "id"
    subtitle_field: str | None = None
    description_field: str | None = None
    # fact label -> dotted path into the record
    fact_fields: Mapping[str, str] = field(default_factory=dict)
    icon: str = ""

    @property
    def creation_endpoint(self) -> str:
        return self.create_endpoint or self.endpoint

    def item_endpoint(self, item_id: str) -> str:
        return item_path(self.endpoint, item_id)


def item_path(endpoint: str, item_id: str) -> str:
    """Path of a single item below a collection endpoint."""
    return f"{endpoint.rstrip('/')}/{quote(item_id.strip(), safe='')}"
