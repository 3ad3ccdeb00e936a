"""
Workload-agnostic CRUD verbs built on the resource client.
"""

from typing import Any, Generic, Mapping, TypeVar, cast

from .client import ResourceClient
from .exceptions import validation_error
from .models import QueryOptions, WorkloadConfig

RecordT = TypeVar("RecordT", bound=Mapping[str, Any])


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list, tuple)):
        return not value
    return False


class CrudFacade(Generic[RecordT]):
    """Exposes list/create/get/update/delete over one workload.

    Arguments are checked before any request is issued; failures coming back
    from the client are labelled with the operation the caller attempted,
    e.g. "create calendar event".
    """

    def __init__(self, client: ResourceClient, workload: WorkloadConfig):
        self.client = client
        self.workload = workload

    def _context(self, verb: str, plural: bool = False) -> str:
        return f"{verb} {self.workload.plural if plural else self.workload.label}"

    def _require_id(self, item_id: str | None, context: str) -> str:
        if not isinstance(item_id, str) or not item_id.strip():
            raise validation_error(context, f"{self.workload.label.capitalize()} ID is required")
        return item_id.strip()

    async def list_mine(self, options: QueryOptions | None = None) -> list[RecordT]:
        """Items belonging to the signed-in principal."""
        context = f"retrieve your {self.workload.plural}"
        endpoint = self.workload.mine_endpoint or self.workload.endpoint
        items = await self.client.get_all(endpoint, options, context=context)
        return cast(list[RecordT], items)

    async def list(self, options: QueryOptions | None = None) -> list[RecordT]:
        context = self._context("retrieve", plural=True)
        items = await self.client.get_all(self.workload.endpoint, options, context=context)
        return cast(list[RecordT], items)

    async def create(self, data: Mapping[str, Any] | None) -> RecordT:
        context = self._context("create")
        if not data:
            raise validation_error(
                context, f"{self.workload.label.capitalize()} creation data is required"
            )
        missing = [name for name in self.workload.required_fields if _is_blank(data.get(name))]
        if missing:
            raise validation_error(context, f"Missing required fields: {', '.join(missing)}")
        record = await self.client.post(
            self.workload.creation_endpoint, dict(data), context=context
        )
        return cast(RecordT, record)

    async def get_by_id(self, item_id: str, options: QueryOptions | None = None) -> RecordT:
        context = self._context("retrieve")
        item_id = self._require_id(item_id, context)
        record = await self.client.get_by_id(
            self.workload.endpoint, item_id, options, context=context
        )
        return cast(RecordT, record)

    async def update(
        self, item_id: str, updates: Mapping[str, Any] | None, etag: str | None = None
    ) -> RecordT:
        context = self._context("update")
        item_id = self._require_id(item_id, context)
        if not updates:
            raise validation_error(context, "Update data is required")
        record = await self.client.patch(
            self.workload.item_endpoint(item_id), dict(updates), if_match=etag, context=context
        )
        return cast(RecordT, record)

    async def delete(self, item_id: str, etag: str | None = None) -> None:
        context = self._context("delete")
        item_id = self._require_id(item_id, context)
        await self.client.delete(
            self.workload.item_endpoint(item_id), if_match=etag, context=context
        )
