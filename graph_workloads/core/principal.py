"""
Lookups about the signed-in principal, shared by every workload.
"""

from .client import ResourceClient
from .models import Record

GROUP_TYPE = "#microsoft.graph.group"


async def get_current_user(client: ResourceClient) -> Record:
    return await client.get_by_id("/", "me", context="get current user information")


async def get_user_groups(client: ResourceClient) -> list[Record]:
    """Groups the principal belongs to (directory roles are left out)."""
    memberships = await client.get_all("/me/memberOf", context="get user groups")
    return [item for item in memberships if item.get("@odata.type") == GROUP_TYPE]
