from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List

from .api import CloudflareApi
from .errors import DecodeError, PermissionNotFound


PERMISSION_GROUPS_PATH = "/user/tokens/permission_groups"


@dataclass(frozen=True)
class PermissionGroup:
    id: str
    name: str


def parse_permission_groups(result: Any) -> List[PermissionGroup]:
    """Turn the catalog ``result`` payload into PermissionGroup values, in order."""
    if not isinstance(result, list):
        raise DecodeError("parse permission groups: expected a list")
    groups: List[PermissionGroup] = []
    for item in result:
        if not isinstance(item, dict):
            raise DecodeError("parse permission groups: entries must be objects")
        groups.append(PermissionGroup(id=str(item.get("id") or ""), name=str(item.get("name") or "")))
    return groups


def select_permission_group(groups: Iterable[PermissionGroup], capability: str, action: str) -> PermissionGroup:
    """Return the first group whose name contains both markers.

    Plain substring matching on the human-readable name, first match in catalog
    order wins. Case-sensitive.
    """
    for group in groups:
        if capability in group.name and action in group.name:
            return group
    raise PermissionNotFound(f"{capability}:{action} permission group not found")


class PermissionResolver:
    def __init__(self, api: CloudflareApi, *, capability: str = "Pages", action: str = "Edit") -> None:
        self.api = api
        self.capability = capability
        self.action = action

    def fetch_catalog(self, bootstrap_token: str) -> List[PermissionGroup]:
        return parse_permission_groups(self.api.get(PERMISSION_GROUPS_PATH, bootstrap_token))

    def resolve(self, bootstrap_token: str) -> str:
        """Fetch the catalog once and return the matching permission group id."""
        groups = self.fetch_catalog(bootstrap_token)
        return select_permission_group(groups, self.capability, self.action).id
