from __future__ import annotations

from typing import Iterable, Mapping

from herd_access.auth.models import ADMIN_ROLE
from herd_access.auth.permissions import WILDCARD, Permission, Permissions, permission_set
from herd_access.configs.logging_config import get_logger

log = get_logger(__name__)

_P = Permissions

DEFAULT_ROLES: dict[str, tuple[Permission, ...]] = {
    ADMIN_ROLE: (WILDCARD,),
    "base_manager": (
        _P.CATTLE_CREATE, _P.CATTLE_READ, _P.CATTLE_UPDATE, _P.CATTLE_DELETE,
        _P.HEALTH_CREATE, _P.HEALTH_READ, _P.HEALTH_UPDATE, _P.HEALTH_DELETE,
        _P.FEEDING_CREATE, _P.FEEDING_READ, _P.FEEDING_UPDATE, _P.FEEDING_DELETE,
        _P.MATERIAL_CREATE, _P.MATERIAL_READ, _P.MATERIAL_UPDATE,
        _P.INVENTORY_CREATE, _P.INVENTORY_READ, _P.INVENTORY_UPDATE,
        _P.PURCHASE_CREATE, _P.PURCHASE_READ, _P.PURCHASE_UPDATE,
        _P.SALES_CREATE, _P.SALES_READ, _P.SALES_UPDATE,
        _P.DASHBOARD_READ, _P.REPORTS_READ,
    ),
    "veterinarian": (
        _P.CATTLE_READ,
        _P.HEALTH_CREATE, _P.HEALTH_READ, _P.HEALTH_UPDATE, _P.HEALTH_DELETE,
        _P.DASHBOARD_READ, _P.REPORTS_READ,
    ),
    "feeder": (
        _P.CATTLE_READ, _P.CATTLE_UPDATE,
        _P.FEEDING_CREATE, _P.FEEDING_READ, _P.FEEDING_UPDATE,
        _P.MATERIAL_READ, _P.INVENTORY_READ, _P.DASHBOARD_READ,
    ),
    "staff": (
        _P.CATTLE_READ, _P.HEALTH_READ, _P.FEEDING_READ, _P.MATERIAL_READ,
        _P.INVENTORY_READ, _P.DASHBOARD_READ, _P.REPORTS_READ,
    ),
}


class RoleRegistry:
    """Read-only role -> permission mapping used when a token carries no permission claim."""

    def __init__(self, roles: Mapping[str, Iterable[str]] | None = None):
        source = DEFAULT_ROLES if roles is None else roles
        self._roles: dict[str, frozenset[Permission]] = {
            name: permission_set(perms) for name, perms in source.items()
        }

    def permissions_for(self, role_name: str) -> frozenset[Permission]:
        perms = self._roles.get(role_name)
        if perms is None:
            log.warning("roles.unknown role=%s", role_name)
            return frozenset()
        return perms

    def __contains__(self, role_name: object) -> bool:
        return role_name in self._roles

    def role_names(self) -> list[str]:
        return sorted(self._roles)


_registry: RoleRegistry | None = None


def get_role_registry() -> RoleRegistry:
    global _registry
    if _registry is None:
        _registry = RoleRegistry()
    return _registry
