from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, NewType

Permission = NewType("Permission", str)

# Satisfies any requirement. Compare against this constant, never against "*".
WILDCARD = Permission("*")


def permission(value: str) -> Permission:
    if not isinstance(value, str):
        raise TypeError(f"permission must be a string, got {type(value).__name__}")
    value = value.strip()
    if not value:
        raise ValueError("permission must not be empty")
    return Permission(value)


def permission_set(values: Iterable[str] | None) -> frozenset[Permission]:
    """Collapse a loose list of permission strings into a set.

    Raises TypeError for a bare string (a common claim-encoding mistake that
    would otherwise be iterated character by character).
    """
    if values is None:
        return frozenset()
    if isinstance(values, str):
        raise TypeError("permissions must be a collection of strings, not a string")
    return frozenset(permission(v) for v in values)


class Permissions:
    """Well-known permission identifiers used by the livestock services.

    Not exhaustive: any `resource:action` string is a valid Permission.
    """

    BASES_READ = Permission("bases:read")
    BASES_CREATE = Permission("bases:create")
    BASES_UPDATE = Permission("bases:update")
    BASES_DELETE = Permission("bases:delete")

    CATTLE_READ = Permission("cattle:read")
    CATTLE_CREATE = Permission("cattle:create")
    CATTLE_UPDATE = Permission("cattle:update")
    CATTLE_DELETE = Permission("cattle:delete")

    CUSTOMER_READ = Permission("customer:read")
    CUSTOMER_CREATE = Permission("customer:create")
    CUSTOMER_UPDATE = Permission("customer:update")
    CUSTOMER_DELETE = Permission("customer:delete")

    EQUIPMENT_CREATE = Permission("equipment:create")
    EQUIPMENT_UPDATE = Permission("equipment:update")
    EQUIPMENT_DELETE = Permission("equipment:delete")

    FEEDING_READ = Permission("feeding:read")
    FEEDING_CREATE = Permission("feeding:create")
    FEEDING_UPDATE = Permission("feeding:update")
    FEEDING_DELETE = Permission("feeding:delete")

    HEALTH_READ = Permission("health:read")
    HEALTH_CREATE = Permission("health:create")
    HEALTH_UPDATE = Permission("health:update")
    HEALTH_DELETE = Permission("health:delete")

    INVENTORY_READ = Permission("inventory:read")
    INVENTORY_CREATE = Permission("inventory:create")
    INVENTORY_UPDATE = Permission("inventory:update")

    MATERIAL_READ = Permission("material:read")
    MATERIAL_CREATE = Permission("material:create")
    MATERIAL_UPDATE = Permission("material:update")
    MATERIAL_DELETE = Permission("material:delete")

    NEWS_CREATE = Permission("news:create")
    NEWS_UPDATE = Permission("news:update")
    NEWS_DELETE = Permission("news:delete")

    PATROL_READ = Permission("patrol:read")
    PATROL_CREATE = Permission("patrol:create")
    PATROL_UPDATE = Permission("patrol:update")
    PATROL_DELETE = Permission("patrol:delete")

    PURCHASE_READ = Permission("purchase:read")
    PURCHASE_CREATE = Permission("purchase:create")
    PURCHASE_UPDATE = Permission("purchase:update")
    PURCHASE_DELETE = Permission("purchase:delete")
    PURCHASE_APPROVE = Permission("purchase:approve")
    PURCHASE_EXPORT = Permission("purchase:export")

    PURCHASE_ORDER_READ = Permission("purchase_order:read")
    PURCHASE_ORDER_CREATE = Permission("purchase_order:create")
    PURCHASE_ORDER_UPDATE = Permission("purchase_order:update")
    PURCHASE_ORDER_DELETE = Permission("purchase_order:delete")
    PURCHASE_ORDER_APPROVE = Permission("purchase_order:approve")
    PURCHASE_ORDER_RECEIPT = Permission("purchase_order:receipt")

    SALES_READ = Permission("sales:read")
    SALES_CREATE = Permission("sales:create")
    SALES_UPDATE = Permission("sales:update")
    SALES_APPROVE = Permission("sales:approve")

    SYSTEM_READ = Permission("system:read")
    SYSTEM_WRITE = Permission("system:write")

    UPLOAD_FILE = Permission("upload:file")
    UPLOAD_IMAGE = Permission("upload:image")
    UPLOAD_AVATAR = Permission("upload:avatar")
    UPLOAD_BATCH = Permission("upload:batch")
    UPLOAD_DELETE = Permission("upload:delete")

    HELP_CHAT = Permission("help:chat")
    DASHBOARD_READ = Permission("dashboard:read")
    REPORTS_READ = Permission("reports:read")


class Match(str, Enum):
    ANY = "any"
    ALL = "all"


@dataclass(frozen=True)
class PermissionRequirement:
    """Permissions a guarded route asks for, declared once at startup.

    ANY: the principal must hold at least one of them.
    ALL: the principal must hold every one of them.
    """

    permissions: frozenset[Permission]
    match: Match = Match.ANY

    def __post_init__(self) -> None:
        if not self.permissions:
            raise ValueError("a permission requirement needs at least one permission")

    @classmethod
    def of(cls, *permissions: str, match: Match = Match.ANY) -> PermissionRequirement:
        return cls(permissions=permission_set(permissions), match=match)

    @classmethod
    def coerce(cls, value: PermissionRequirement | Iterable[str]) -> PermissionRequirement:
        if isinstance(value, PermissionRequirement):
            return value
        return cls(permissions=permission_set(value))

    def satisfied_by(self, granted: frozenset[Permission]) -> bool:
        if WILDCARD in granted:
            return True
        if self.match is Match.ALL:
            return self.permissions <= granted
        return not self.permissions.isdisjoint(granted)
