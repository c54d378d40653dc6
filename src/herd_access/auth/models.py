from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from herd_access.auth.permissions import Permission, permission_set

ADMIN_ROLE = "admin"


def parse_base_id(value: Any) -> int | None:
    """Positive int, or a string of digits; None when absent. Anything else raises."""
    if value is None:
        return None
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"base id must be an integer, got {type(value).__name__}")
    if value <= 0:
        raise ValueError(f"base id must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Principal:
    user_id: str
    role_name: str
    permissions: frozenset[Permission] = field(default_factory=frozenset)
    base_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role_name == ADMIN_ROLE

    @classmethod
    def from_claims(
        cls,
        claims: Mapping[str, Any],
        *,
        permissions: frozenset[Permission] | None = None,
    ) -> Principal:
        """
        Build a principal from decoded token claims.

        `permissions` overrides the `permissions` claim; callers pass the
        role registry's set when the token does not carry one.
        """
        return cls(
            user_id=str(claims["sub"]),
            role_name=str(claims["role"]),
            permissions=permission_set(claims.get("permissions")) if permissions is None else permissions,
            base_id=parse_base_id(claims.get("baseId")),
        )
