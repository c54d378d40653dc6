"""
Permission evaluator.

Pure functions from (principal, requirement) to a Decision. Expected
outcomes, including every denial, are returned as values; only the
logging of a denial is a side effect.
"""
from __future__ import annotations

from typing import Iterable

from herd_access.access.decision import (
    ALLOWED,
    EVALUATION_ERROR,
    UNAUTHENTICATED,
    Decision,
    Denied,
    DenialReason,
)
from herd_access.auth.models import ADMIN_ROLE, Principal
from herd_access.auth.permissions import PermissionRequirement, permission_set
from herd_access.configs.logging_config import get_logger

log = get_logger(__name__)


def authorize(
    principal: Principal | None,
    required: PermissionRequirement | Iterable[str],
) -> Decision:
    """
    Decide whether `principal` may use an operation guarded by `required`.

    - no principal: UNAUTHENTICATED
    - admin role: allowed before the permission set is looked at, so an
      empty or broken admin role can never lock the admin out
    - wildcard or a matching permission: allowed
    - anything else: FORBIDDEN
    - malformed principal data: EVALUATION_ERROR (fail closed)
    """
    requirement = PermissionRequirement.coerce(required)
    if principal is None:
        log.warning("access.unauthenticated required=%s", sorted(requirement.permissions))
        return UNAUTHENTICATED

    try:
        if principal.role_name == ADMIN_ROLE:
            return ALLOWED

        granted = permission_set(principal.permissions)
        if requirement.satisfied_by(granted):
            return ALLOWED
    except Exception:
        log.exception(
            "access.evaluation_error user_id=%s required=%s",
            getattr(principal, "user_id", None),
            sorted(requirement.permissions),
        )
        return EVALUATION_ERROR

    log.warning(
        "access.denied user_id=%s match=%s required=%s granted=%s",
        getattr(principal, "user_id", None),
        requirement.match.value,
        sorted(requirement.permissions),
        sorted(granted),
    )
    return Denied(DenialReason.FORBIDDEN, required=requirement.permissions, granted=granted)


def authorize_role(principal: Principal | None, roles: Iterable[str]) -> Decision:
    """Allow only principals whose role is one of `roles` (admin always passes)."""
    allowed_roles = frozenset(roles)
    if not allowed_roles:
        raise ValueError("authorize_role needs at least one role")
    if principal is None:
        log.warning("access.unauthenticated roles=%s", sorted(allowed_roles))
        return UNAUTHENTICATED

    try:
        role_name = principal.role_name
        if not isinstance(role_name, str):
            raise TypeError(f"role name must be a string, got {type(role_name).__name__}")
    except Exception:
        log.exception("access.evaluation_error user_id=%s roles=%s", getattr(principal, "user_id", None), sorted(allowed_roles))
        return EVALUATION_ERROR

    if role_name == ADMIN_ROLE or role_name in allowed_roles:
        return ALLOWED

    log.warning(
        "access.role_denied user_id=%s role=%s required_roles=%s",
        getattr(principal, "user_id", None),
        role_name,
        sorted(allowed_roles),
    )
    return Denied(DenialReason.FORBIDDEN)
