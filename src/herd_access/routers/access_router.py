from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from herd_access.access.decision import Denied
from herd_access.access.dependencies import (
    get_data_scope,
    get_scope_policy,
    require_base_access,
    require_permissions,
)
from herd_access.access.evaluator import authorize
from herd_access.access.scope import RestrictedTo, ScopeDescriptor, ScopePolicy, compute_scope
from herd_access.auth.dependencies import get_optional_principal
from herd_access.auth.models import Principal
from herd_access.auth.permissions import Permissions
from herd_access.errors import AuthError, BadRequestError
from herd_access.utils.response import success
from herd_access.configs.logging_config import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/access", tags=["access"])


def _scope_view(scope: ScopeDescriptor) -> dict:
    if isinstance(scope, RestrictedTo):
        return {"restricted": True, "base_id": None if scope.matches_nothing else scope.base_id}
    return {"restricted": False, "base_id": None}


@router.get("/me")
async def me(principal: Principal | None = Depends(get_optional_principal)) -> dict:
    if principal is None:
        raise AuthError()
    return success(
        {
            "user_id": principal.user_id,
            "role": principal.role_name,
            "is_admin": principal.is_admin,
            "scope": _scope_view(compute_scope(principal)),
        }
    )


@router.get(
    "/bases/{base_id}",
    dependencies=[Depends(require_permissions(Permissions.BASES_READ))],
)
async def base_visibility(
    base_id: int = Depends(require_base_access("base_id")),
    scope: ScopeDescriptor = Depends(get_data_scope),
) -> dict:
    return success({"base_id": base_id, "scope": _scope_view(scope)})


@router.get("/check")
async def check(
    permission: list[str] | None = Query(default=None),
    principal: Principal | None = Depends(get_optional_principal),
) -> dict:
    """Evaluate a permission list for the caller without touching any resource."""
    if principal is None:
        raise AuthError()
    if not permission:
        raise BadRequestError("at least one permission is required", code="PERMISSION_REQUIRED")
    try:
        decision = authorize(principal, permission)
    except (TypeError, ValueError) as exc:
        raise BadRequestError("invalid permission", code="INVALID_PERMISSION") from exc
    log.info("access.check user_id=%s allowed=%s", principal.user_id, decision.allowed)
    reason = decision.reason.value if isinstance(decision, Denied) else None
    return success({"allowed": decision.allowed, "reason": reason})


@router.get(
    "/filters/{resource}",
    dependencies=[Depends(require_permissions(Permissions.SYSTEM_READ))],
)
async def filter_preview(
    resource: str,
    scope: ScopeDescriptor = Depends(get_data_scope),
    policy: ScopePolicy = Depends(get_scope_policy),
) -> dict:
    """The base predicate the caller's queries on `resource` would carry."""
    query = policy.apply(resource, {}, scope)
    return success({"resource": resource, "scoped": policy.is_scoped(resource), "filter": query})
