from __future__ import annotations

from typing import Callable, Coroutine, Any

from fastapi import Depends, Request

from herd_access.access.decision import Decision, Denied, DenialReason
from herd_access.access.evaluator import authorize, authorize_role
from herd_access.access.scope import NO_ACCESS, ScopeDescriptor, ScopePolicy, can_access_base, compute_scope
from herd_access.auth.dependencies import app_settings, get_optional_principal
from herd_access.auth.models import Principal
from herd_access.auth.permissions import Match, PermissionRequirement
from herd_access.configs.settings import Settings
from herd_access.errors import AppError, AuthError, BadRequestError, ForbiddenError, PermissionCheckError
from herd_access.configs.logging_config import get_logger

log = get_logger(__name__)

PrincipalDependency = Callable[..., Coroutine[Any, Any, Principal]]


def denial_error(decision: Denied) -> AppError:
    if decision.reason is DenialReason.UNAUTHENTICATED:
        return AuthError()
    if decision.reason is DenialReason.FORBIDDEN:
        return ForbiddenError()
    return PermissionCheckError()


def raise_for_decision(decision: Decision) -> None:
    if isinstance(decision, Denied):
        raise denial_error(decision)


def _attach_scope(request: Request, principal: Principal) -> None:
    request.state.data_scope = compute_scope(principal)


def require_permissions(*permissions: str, match: Match = Match.ANY) -> PrincipalDependency:
    """
    Route guard: authorize the caller, then attach their data scope.

        @router.get("/cattle", dependencies=[Depends(require_permissions("cattle:read"))])

    The requirement is built here, at route declaration, so an empty or
    malformed permission list fails at startup rather than per request.
    """
    requirement = PermissionRequirement.of(*permissions, match=match)

    async def dependency(
        request: Request,
        principal: Principal | None = Depends(get_optional_principal),
    ) -> Principal:
        raise_for_decision(authorize(principal, requirement))
        _attach_scope(request, principal)
        return principal

    return dependency


def require_permission(permission: str) -> PrincipalDependency:
    return require_permissions(permission)


def require_role(*roles: str) -> PrincipalDependency:
    allowed_roles = frozenset(roles)
    if not allowed_roles:
        raise ValueError("require_role needs at least one role")

    async def dependency(
        request: Request,
        principal: Principal | None = Depends(get_optional_principal),
    ) -> Principal:
        decision = authorize_role(principal, allowed_roles)
        if isinstance(decision, Denied) and decision.reason is DenialReason.FORBIDDEN:
            raise ForbiddenError("insufficient role", code="INSUFFICIENT_ROLE")
        raise_for_decision(decision)
        _attach_scope(request, principal)
        return principal

    return dependency


async def require_admin(
    request: Request,
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        raise AuthError()
    if not principal.is_admin:
        log.warning("access.admin_required user_id=%s role=%s", principal.user_id, principal.role_name)
        raise ForbiddenError("administrator privileges required", code="ADMIN_REQUIRED")
    _attach_scope(request, principal)
    return principal


def get_data_scope(request: Request) -> ScopeDescriptor:
    """Scope attached by a permission guard; NO_ACCESS when no guard ran."""
    scope = getattr(request.state, "data_scope", None)
    if scope is None:
        log.warning("scope.missing path=%s", request.url.path)
        return NO_ACCESS
    return scope


def _base_id_param(request: Request, param: str) -> int | None:
    raw = request.path_params.get(param)
    if raw is None:
        raw = request.query_params.get(param)
    if raw is None:
        return None
    try:
        base_id = int(raw)
    except (TypeError, ValueError):
        return None
    return base_id if base_id > 0 else None


def require_base_access(param: str = "base_id") -> Callable[..., Coroutine[Any, Any, int]]:
    """
    Guard for routes addressing a single base: the base id named by `param`
    (path or query) must fall inside the caller's data scope. Must run after
    a permission guard so the scope is attached.
    """

    async def dependency(request: Request, scope: ScopeDescriptor = Depends(get_data_scope)) -> int:
        base_id = _base_id_param(request, param)
        if base_id is None:
            raise BadRequestError("base id is required", code="BASE_ID_REQUIRED")
        if not can_access_base(scope, base_id):
            log.warning("access.base_denied base_id=%s scope=%s path=%s", base_id, scope, request.url.path)
            raise ForbiddenError("access to this base is not allowed", code="BASE_ACCESS_DENIED")
        return base_id

    return dependency


def get_scope_policy(settings: Settings = Depends(app_settings)) -> ScopePolicy:
    return ScopePolicy(default_field=settings.scope_field, global_resources=settings.global_resource_names)
