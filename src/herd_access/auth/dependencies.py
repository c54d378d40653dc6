from __future__ import annotations

from fastapi import Depends, Header, Request

from herd_access.auth.jwt import decode_token
from herd_access.auth.models import Principal
from herd_access.auth.roles import RoleRegistry, get_role_registry
from herd_access.configs.settings import Settings, get_settings
from herd_access.errors import AuthError
from herd_access.configs.logging_config import get_logger

log = get_logger(__name__)


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthError("missing authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("invalid authorization header")
    return token.strip()


def app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


async def get_optional_principal(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(app_settings),
    roles: RoleRegistry = Depends(get_role_registry),
) -> Principal | None:
    """
    Resolve the caller, or None when the request carries no credentials.

    A missing header is not an error here: the permission evaluator turns an
    absent principal into an UNAUTHENTICATED denial. A header that is present
    but unusable is rejected immediately.
    """
    if not authorization:
        log.debug("auth.no_credentials")
        return None

    claims = decode_token(_bearer_token(authorization), settings)

    user_id = claims.get("sub")
    role = claims.get("role")
    if not user_id or not role:
        log.info("auth.token_missing_claims has_role=%s has_sub=%s", bool(role), bool(user_id))
        raise AuthError("token missing required claims")

    try:
        if claims.get("permissions") is None:
            principal = Principal.from_claims(claims, permissions=roles.permissions_for(str(role)))
        else:
            principal = Principal.from_claims(claims)
    except (TypeError, ValueError) as exc:
        log.info("auth.invalid_claims user_id=%s error=%s", user_id, str(exc))
        raise AuthError("invalid token claims") from exc

    log.info(
        "auth.principal user_id=%s role=%s base_id=%s",
        principal.user_id,
        principal.role_name,
        principal.base_id,
    )
    return principal
