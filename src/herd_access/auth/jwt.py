from __future__ import annotations

from typing import Any

from jose import JWTError, jwt

from herd_access.configs.settings import Settings
from herd_access.errors import AuthError
from herd_access.configs.logging_config import get_logger

log = get_logger(__name__)


def decode_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Decode and validate a bearer JWT.

    Only verification lives here; tokens are issued by the auth service.
    """
    try:
        log.debug("jwt.decode start alg=%s iss=%s aud=%s", settings.jwt_alg, settings.jwt_issuer, settings.jwt_audience)
        options = {"verify_aud": settings.jwt_audience is not None}
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_alg],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options=options,
        )
        log.debug("jwt.decode ok sub=%s role=%s baseId=%s", claims.get("sub"), claims.get("role"), claims.get("baseId"))
        return claims
    except JWTError as e:
        log.info("jwt.decode failed: %s", str(e))
        raise AuthError("invalid token") from e
