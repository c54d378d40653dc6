from __future__ import annotations

import pytest
from jose import jwt

from herd_access.auth.dependencies import _bearer_token
from herd_access.auth.jwt import decode_token
from herd_access.configs.settings import Settings
from herd_access.errors import AuthError


def test_bearer_token_ok() -> None:
    assert _bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


def test_bearer_token_scheme_is_case_insensitive() -> None:
    assert _bearer_token("bearer abc.def.ghi") == "abc.def.ghi"


@pytest.mark.parametrize("value", [None, "", "Basic xxx", "Bearer", "Bearer "])
def test_bearer_token_invalid(value) -> None:
    with pytest.raises(AuthError):
        _bearer_token(value)


def test_decode_token_roundtrip_claims() -> None:
    settings = Settings(jwt_secret="unit-secret")
    token = jwt.encode({"sub": "12", "role": "staff", "baseId": 7}, "unit-secret", algorithm="HS256")
    claims = decode_token(token, settings)
    assert claims["sub"] == "12"
    assert claims["baseId"] == 7


def test_decode_token_wrong_secret_is_auth_error() -> None:
    settings = Settings(jwt_secret="unit-secret")
    token = jwt.encode({"sub": "12", "role": "staff"}, "other-secret", algorithm="HS256")
    with pytest.raises(AuthError) as exc_info:
        decode_token(token, settings)
    assert exc_info.value.http_status == 401
    assert exc_info.value.code == "UNAUTHORIZED"
