from __future__ import annotations

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from herd_access.access.dependencies import (
    get_data_scope,
    require_admin,
    require_base_access,
    require_permission,
    require_permissions,
    require_role,
)
from herd_access.access.scope import ScopeDescriptor, apply_scope
from herd_access.auth.dependencies import get_optional_principal
from herd_access.auth.models import Principal
from herd_access.configs.settings import Settings
from herd_access.main import create_app

SECRET = "route-test-secret"


def token(**claims) -> str:
    return jwt.encode(claims, SECRET, algorithm="HS256")


def auth(**claims) -> dict[str, str]:
    return {"Authorization": f"Bearer {token(**claims)}"}


def build_app() -> FastAPI:
    app = create_app(Settings(jwt_secret=SECRET, global_resources="news,suppliers"))

    @app.get("/cattle", dependencies=[Depends(require_permissions("cattle:read", "cattle:update"))])
    async def list_cattle(scope: ScopeDescriptor = Depends(get_data_scope)) -> dict:
        return {"filter": apply_scope({"status": "active"}, scope)}

    @app.delete("/cattle/{cattle_id}", dependencies=[Depends(require_permission("cattle:delete"))])
    async def delete_cattle(cattle_id: int) -> dict:
        return {"deleted": cattle_id}

    @app.get("/health-records", dependencies=[Depends(require_role("veterinarian"))])
    async def health_records() -> dict:
        return {"ok": True}

    @app.get("/roles", dependencies=[Depends(require_admin)])
    async def roles() -> dict:
        return {"ok": True}

    @app.get("/bases/{base_id}/barns", dependencies=[Depends(require_permission("bases:read"))])
    async def barns(base_id: int = Depends(require_base_access())) -> dict:
        return {"base_id": base_id}

    @app.get("/unguarded")
    async def unguarded(scope: ScopeDescriptor = Depends(get_data_scope)) -> dict:
        return {"filter": apply_scope({}, scope)}

    return app


@pytest.fixture(scope="module")
def client() -> TestClient:
    return TestClient(build_app())


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"ok": True}


def test_or_match_allows_and_attaches_base_scope(client: TestClient) -> None:
    resp = client.get("/cattle", headers=auth(sub="7", role="staff", permissions=["cattle:read"], baseId=7))
    assert resp.status_code == 200
    assert resp.json()["filter"] == {"status": "active", "base_id": 7}


def test_admin_sees_all_bases(client: TestClient) -> None:
    resp = client.get("/cattle", headers=auth(sub="1", role="admin", permissions=[], baseId=3))
    assert resp.status_code == 200
    assert resp.json()["filter"] == {"status": "active"}


def test_missing_credentials_is_401(client: TestClient) -> None:
    resp = client.get("/cattle")
    assert resp.status_code == 401
    body = resp.json()
    assert body["status"] == "failure"
    assert body["code"] == "UNAUTHORIZED"


def test_invalid_token_is_401(client: TestClient) -> None:
    resp = client.get("/cattle", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "UNAUTHORIZED"


def test_forbidden_does_not_leak_granted_permissions(client: TestClient) -> None:
    resp = client.get("/cattle", headers=auth(sub="8", role="staff", permissions=["feeding:read"], baseId=7))
    assert resp.status_code == 403
    body = resp.json()
    assert body["code"] == "INSUFFICIENT_PERMISSIONS"
    assert "feeding:read" not in resp.text
    assert "cattle:read" not in resp.text


def test_role_registry_fills_missing_permission_claim(client: TestClient) -> None:
    allowed = client.get("/cattle", headers=auth(sub="9", role="feeder", baseId=2))
    assert allowed.status_code == 200
    assert allowed.json()["filter"]["base_id"] == 2
    denied = client.delete("/cattle/5", headers=auth(sub="9", role="feeder", baseId=2))
    assert denied.status_code == 403


def test_malformed_claim_permissions_are_401(client: TestClient) -> None:
    resp = client.get("/cattle", headers=auth(sub="9", role="staff", permissions="cattle:read"))
    assert resp.status_code == 401


def test_evaluation_error_is_500_with_generic_message() -> None:
    app = build_app()

    async def broken_principal() -> Principal:
        return Principal(user_id="u-x", role_name="staff", permissions=["cattle:read", 5])  # type: ignore[arg-type]

    app.dependency_overrides[get_optional_principal] = broken_principal
    resp = TestClient(app).get("/cattle")
    assert resp.status_code == 500
    body = resp.json()
    assert body["code"] == "PERMISSION_CHECK_ERROR"
    assert body["message"] == "permission check failed"


def test_require_role(client: TestClient) -> None:
    assert client.get("/health-records", headers=auth(sub="3", role="veterinarian", baseId=1)).status_code == 200
    resp = client.get("/health-records", headers=auth(sub="4", role="feeder", baseId=1))
    assert resp.status_code == 403
    assert resp.json()["code"] == "INSUFFICIENT_ROLE"


def test_require_admin(client: TestClient) -> None:
    assert client.get("/roles", headers=auth(sub="1", role="admin")).status_code == 200
    resp = client.get("/roles", headers=auth(sub="2", role="base_manager", permissions=["*"], baseId=1))
    assert resp.status_code == 403
    assert resp.json()["code"] == "ADMIN_REQUIRED"
    assert client.get("/roles").status_code == 401


def test_base_access(client: TestClient) -> None:
    headers = auth(sub="5", role="staff", permissions=["bases:read"], baseId=7)
    assert client.get("/bases/7/barns", headers=headers).json() == {"base_id": 7}
    denied = client.get("/bases/8/barns", headers=headers)
    assert denied.status_code == 403
    assert denied.json()["code"] == "BASE_ACCESS_DENIED"
    missing = client.get("/bases/0/barns", headers=headers)
    assert missing.status_code == 400
    assert missing.json()["code"] == "BASE_ID_REQUIRED"


def test_unguarded_route_gets_no_access_scope(client: TestClient) -> None:
    resp = client.get("/unguarded")
    assert resp.json()["filter"] == {"base_id": {"$in": []}}


def test_access_me(client: TestClient) -> None:
    resp = client.get("/access/me", headers=auth(sub="7", role="staff", permissions=["cattle:read"], baseId=7))
    data = resp.json()["data"]
    assert data == {"user_id": "7", "role": "staff", "is_admin": False, "scope": {"restricted": True, "base_id": 7}}


def test_access_check(client: TestClient) -> None:
    headers = auth(sub="7", role="staff", permissions=["cattle:read"], baseId=7)
    ok = client.get("/access/check", params={"permission": ["cattle:read", "cattle:update"]}, headers=headers)
    assert ok.json()["data"] == {"allowed": True, "reason": None}
    denied = client.get("/access/check", params={"permission": "sales:approve"}, headers=headers)
    assert denied.json()["data"] == {"allowed": False, "reason": "FORBIDDEN"}
    assert client.get("/access/check", headers=headers).status_code == 400


def test_access_bases(client: TestClient) -> None:
    headers = auth(sub="7", role="base_manager", permissions=["bases:read"], baseId=7)
    assert client.get("/access/bases/7", headers=headers).status_code == 200
    assert client.get("/access/bases/9", headers=headers).status_code == 403


def test_filter_preview(client: TestClient) -> None:
    headers = auth(sub="7", role="auditor", permissions=["system:read"], baseId=4)
    scoped = client.get("/access/filters/cattle", headers=headers).json()["data"]
    assert scoped == {"resource": "cattle", "scoped": True, "filter": {"base_id": 4}}
    unscoped = client.get("/access/filters/news", headers=headers).json()["data"]
    assert unscoped == {"resource": "news", "scoped": False, "filter": {}}


@pytest.mark.parametrize("base_id", [True, 7.9, "x", 0])
def test_malformed_base_claim_is_401(client: TestClient, base_id) -> None:
    headers = auth(sub="5", role="staff", permissions=["bases:read"], baseId=base_id)
    resp = client.get("/access/bases/1", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["code"] == "UNAUTHORIZED"
