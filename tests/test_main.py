from __future__ import annotations

from fastapi.testclient import TestClient

from community_service.main import app


client = TestClient(app)


def _paths() -> set[str]:
    return {getattr(r, "path", "") for r in app.routes}


def test_routes_registered() -> None:
    paths = _paths()
    for path in (
        "/health",
        "/ready",
        "/metrics",
        "/v1/communities",
        "/v1/communities/public",
        "/v1/communities/code/{short_code}",
        "/v1/communities/{community_id}",
        "/v1/communities/{community_id}/users",
        "/v1/communities/{community_id}/users/{user_id}",
    ):
        assert path in paths


def test_unknown_route_is_404() -> None:
    assert client.get("/v1/nowhere").status_code == 404


def test_openapi_lists_membership_operations() -> None:
    spec = client.get("/openapi.json").json()
    ops = spec["paths"]["/v1/communities/{community_id}/users/{user_id}"]
    assert {"put", "patch", "delete"} <= set(ops)
