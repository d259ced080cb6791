from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from community_service.services import token_service
from tests.conftest import mint_token


def test_missing_token_is_401(client: TestClient) -> None:
    resp = client.get("/v1/communities")
    assert resp.status_code == 401


def test_garbage_token_is_401(client: TestClient) -> None:
    resp = client.get(
        "/v1/communities", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"
    assert resp.headers["www-authenticate"] == "Bearer"


def test_expired_token_is_401(client: TestClient) -> None:
    token = token_service.create_access_token(sub="1", ttl=timedelta(seconds=-30))
    resp = client.get("/v1/communities", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"


@pytest.mark.parametrize("sub", ["alice", "1.5", ""])
def test_non_numeric_subject_is_401(client: TestClient, sub: str) -> None:
    token = mint_token(sub)
    resp = client.get("/v1/communities", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_numeric_subject_accepted(client: TestClient) -> None:
    resp = client.get(
        "/v1/communities", headers={"Authorization": f"Bearer {mint_token(3)}"}
    )
    assert resp.status_code == 200
    assert resp.json() == []


def test_token_round_trip_claims() -> None:
    claims = token_service.decode_access_token(mint_token(7, roles=["user"]))
    assert claims["sub"] == "7"
    assert claims["aud"] == token_service.AUDIENCE
    assert claims["roles"] == ["user"]
