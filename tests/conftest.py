from __future__ import annotations

import itertools
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from community_service.api.dependencies import (
    community_repo,
    link_repo,
    request_link_repo,
    user_repo,
)
from community_service.api.ratelimit import _rate_limiter
from community_service.main import app
from community_service.models.user import User
from community_service.services import token_service

# Ensure repo root is on sys.path so `import community_service` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

ALICE, BOB, CAROL, DAVE = 1, 2, 3, 4

SEED_USERS = [
    User(id=ALICE, username="alice", email="alice@example.com", first_name="Alice"),
    User(id=BOB, username="bob", email="bob@example.com", first_name="Bob"),
    User(id=CAROL, username="carol", email="carol@example.com", first_name="Carol"),
    User(id=DAVE, username="dave", email="dave@example.com", first_name="Dave"),
]


@pytest.fixture(autouse=True)
def reset_users_state() -> None:
    user_repo._by_id.clear()
    for user in SEED_USERS:
        user_repo._by_id[user.id] = user


@pytest.fixture(autouse=True)
def reset_community_state() -> None:
    """Clear communities, links and request associations between tests."""
    community_repo._by_id.clear()
    community_repo._ids = itertools.count(1)
    link_repo._store.clear()
    request_link_repo._pairs.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter() -> None:
    """Clear rate limit buckets between tests so limits don't bleed."""
    if hasattr(_rate_limiter, "_buckets"):
        _rate_limiter._buckets.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(user_id: int | str = ALICE, roles: list[str] | None = None) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=str(user_id), roles=roles)


def auth(user_id: int | str = ALICE) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user_id)}"}


def create_community(
    client: TestClient,
    owner: int = ALICE,
    *,
    name: str = "Morning Prayer",
    privacy: str = "public",
    signup_policy: str = "approval_required",
) -> dict:
    """Create a community over HTTP and return the admin view."""
    resp = client.post(
        "/v1/communities",
        json={"name": name, "privacy": privacy, "signup_policy": signup_policy},
        headers=auth(owner),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
