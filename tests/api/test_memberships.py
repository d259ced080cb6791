from __future__ import annotations

from fastapi.testclient import TestClient

from community_service.api.dependencies import link_repo
from community_service.models.community import LinkStatus, MembershipLink, Role
from tests.conftest import ALICE, BOB, CAROL, DAVE, auth, create_community


def _users(cid: int) -> str:
    return f"/v1/communities/{cid}/users"


def _link_code(cid: int, uid: int) -> str:
    link = link_repo._store[(cid, uid)]
    assert link.code is not None
    return link.code


def test_self_request_is_pending(client: TestClient) -> None:
    cid = create_community(client)["id"]
    resp = client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))

    assert resp.status_code == 200
    body = resp.json()
    assert body["outcome"] == "requested"
    assert body["created"] is True
    assert body["status"] == "requested"
    assert body["role"] == "member"
    assert body["code"] is None


def test_repeated_request_reports_existing(client: TestClient) -> None:
    cid = create_community(client)["id"]
    client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))
    resp = client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))

    assert resp.status_code == 200
    assert resp.json()["created"] is False
    assert resp.json()["status"] == "requested"


def test_auto_accept_joins(client: TestClient) -> None:
    cid = create_community(client, signup_policy="auto_accept")["id"]
    resp = client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))

    assert resp.json()["outcome"] == "joined"
    assert resp.json()["status"] == "accepted"
    assert client.get(f"/v1/communities/{cid}", headers=auth()).json()[
        "member_count"
    ] == 2


def test_private_self_request_forbidden(client: TestClient) -> None:
    cid = create_community(client, privacy="private")["id"]
    resp = client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))
    assert resp.status_code == 403
    assert resp.json()["code"] == "permission_denied"


def test_invite_returns_code_to_admin(client: TestClient) -> None:
    cid = create_community(client, privacy="private")["id"]
    resp = client.put(f"{_users(cid)}/{CAROL}", headers=auth(ALICE))

    assert resp.status_code == 200
    body = resp.json()
    assert body["outcome"] == "invited"
    assert body["status"] == "invited"
    assert body["code"] == _link_code(cid, CAROL)


def test_invitee_put_reports_invitation_without_code(client: TestClient) -> None:
    cid = create_community(client)["id"]
    client.put(f"{_users(cid)}/{CAROL}", headers=auth(ALICE))

    resp = client.put(f"{_users(cid)}/{CAROL}", headers=auth(CAROL))

    body = resp.json()
    assert body["created"] is False
    assert body["outcome"] == "invited"
    assert body["code"] is None


def test_invite_unknown_user_404(client: TestClient) -> None:
    cid = create_community(client)["id"]
    resp = client.put(f"{_users(cid)}/777", headers=auth(ALICE))
    assert resp.status_code == 404


def test_admin_approves_request(client: TestClient) -> None:
    cid = create_community(client)["id"]
    client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))

    resp = client.patch(
        f"{_users(cid)}/{BOB}",
        json={"code": _link_code(cid, BOB), "status": "accepted"},
        headers=auth(ALICE),
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "community_id": cid,
        "user_id": BOB,
        "role": "member",
        "status": "accepted",
    }


def test_requester_cannot_self_approve(client: TestClient) -> None:
    cid = create_community(client)["id"]
    client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))

    resp = client.patch(
        f"{_users(cid)}/{BOB}",
        json={"code": _link_code(cid, BOB), "status": "accepted"},
        headers=auth(BOB),
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "not_invited"


def test_wrong_code_is_403(client: TestClient) -> None:
    cid = create_community(client)["id"]
    client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))

    resp = client.patch(
        f"{_users(cid)}/{BOB}",
        json={"code": "_000000000", "status": "accepted"},
        headers=auth(ALICE),
    )
    assert resp.status_code == 403
    assert resp.json()["code"] == "code_mismatch"
    assert link_repo._store[(cid, BOB)].status == LinkStatus.REQUESTED


def test_process_with_non_decision_status_is_422(client: TestClient) -> None:
    cid = create_community(client)["id"]
    client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))
    resp = client.patch(
        f"{_users(cid)}/{BOB}",
        json={"code": _link_code(cid, BOB), "status": "invited"},
        headers=auth(ALICE),
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "validation_error"


def test_process_already_accepted_is_409(client: TestClient) -> None:
    cid = create_community(client)["id"]
    resp = client.patch(
        f"{_users(cid)}/{ALICE}",
        json={"code": "_whatever", "status": "declined"},
        headers=auth(ALICE),
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "already_accepted"


def test_capacity_refusal_carries_counts(client: TestClient) -> None:
    cid = create_community(client)["id"]
    for uid in range(100, 149):
        link_repo._store[(cid, uid)] = MembershipLink(
            cid, uid, Role.MEMBER, LinkStatus.ACCEPTED
        )

    resp = client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))
    assert resp.status_code == 403
    assert resp.json() == {
        "detail": "this community cannot accept anymore members",
        "code": "membership_full",
        "data": {"current_count": 50, "allowed": 50},
    }


def test_roster_codes_only_for_admins(client: TestClient) -> None:
    cid = create_community(client, signup_policy="auto_accept")["id"]
    client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))
    client.put(f"{_users(cid)}/{CAROL}", headers=auth(ALICE))

    as_admin = client.get(_users(cid), headers=auth(ALICE)).json()
    as_member = client.get(_users(cid), headers=auth(BOB)).json()

    assert [m["username"] for m in as_admin] == ["alice", "bob", "carol"]
    assert all("code" in m for m in as_admin)
    assert as_admin[2]["code"] == _link_code(cid, CAROL)
    assert all("code" not in m for m in as_member)


def test_roster_status_filter(client: TestClient) -> None:
    cid = create_community(client)["id"]
    client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))
    client.put(f"{_users(cid)}/{CAROL}", headers=auth(ALICE))

    resp = client.get(_users(cid), params={"status": "invited"}, headers=auth())
    assert [m["user_id"] for m in resp.json()] == [CAROL]

    resp = client.get(_users(cid), params={"status": "ALL"}, headers=auth())
    assert len(resp.json()) == 3


def test_roster_forbidden_to_pending_user(client: TestClient) -> None:
    cid = create_community(client)["id"]
    client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))
    resp = client.get(_users(cid), headers=auth(BOB))
    assert resp.status_code == 403


def test_remove_by_admin(client: TestClient) -> None:
    cid = create_community(client)["id"]
    client.put(f"{_users(cid)}/{BOB}", headers=auth(BOB))

    resp = client.delete(f"{_users(cid)}/{BOB}", headers=auth(ALICE))
    assert resp.status_code == 200
    assert resp.json() == {"deleted": True}
    assert (cid, BOB) not in link_repo._store


def test_remove_missing_link_404(client: TestClient) -> None:
    cid = create_community(client)["id"]
    resp = client.delete(f"{_users(cid)}/{DAVE}", headers=auth(ALICE))
    assert resp.status_code == 404


def test_invite_accept_remove_flow(client: TestClient) -> None:
    cid = create_community(client, privacy="private")["id"]

    code = client.put(f"{_users(cid)}/{DAVE}", headers=auth(ALICE)).json()["code"]
    resp = client.patch(
        f"{_users(cid)}/{DAVE}",
        json={"code": code, "status": "accepted"},
        headers=auth(DAVE),
    )
    assert resp.json()["status"] == "accepted"

    # now a member, Dave can see the private community
    assert client.get(f"/v1/communities/{cid}", headers=auth(DAVE)).status_code == 200

    client.delete(f"{_users(cid)}/{DAVE}", headers=auth(ALICE))
    assert client.get(f"/v1/communities/{cid}", headers=auth(DAVE)).status_code == 403
