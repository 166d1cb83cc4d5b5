import pytest

from app.core.config import settings
from app.core.security import create_access_token

pytestmark = pytest.mark.anyio


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


async def test_requires_token(client):
    r = await client.get("/user/info")
    assert r.status_code == 401

    r = await client.get("/user/info", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401

    expired = create_access_token("102300217", expires_minutes=-1)
    r = await client.get("/user/info", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Token expired"


async def test_token_cookie_is_accepted(client, student_factory):
    await student_factory("102300217", name="Lin")
    client.cookies.set("access_token", create_access_token("102300217"))

    r = await client.get("/user/info")
    assert r.status_code == 200
    assert r.json()["name"] == "Lin"


async def test_user_info(client, auth_headers, student_factory):
    r = await client.get("/user/info", headers=auth_headers("102300217"))
    assert r.status_code == 404
    assert r.json()["detail"]["kind"] == "user_not_found"

    await student_factory("102300217", name="Lin", college="Computer Science", grade=2023, major="Software")
    r = await client.get("/user/info", headers=auth_headers("102300217"))
    assert r.status_code == 200
    assert r.json() == {
        "stu_id": "102300217",
        "name": "Lin",
        "sex": None,
        "college": "Computer Science",
        "grade": 2023,
        "major": "Software",
    }


async def test_invitation_code_reuse_and_refresh(client, auth_headers):
    headers = auth_headers("102300218")

    r = await client.get("/user/invitation-code", headers=headers)
    assert r.status_code == 200
    code = r.json()["code"]

    r = await client.get("/user/invitation-code", headers=headers)
    assert r.json()["code"] == code

    r = await client.get("/user/invitation-code", params={"is_refresh": True}, headers=headers)
    assert r.status_code == 200
    assert r.json()["code"] != code

    # the old code no longer binds
    r = await client.post("/user/friends/bind", json={"code": code}, headers=auth_headers("102300217"))
    assert r.status_code == 404
    assert r.json()["detail"]["kind"] == "invalid_invitation_code"


async def test_bind_flow(client, auth_headers, student_factory, drain_background, code_cache):
    await student_factory("102300217", name="Lin")
    await student_factory("102300218", name="Chen")

    inviter = auth_headers("102300218")
    invitee = auth_headers("102300217")

    # warm the inviter's friend cache so the post-bind update extends it
    r = await client.get("/user/friends", headers=inviter)
    assert r.json() == []

    code = (await client.get("/user/invitation-code", headers=inviter)).json()["code"]

    r = await client.post("/user/friends/bind", json={"code": code.lower()}, headers=invitee)
    assert r.status_code == 200
    assert r.json() == {"ok": True}

    await drain_background()
    assert await code_cache.exists(f"code_mapping:{code}") is False
    assert await code_cache.get_friend_ids("102300218") == ["102300217"]

    r = await client.get("/user/friends", headers=invitee)
    assert r.status_code == 200
    assert r.json() == [{"stu_id": "102300218", "name": "Chen", "college": None, "major": None}]

    r = await client.get("/user/friends", headers=inviter)
    assert [f["stu_id"] for f in r.json()] == ["102300217"]

    # consumed code cannot be reused
    r = await client.post("/user/friends/bind", json={"code": code}, headers=invitee)
    assert r.status_code == 404


async def test_bind_self_and_duplicate(client, auth_headers, drain_background):
    inviter = auth_headers("102300218")
    code = (await client.get("/user/invitation-code", headers=inviter)).json()["code"]

    r = await client.post("/user/friends/bind", json={"code": code}, headers=inviter)
    assert r.status_code == 400
    assert r.json()["detail"]["kind"] == "self_binding_not_allowed"

    r = await client.post("/user/friends/bind", json={"code": code}, headers=auth_headers("102300217"))
    assert r.status_code == 200
    await drain_background()

    code = (await client.get("/user/invitation-code", headers=inviter)).json()["code"]
    r = await client.post("/user/friends/bind", json={"code": code}, headers=auth_headers("102300217"))
    assert r.status_code == 409
    assert r.json()["detail"]["kind"] == "relation_already_exists"


async def test_bind_rejected_when_friend_list_full(client, auth_headers, drain_background, monkeypatch):
    monkeypatch.setattr(settings, "max_friend_nums", 1)

    code = (await client.get("/user/invitation-code", headers=auth_headers("102300218"))).json()["code"]
    r = await client.post("/user/friends/bind", json={"code": code}, headers=auth_headers("102300217"))
    assert r.status_code == 200
    await drain_background()

    code = (await client.get("/user/invitation-code", headers=auth_headers("102300219"))).json()["code"]
    r = await client.post("/user/friends/bind", json={"code": code}, headers=auth_headers("102300217"))
    assert r.status_code == 409
    assert r.json()["detail"] == {
        "kind": "friend_list_full",
        "message": "102300217 friend list is full",
        "stu_id": "102300217",
    }


async def test_bind_rejected_when_inviter_friend_list_full(client, auth_headers, drain_background, monkeypatch):
    monkeypatch.setattr(settings, "max_friend_nums", 1)

    code = (await client.get("/user/invitation-code", headers=auth_headers("102300218"))).json()["code"]
    r = await client.post("/user/friends/bind", json={"code": code}, headers=auth_headers("102300220"))
    assert r.status_code == 200
    await drain_background()

    code = (await client.get("/user/invitation-code", headers=auth_headers("102300218"))).json()["code"]
    r = await client.post("/user/friends/bind", json={"code": code}, headers=auth_headers("102300217"))
    assert r.status_code == 409
    assert r.json()["detail"] == {
        "kind": "friend_list_full",
        "message": "102300218 friend list is full",
        "stu_id": "102300218",
    }

    r = await client.get("/user/friends", headers=auth_headers("102300217"))
    assert r.json() == []
