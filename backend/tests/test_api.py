"""
Twinshot Backend — API Endpoint Tests
=======================================

What:  End-to-end tests through the FastAPI app over HTTPX's ASGI transport,
       each against a fresh scratch database.

Scenario covered:
    U1 registers, logs in, requests U2; U2 accepts; U1 posts front + back
    with caption "hi"; U2's feed has exactly that post.
"""

from pathlib import Path

import pytest


async def _register(client, username: str, password: str = "secret1") -> dict:
    response = await client.post(
        "/auth/register",
        json={
            "email": f"{username}@example.com",
            "username": username,
            "display_name": username.title(),
            "password": password,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _files(front: bytes, back: bytes) -> dict:
    return {
        "front_image": ("front.jpg", front, "image/jpeg"),
        "back_image": ("back.jpg", back, "image/jpeg"),
    }


class TestScenario:

    @pytest.mark.asyncio
    async def test_friend_then_post_then_feed(self, test_client, make_image_bytes):
        u1 = await _register(test_client, "u1")
        u2 = await _register(test_client, "u2")

        login = await test_client.post(
            "/auth/login", json={"email": "u1@example.com", "password": "secret1"}
        )
        assert login.status_code == 200
        u1_token = login.json()["token"]
        u2_token = u2["token"]

        response = await test_client.post(
            "/friends/request", json={"friend_id": u2["user"]["id"]}, headers=_auth(u1_token)
        )
        assert response.status_code == 201

        requests = await test_client.get("/friends/requests", headers=_auth(u2_token))
        assert [r["id"] for r in requests.json()] == [u1["user"]["id"]]

        response = await test_client.put(
            "/friends/respond",
            json={"friend_id": u1["user"]["id"], "status": "accepted"},
            headers=_auth(u2_token),
        )
        assert response.status_code == 200

        for token, other in ((u1_token, u2), (u2_token, u1)):
            friends = await test_client.get("/friends", headers=_auth(token))
            assert [f["id"] for f in friends.json()] == [other["user"]["id"]]

        created = await test_client.post(
            "/posts",
            files=_files(make_image_bytes(200, 100), make_image_bytes(90, 300)),
            data={"caption": "hi"},
            headers=_auth(u1_token),
        )
        assert created.status_code == 201, created.text
        post = created.json()["post"]

        feed = await test_client.get("/feed", headers=_auth(u2_token))
        assert feed.status_code == 200
        items = feed.json()
        assert len(items) == 1
        assert items[0]["caption"] == "hi"
        assert items[0]["owner_id"] == u1["user"]["id"]
        assert items[0]["username"] == "u1"

        composite = await test_client.get(f"/uploads/{post['composite_image_path']}")
        assert composite.status_code == 200
        assert composite.content.startswith(b"\x89PNG")

        mine = await test_client.get("/posts/my", headers=_auth(u1_token))
        assert [p["id"] for p in mine.json()] == [post["id"]]

    @pytest.mark.asyncio
    async def test_second_post_same_day_is_409(self, test_client, make_image_bytes):
        user = await _register(test_client, "solo")
        headers = _auth(user["token"])
        files = _files(make_image_bytes(50, 50), make_image_bytes(50, 50))

        first = await test_client.post("/posts", files=files, headers=headers)
        assert first.status_code == 201

        second = await test_client.post("/posts", files=files, headers=headers)
        assert second.status_code == 409
        assert second.json()["error"] == "duplicate_post"
        assert second.json()["message"] == "You can only post once per day"

    @pytest.mark.asyncio
    async def test_uploads_land_under_configured_storage_root(
        self, test_client, test_settings, make_image_bytes
    ):
        user = await _register(test_client, "solo")
        response = await test_client.post(
            "/posts",
            files=_files(make_image_bytes(30, 30), make_image_bytes(30, 30)),
            headers=_auth(user["token"]),
        )
        assert response.status_code == 201
        post = response.json()["post"]

        root = Path(test_settings.storage_root)
        for key in ("front_image_path", "back_image_path", "composite_image_path"):
            assert (root / post[key]).is_file()

        served = await test_client.get(f"/uploads/{post['composite_image_path']}")
        assert served.status_code == 200
        assert served.content == (root / post["composite_image_path"]).read_bytes()


class TestErrors:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/users/profile"),
            ("get", "/friends"),
            ("get", "/feed"),
            ("get", "/posts/my"),
            ("post", "/posts"),
            ("put", "/meta/daily-prompt"),
        ],
    )
    async def test_missing_token_is_401(self, test_client, method, path):
        response = await getattr(test_client, method)(path)
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_invalid_token_is_401(self, test_client):
        response = await test_client.get("/users/profile", headers=_auth("garbage"))
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    @pytest.mark.asyncio
    async def test_missing_part_is_400(self, test_client, make_image_bytes):
        user = await _register(test_client, "alice")
        response = await test_client.post(
            "/posts",
            files={"front_image": ("front.jpg", make_image_bytes(20, 20), "image/jpeg")},
            headers=_auth(user["token"]),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Both front and back images required"

    @pytest.mark.asyncio
    async def test_undecodable_upload_is_422(self, test_client, make_image_bytes):
        user = await _register(test_client, "alice")
        response = await test_client.post(
            "/posts",
            files=_files(make_image_bytes(20, 20), b"garbage bytes"),
            headers=_auth(user["token"]),
        )
        assert response.status_code == 422
        assert response.json()["error"] == "composition_failed"

        # Nothing was recorded, so a valid post still goes through
        retry = await test_client.post(
            "/posts",
            files=_files(make_image_bytes(20, 20), make_image_bytes(20, 20)),
            headers=_auth(user["token"]),
        )
        assert retry.status_code == 201

    @pytest.mark.asyncio
    async def test_duplicate_registration_is_409(self, test_client):
        await _register(test_client, "alice")
        response = await test_client.post(
            "/auth/register",
            json={
                "email": "alice@example.com",
                "username": "someone",
                "display_name": "Someone",
                "password": "secret1",
            },
        )
        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["a@b", "a@@b.com", "no-at-sign"])
    async def test_malformed_email_is_422(self, test_client, email):
        response = await test_client.post(
            "/auth/register",
            json={
                "email": email,
                "username": "alice",
                "display_name": "Alice",
                "password": "secret1",
            },
        )
        assert response.status_code == 422

        login = await test_client.post("/auth/login", json={"email": email, "password": "secret1"})
        assert login.status_code == 422

    @pytest.mark.asyncio
    async def test_upload_path_escape_is_403(self, test_client):
        response = await test_client.get("/uploads/..%2F..%2Fetc%2Fpasswd")
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_upload_is_404(self, test_client):
        response = await test_client.get("/uploads/2024/01/01/missing.png")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"


class TestProfileAndMeta:

    @pytest.mark.asyncio
    async def test_profile_round_trip(self, test_client):
        user = await _register(test_client, "alice")
        headers = _auth(user["token"])

        response = await test_client.put(
            "/users/profile", json={"display_name": "Alice L."}, headers=headers
        )
        assert response.status_code == 200

        profile = (await test_client.get("/users/profile", headers=headers)).json()
        assert profile["display_name"] == "Alice L."
        assert profile["email"] == "alice@example.com"
        assert "password_hash" not in profile

    @pytest.mark.asyncio
    async def test_daily_prompt(self, test_client):
        default = await test_client.get("/meta/daily-prompt")
        assert default.json() == {"prompt": "Time to share your moment."}

        user = await _register(test_client, "alice")
        response = await test_client.put(
            "/meta/daily-prompt", json={"prompt": "Show your lunch"}, headers=_auth(user["token"])
        )
        assert response.status_code == 200

        current = await test_client.get("/meta/daily-prompt")
        assert current.json() == {"prompt": "Show your lunch"}

    @pytest.mark.asyncio
    async def test_search_and_unfriend(self, test_client):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        headers = _auth(alice["token"])

        found = await test_client.get("/friends/search", params={"query": "BO"}, headers=headers)
        assert [a["username"] for a in found.json()] == ["bob"]

        await test_client.post("/friends/request", json={"friend_id": bob["user"]["id"]}, headers=headers)
        removed = await test_client.delete(f"/friends/{bob['user']['id']}", headers=headers)
        assert removed.status_code == 200

        pending = await test_client.get("/friends/requests", headers=_auth(bob["token"]))
        assert pending.json() == []

    @pytest.mark.asyncio
    async def test_search_with_json_body(self, test_client):
        alice = await _register(test_client, "alice")
        await _register(test_client, "bob")
        await _register(test_client, "bobby")
        headers = _auth(alice["token"])

        found = await test_client.post("/friends/search", json={"query": "bob"}, headers=headers)
        assert found.status_code == 200
        assert [a["username"] for a in found.json()] == ["bob", "bobby"]

        mine = await test_client.post("/friends/search", json={"query": "ALI"}, headers=headers)
        assert mine.json() == []

        empty = await test_client.post("/friends/search", json={"query": "  "}, headers=headers)
        assert empty.status_code == 400

        anonymous = await test_client.post("/friends/search", json={"query": "bob"})
        assert anonymous.status_code == 401

    @pytest.mark.asyncio
    async def test_react_and_report(self, test_client, make_image_bytes):
        alice = await _register(test_client, "alice")
        bob = await _register(test_client, "bob")
        created = await test_client.post(
            "/posts",
            files=_files(make_image_bytes(20, 20), make_image_bytes(20, 20)),
            headers=_auth(alice["token"]),
        )
        post_id = created.json()["post_id"]
        headers = _auth(bob["token"])

        first = await test_client.post("/reactions", json={"post_id": post_id}, headers=headers)
        assert first.json()["kind"] == "like"
        second = await test_client.post(
            "/reactions", json={"post_id": post_id, "reaction_type": "wow"}, headers=headers
        )
        assert second.json()["kind"] == "wow"

        removed = await test_client.delete(f"/reactions/{post_id}", headers=headers)
        assert removed.status_code == 200

        report = await test_client.post(
            "/reports", json={"post_id": post_id, "reason": "spam"}, headers=headers
        )
        assert report.status_code == 201

        missing = await test_client.post("/reactions", json={"post_id": 9999}, headers=headers)
        assert missing.status_code == 404


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_database(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_index(self, test_client):
        response = await test_client.get("/")
        assert response.status_code == 200
        assert "Twinshot" in response.json()["message"]
