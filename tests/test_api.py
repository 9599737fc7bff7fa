"""
TravelStory Backend — API Integration Tests
============================================

What:  End-to-end checks through the HTTP layer: status codes, the JSON
       error body, camelCase field names, auth, and owner scoping.
How:   httpx.AsyncClient over ASGITransport against a per-test app.
"""

import pytest

STORY = {
    "title": "Weekend in Paris",
    "story": "Walked along the Seine",
    "visibleLocation": ["Paris", "France"],
    "imageUrl": "http://testserver/uploads/none.png",
    "visitedDate": 1_700_000_000_000,
}


async def _add_story(client, headers, **overrides):
    response = await client.post("/add-travel-story", json={**STORY, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["story"]


class TestAccounts:

    @pytest.mark.asyncio
    async def test_create_account(self, client):
        response = await client.post(
            "/create-account",
            json={"fullName": "Alice Traveler", "email": "alice@example.com", "password": "pw"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["error"] is False
        assert body["accessToken"]
        assert body["user"] == {"fullName": "Alice Traveler", "email": "alice@example.com"}
        assert body["message"] == "Account created successfully"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client, auth_headers):
        response = await client.post(
            "/create-account",
            json={"fullName": "Other", "email": "alice@example.com", "password": "pw"},
        )
        assert response.status_code == 400
        assert response.json()["error"] is True
        assert response.json()["message"] == "Email already exists"

    @pytest.mark.asyncio
    async def test_missing_fields_all_listed(self, client):
        response = await client.post("/create-account", json={})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] is True
        fields = {p["field"] for p in body["details"]["problems"]}
        assert fields == {"fullName", "email", "password"}

    @pytest.mark.asyncio
    async def test_login(self, client, auth_headers):
        response = await client.post(
            "/login", json={"email": "alice@example.com", "password": "s3cret-pass"}
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"
        assert response.json()["accessToken"]

    @pytest.mark.asyncio
    async def test_login_failures_are_400(self, client, auth_headers):
        wrong = await client.post("/login", json={"email": "alice@example.com", "password": "nope"})
        unknown = await client.post("/login", json={"email": "ghost@example.com", "password": "pw"})
        assert wrong.status_code == 400
        assert unknown.status_code == 400

    @pytest.mark.asyncio
    async def test_get_user(self, client, auth_headers):
        response = await client.get("/get-user", headers=auth_headers)
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["fullName"] == "Alice Traveler"
        assert user["email"] == "alice@example.com"
        assert "passwordHash" not in user
        assert "createdOn" in user

    @pytest.mark.asyncio
    async def test_get_user_requires_token(self, client):
        response = await client.get("/get-user")
        assert response.status_code == 401
        assert response.json()["error"] is True

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get("/get-user", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401


class TestImages:

    @pytest.mark.asyncio
    async def test_upload_serve_and_delete(self, client, auth_headers, sample_png_bytes):
        response = await client.post(
            "/image-upload",
            files={"image": ("photo.png", sample_png_bytes, "image/png")},
            headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        url = response.json()["imageUrl"]
        assert url.endswith(".png")

        served = await client.get(url)
        assert served.status_code == 200
        assert served.content == sample_png_bytes

        deleted = await client.delete("/delete-image", params={"imageUrl": url})
        assert deleted.status_code == 200
        assert deleted.json()["message"] == "Image deleted successfully"

        again = await client.delete("/delete-image", params={"imageUrl": url})
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_upload_rejects_gif(self, client, auth_headers):
        response = await client.post(
            "/image-upload",
            files={"image": ("anim.gif", b"GIF89a", "image/gif")},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert "Only images are allowed" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_upload_without_file(self, client, auth_headers):
        response = await client.post("/image-upload", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "No image uploaded"

    @pytest.mark.asyncio
    async def test_upload_requires_token(self, client, sample_png_bytes):
        response = await client.post(
            "/image-upload", files={"image": ("photo.png", sample_png_bytes, "image/png")}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_delete_without_url(self, client):
        response = await client.delete("/delete-image")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_placeholder_is_served(self, client, test_settings, sample_png_bytes):
        from pathlib import Path

        Path(test_settings.assets_dir, "placeholder.png").write_bytes(sample_png_bytes)
        response = await client.get("/assets/placeholder.png")
        assert response.status_code == 200


class TestStories:

    @pytest.mark.asyncio
    async def test_add_story_camel_case(self, client, auth_headers):
        story = await _add_story(client, auth_headers)
        assert set(story) == {
            "id", "title", "story", "visibleLocation", "isFavorite",
            "userId", "createdOn", "imageUrl", "visitedDate",
        }
        assert story["isFavorite"] is False
        assert story["visibleLocation"] == ["Paris", "France"]
        assert story["visitedDate"].startswith("2023-11-14T22:13:20")

    @pytest.mark.asyncio
    async def test_add_story_missing_fields(self, client, auth_headers):
        response = await client.post("/add-travel-story", json={"title": "Only a title"}, headers=auth_headers)
        assert response.status_code == 400
        body = response.json()
        assert body["message"].startswith("Missing required fields")
        fields = {p["field"] for p in body["details"]["problems"]}
        assert fields == {"story", "visibleLocation", "imageUrl", "visitedDate"}

    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        assert (await client.get("/get-all-stories")).status_code == 401
        assert (await client.post("/add-travel-story", json=STORY)).status_code == 401

    @pytest.mark.asyncio
    async def test_listing_is_scoped_and_favorites_first(self, client, auth_headers, second_user_headers):
        first = await _add_story(client, auth_headers, title="First")
        await _add_story(client, auth_headers, title="Second")
        await _add_story(client, second_user_headers, title="Bob's")

        favorite = await client.put(
            f"/update-is-favorite/{first['id']}", json={"isFavorite": True}, headers=auth_headers
        )
        assert favorite.status_code == 200
        assert favorite.json()["story"]["isFavorite"] is True

        response = await client.get("/get-all-stories", headers=auth_headers)
        assert response.status_code == 200
        titles = [s["title"] for s in response.json()["stories"]]
        assert titles[0] == "First"
        assert sorted(titles) == ["First", "Second"]

    @pytest.mark.asyncio
    async def test_edit_story(self, client, auth_headers):
        story = await _add_story(client, auth_headers)
        response = await client.put(
            f"/edit-story/{story['id']}",
            json={**STORY, "title": "Renamed", "imageUrl": ""},
            headers=auth_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Update successful"
        assert body["story"]["title"] == "Renamed"
        assert body["story"]["imageUrl"] == "http://testserver/assets/placeholder.png"

    @pytest.mark.asyncio
    async def test_foreign_story_is_not_found(self, client, auth_headers, second_user_headers):
        story = await _add_story(client, auth_headers)
        story_id = story["id"]

        edit = await client.put(f"/edit-story/{story_id}", json=STORY, headers=second_user_headers)
        favorite = await client.put(
            f"/update-is-favorite/{story_id}", json={"isFavorite": True}, headers=second_user_headers
        )
        delete = await client.delete(f"/delete-story/{story_id}", headers=second_user_headers)

        assert (edit.status_code, favorite.status_code, delete.status_code) == (404, 404, 404)

        mine = await client.get("/get-all-stories", headers=auth_headers)
        assert mine.json()["stories"][0]["title"] == STORY["title"]
        assert mine.json()["stories"][0]["isFavorite"] is False

    @pytest.mark.asyncio
    async def test_unknown_id(self, client, auth_headers):
        response = await client.delete("/delete-story/not-a-real-id", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_story_removes_uploaded_image(self, client, auth_headers, sample_png_bytes):
        upload = await client.post(
            "/image-upload",
            files={"image": ("photo.png", sample_png_bytes, "image/png")},
            headers=auth_headers,
        )
        url = upload.json()["imageUrl"]
        story = await _add_story(client, auth_headers, imageUrl=url)

        response = await client.delete(f"/delete-story/{story['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Travel story deleted successfully"

        assert (await client.get(url)).status_code == 404
        assert (await client.get("/get-all-stories", headers=auth_headers)).json()["stories"] == []


class TestSearchAndFilter:

    @pytest.mark.asyncio
    async def test_search(self, client, auth_headers, second_user_headers):
        await _add_story(client, auth_headers, title="Louvre day", visibleLocation=["PARIS"])
        await _add_story(client, auth_headers, title="Alps", story="Skiing", visibleLocation=["Chamonix"])
        await _add_story(client, second_user_headers, title="Paris for Bob")

        response = await client.get("/search", params={"query": "paris"}, headers=auth_headers)
        assert response.status_code == 200
        assert [s["title"] for s in response.json()["stories"]] == ["Louvre day"]

    @pytest.mark.asyncio
    async def test_search_without_query(self, client, auth_headers):
        response = await client.get("/search", headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["error"] is True

    @pytest.mark.asyncio
    async def test_filter(self, client, auth_headers):
        await _add_story(client, auth_headers, title="start", visitedDate=1_700_000_000_000)
        await _add_story(client, auth_headers, title="end", visitedDate=1_700_500_000_000)
        await _add_story(client, auth_headers, title="later", visitedDate=1_800_000_000_000)

        response = await client.get(
            "/travel-stories/filter",
            params={"startDate": 1_700_000_000_000, "endDate": 1_700_500_000_000},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert sorted(s["title"] for s in response.json()["stories"]) == ["end", "start"]

    @pytest.mark.asyncio
    async def test_filter_bad_bounds(self, client, auth_headers):
        missing = await client.get(
            "/travel-stories/filter", params={"startDate": 1}, headers=auth_headers
        )
        reversed_ = await client.get(
            "/travel-stories/filter", params={"startDate": 10, "endDate": 1}, headers=auth_headers
        )
        assert missing.status_code == 400
        assert reversed_.status_code == 400


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert "uptimeSeconds" in body

    @pytest.mark.asyncio
    async def test_request_id_header(self, client):
        response = await client.get("/health")
        assert response.headers.get("X-Request-ID")


class TestDateRange:

    @pytest.mark.asyncio
    async def test_add_story_date_out_of_range(self, client, auth_headers):
        response = await client.post(
            "/add-travel-story", json={**STORY, "visitedDate": 10**17}, headers=auth_headers
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] is True
        assert [p["field"] for p in body["details"]["problems"]] == ["visitedDate"]

    @pytest.mark.asyncio
    async def test_edit_story_date_out_of_range(self, client, auth_headers):
        story = await _add_story(client, auth_headers)
        response = await client.put(
            f"/edit-story/{story['id']}", json={**STORY, "visitedDate": -(10**17)}, headers=auth_headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_filter_bound_out_of_range(self, client, auth_headers):
        response = await client.get(
            "/travel-stories/filter",
            params={"startDate": 0, "endDate": 10**17},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert [p["field"] for p in response.json()["details"]["problems"]] == ["endDate"]


class TestUnexpectedErrors:

    @pytest.mark.asyncio
    async def test_500_body_carries_request_id(self, app):
        from httpx import ASGITransport, AsyncClient

        async def explode():
            raise RuntimeError("unexpected")

        app.add_api_route("/explode", explode)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as c:
            response = await c.get("/explode", headers={"X-Request-ID": "trace-123"})

        assert response.status_code == 500
        body = response.json()
        assert body["request_id"] == "trace-123"
        assert "unexpected" not in body["message"]
