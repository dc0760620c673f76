"""Notes endpoints: create, list/search/paginate, owner-checked delete."""

from __future__ import annotations

from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from secure_notes import messages


def _create(client: TestClient, headers: dict, title: str = "title", content: str = "U2FsdGVkX1+ciphertext"):
    return client.post("/notes", json={"title": title, "content": content}, headers=headers)


class TestCreateNote:
    def test_returns_created_note(self, client: TestClient, auth_headers) -> None:
        resp = _create(client, auth_headers, "Groceries", "abc")

        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == messages.NOTE_CREATED
        assert set(body["data"]) == {"id", "title", "content", "createdAt", "updatedAt"}
        assert body["data"]["title"] == "Groceries"
        assert body["data"]["content"] == "abc"

    def test_content_is_stored_verbatim(self, client: TestClient, auth_headers) -> None:
        content = " U2FsdGVkX1+/AbC==\n"
        _create(client, auth_headers, "raw", content)

        listed = client.get("/notes", headers=auth_headers).json()["data"]["notes"]
        assert listed[0]["content"] == content

    def test_title_is_trimmed(self, client: TestClient, auth_headers) -> None:
        resp = _create(client, auth_headers, "  padded  ")
        assert resp.json()["data"]["title"] == "padded"

    def test_timestamps_carry_utc_offset(self, client: TestClient, auth_headers) -> None:
        created = _create(client, auth_headers).json()["data"]
        listed = client.get("/notes", headers=auth_headers).json()["data"]["notes"][0]

        for value in (created["createdAt"], created["updatedAt"], listed["createdAt"]):
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            assert parsed.utcoffset() == timedelta(0)

    def test_blank_title(self, client: TestClient, auth_headers) -> None:
        resp = _create(client, auth_headers, "   ")
        assert resp.status_code == 400
        assert resp.json()["message"] == messages.TITLE_REQUIRED
        assert resp.json()["data"]["errors"][0]["field"] == "title"

    def test_title_too_long(self, client: TestClient, auth_headers) -> None:
        resp = _create(client, auth_headers, "x" * 201)
        assert resp.status_code == 400

    def test_blank_content(self, client: TestClient, auth_headers) -> None:
        resp = _create(client, auth_headers, "title", "  ")
        assert resp.status_code == 400
        assert resp.json()["message"] == messages.CONTENT_REQUIRED


class TestListNotes:
    def test_default_listing_is_scoped(self, client: TestClient, auth_headers, other_headers) -> None:
        _create(client, auth_headers, "mine 1")
        _create(client, auth_headers, "mine 2")
        _create(client, other_headers, "theirs")

        resp = client.get("/notes", headers=auth_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == messages.NOTES_FETCHED
        assert set(body["data"]) == {"notes", "total"}
        assert body["data"]["total"] == 2
        assert {n["title"] for n in body["data"]["notes"]} == {"mine 1", "mine 2"}

    def test_search_by_title(self, client: TestClient, auth_headers, other_headers) -> None:
        _create(client, auth_headers, "weekly meeting notes")
        _create(client, auth_headers, "shopping")
        _create(client, other_headers, "Meeting minutes")

        data = client.get("/notes", params={"search": "Meeting"}, headers=auth_headers).json()["data"]
        assert data["total"] == 1
        assert data["notes"][0]["title"] == "weekly meeting notes"

    def test_search_takes_priority_over_pagination(self, client: TestClient, auth_headers) -> None:
        _create(client, auth_headers, "alpha")
        _create(client, auth_headers, "beta")

        data = client.get(
            "/notes", params={"search": "alp", "page": "1", "limit": "1"}, headers=auth_headers
        ).json()["data"]
        assert set(data) == {"notes", "total"}
        assert [n["title"] for n in data["notes"]] == ["alpha"]

    def test_pagination(self, client: TestClient, auth_headers) -> None:
        for i in range(15):
            _create(client, auth_headers, f"note {i}")

        data = client.get("/notes", params={"page": "2", "limit": "10"}, headers=auth_headers).json()["data"]
        assert len(data["notes"]) == 5
        assert data["total"] == 15
        assert data["page"] == 2
        assert data["totalPages"] == 2

    def test_pagination_needs_both_params(self, client: TestClient, auth_headers) -> None:
        for i in range(3):
            _create(client, auth_headers, f"note {i}")

        data = client.get("/notes", params={"page": "2"}, headers=auth_headers).json()["data"]
        assert set(data) == {"notes", "total"}
        assert data["total"] == 3

    def test_non_numeric_pagination_falls_back_to_defaults(self, client: TestClient, auth_headers) -> None:
        _create(client, auth_headers, "only")

        data = client.get("/notes", params={"page": "abc", "limit": "-5"}, headers=auth_headers).json()["data"]
        assert data["page"] == 1
        assert data["totalPages"] == 1
        assert len(data["notes"]) == 1


class TestDeleteNote:
    def test_owner_can_delete(self, client: TestClient, auth_headers) -> None:
        note_id = _create(client, auth_headers).json()["data"]["id"]

        resp = client.delete(f"/notes/{note_id}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "message": messages.NOTE_DELETED, "data": {"id": note_id}}

        listing = client.get("/notes", headers=auth_headers).json()["data"]
        assert listing["total"] == 0

    def test_non_owner_is_forbidden(self, client: TestClient, auth_headers, other_headers) -> None:
        note_id = _create(client, auth_headers).json()["data"]["id"]

        resp = client.delete(f"/notes/{note_id}", headers=other_headers)
        assert resp.status_code == 403
        assert resp.json()["message"] == messages.UNAUTHORIZED_NOTE_ACCESS

        # still there for the owner
        assert client.get("/notes", headers=auth_headers).json()["data"]["total"] == 1

    def test_unknown_note_is_not_found(self, client: TestClient, auth_headers) -> None:
        resp = client.delete("/notes/00000000-0000-0000-0000-000000000000", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == messages.NOTE_NOT_FOUND

    def test_requires_token(self, client: TestClient, auth_headers) -> None:
        note_id = _create(client, auth_headers).json()["data"]["id"]
        assert client.delete(f"/notes/{note_id}").status_code == 401


class TestMisc:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == messages.HEALTHY
        assert "timestamp" in body["data"]

    def test_unknown_route_uses_envelope(self, client: TestClient) -> None:
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "message": messages.NOT_FOUND, "data": None}
