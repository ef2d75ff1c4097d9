"""Unit tests for the HTTP surface, using Flask's test client."""

import pytest
from unittest.mock import patch

from errors import StorageIOError
from flask_app import create_app

URL = "https://www.youtube.com/watch?v=abc123"


def submit(client, url=URL, name="Alice", **extra):
    return client.post("/queue", json={"sourceUrl": url, "submitterName": name, **extra})


class TestSubmit:
    def test_submit_json(self, client, store):
        response = submit(client)
        assert response.status_code == 201
        body = response.get_json()
        assert body["success"] is True
        assert body["entry"]["mediaId"] == "abc123"
        assert body["entry"]["submitterName"] == "Alice"
        assert store.peek_current().id == body["entry"]["id"]

    def test_submit_form(self, client, store):
        response = client.post("/queue", data={"sourceUrl": "https://youtu.be/xyz789", "submitterName": "Bob"})
        assert response.status_code == 201
        assert store.peek_current().media_id == "xyz789"

    def test_submit_legacy_field_names(self, client, store):
        response = client.post("/queue", json={"youtubeUrl": URL, "userName": "Carol"})
        assert response.status_code == 201
        assert store.peek_current().submitter_name == "Carol"

    def test_submit_with_title(self, client):
        response = submit(client, title="My Song")
        assert response.get_json()["entry"]["title"] == "My Song"

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"sourceUrl": URL},
            {"submitterName": "Alice"},
            {"sourceUrl": URL, "submitterName": "   "},
            {"sourceUrl": 123, "submitterName": "Alice"},
            {"sourceUrl": "https://vimeo.com/1", "submitterName": "Alice"},
        ],
    )
    def test_submit_invalid(self, client, store, payload):
        response = client.post("/queue", json=payload)
        assert response.status_code == 400
        assert "error" in response.get_json()
        assert store.count() == 0

    def test_submit_storage_failure(self, client):
        with patch("queue_store.QueueStore._write", side_effect=StorageIOError("disk full")):
            response = submit(client)
        assert response.status_code == 500
        assert response.get_json() == {"error": "disk full"}


class TestCurrent:
    def test_empty_snapshot(self, client):
        response = client.get("/queue/current")
        assert response.status_code == 200
        assert response.get_json() == {"current": None, "queue": [], "queueLength": 0, "upNext": 0}

    def test_snapshot_with_entries(self, client):
        first = submit(client, name="Alice").get_json()["entry"]
        second = submit(client, url="https://youtu.be/def456", name="Bob").get_json()["entry"]

        body = client.get("/queue/current").get_json()
        assert body["current"] == first
        assert body["queue"] == [second]
        assert body["queueLength"] == 2
        assert body["upNext"] == 1


class TestAdvance:
    def test_advance_removes_head(self, client, store):
        first = submit(client, name="Alice").get_json()["entry"]
        submit(client, url="https://youtu.be/def456", name="Bob")

        response = client.delete("/queue/current")
        assert response.status_code == 200
        assert response.get_json()["removed"] == first
        assert store.peek_current().submitter_name == "Bob"

    def test_advance_empty_is_404(self, client):
        response = client.delete("/queue/current")
        assert response.status_code == 404


class TestDeleteEntry:
    def test_delete_by_id(self, client, store):
        submit(client, name="Alice")
        second = submit(client, url="https://youtu.be/def456", name="Bob").get_json()["entry"]

        response = client.delete("/queue/entry", json={"id": second["id"]})
        assert response.status_code == 200
        assert [e.submitter_name for e in store.list_all()] == ["Alice"]

    def test_delete_missing_id_is_400(self, client):
        assert client.delete("/queue/entry", json={}).status_code == 400

    def test_delete_unknown_id_is_404(self, client):
        submit(client)
        assert client.delete("/queue/entry", json={"id": "nope"}).status_code == 404


class TestAutoFill:
    def test_auto_fill_uses_catalog(self, client, store, catalog):
        response = client.post("/queue/auto")
        assert response.status_code == 201
        entry = store.peek_current()
        assert entry.source_url in catalog
        assert entry.submitter_name == "🤖 Auto-DJ"
        assert response.get_json()["entry"]["id"] == entry.id

    def test_auto_fill_empty_catalog(self, store):
        client = create_app(store=store, catalog=[]).test_client()
        response = client.post("/queue/auto")
        assert response.status_code == 500
        assert store.count() == 0


class TestIndex:
    def test_index_lists_queue(self, client):
        submit(client, name="Alice")
        response = client.get("/")
        assert response.status_code == 200
        assert b"Alice" in response.data

    def test_index_empty(self, client):
        assert b"The queue is currently empty." in client.get("/").data
