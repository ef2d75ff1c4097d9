"""Unit tests for the file-backed QueueStore."""

import json
import os
import threading

import pytest
from unittest.mock import Mock, patch

from errors import InvalidInputError, MetadataLookupFailure, StorageIOError
from queue_store import QueueStore

URL_A = "https://www.youtube.com/watch?v=aaa111"
URL_B = "https://youtu.be/bbb222"
URL_C = "https://www.youtube.com/embed/ccc333"


class TestListing:
    def test_missing_file_is_empty(self, store):
        assert store.list_all() == []
        assert store.peek_current() is None
        assert store.count() == 0

    def test_skips_unparseable_lines(self, store, queue_path):
        good = store.append(URL_A, "Alice")
        with open(queue_path, "a", encoding="utf-8") as f:
            f.write("{not json\n")
            f.write('{"id": "x"}\n')
            f.write("\n")
        store.append(URL_B, "Bob")

        names = [entry.submitter_name for entry in store.list_all()]
        assert names == ["Alice", "Bob"]
        assert store.peek_current() == good

    def test_reads_legacy_records(self, store, queue_path):
        legacy = {
            "id": "legacy-1",
            "youtubeUrl": URL_A,
            "videoId": "aaa111",
            "userName": "Carol",
            "addedAt": "2025-12-24T20:00:00.000Z",
        }
        queue_path.write_text(json.dumps(legacy) + "\n", encoding="utf-8")

        entry = store.peek_current()
        assert entry.id == "legacy-1"
        assert entry.source_url == URL_A
        assert entry.submitter_name == "Carol"
        assert entry.title == "aaa111"

    def test_unreadable_file_degrades_to_empty(self, store, queue_path):
        queue_path.write_bytes(b"\xff\xfe\xfa not utf-8\n")
        assert store.list_all() == []


class TestAppend:
    def test_scenario_submit_then_peek(self, store):
        store.append("https://www.youtube.com/watch?v=abc123", "Alice")
        current = store.peek_current()
        assert current.media_id == "abc123"
        assert current.submitter_name == "Alice"

    def test_appends_at_tail_with_unique_id(self, store):
        first = store.append(URL_A, "Alice")
        second = store.append(URL_B, "Bob")
        entries = store.list_all()
        assert [e.id for e in entries] == [first.id, second.id]
        assert first.id != second.id

    def test_record_format(self, store, queue_path):
        entry = store.append(URL_A, "  Alice  ")
        lines = queue_path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0]) == {
            "id": entry.id,
            "sourceUrl": URL_A,
            "mediaId": "aaa111",
            "title": f"Title for {URL_A}",
            "submitterName": "Alice",
            "submittedAt": entry.submitted_at,
        }
        assert queue_path.read_text(encoding="utf-8").endswith("\n")

    def test_supplied_title_skips_lookup(self, queue_path):
        calls = []
        store = QueueStore(str(queue_path), title_lookup=lambda url, timeout: calls.append(url))
        entry = store.append(URL_A, "Alice", title="Given Title")
        assert entry.title == "Given Title"
        assert calls == []

    def test_lookup_failure_falls_back_to_media_id(self, queue_path):
        def failing_lookup(url, timeout):
            raise MetadataLookupFailure("timed out")

        store = QueueStore(str(queue_path), title_lookup=failing_lookup)
        entry = store.append(URL_B, "Bob")
        assert entry.title == "bbb222"
        assert store.count() == 1

    def test_malformed_oembed_reply_falls_back_to_media_id(self, queue_path):
        oembed = Mock(status_code=200)
        oembed.json.return_value = ["not", "an", "object"]
        page = Mock(status_code=200, text="<html><head></head></html>")
        store = QueueStore(str(queue_path))
        with patch("utils.requests.get", side_effect=[oembed, page]):
            entry = store.append(URL_B, "Bob")
        assert entry.title == "bbb222"
        assert store.count() == 1

    def test_lookup_receives_timeout(self, queue_path):
        seen = {}

        def lookup(url, timeout):
            seen["timeout"] = timeout
            return "Song"

        QueueStore(str(queue_path), title_lookup=lookup, metadata_timeout=2.5).append(URL_A, "Alice")
        assert seen["timeout"] == 2.5

    @pytest.mark.parametrize("url", ["https://vimeo.com/1", "garbage", ""])
    def test_invalid_url_rejected(self, store, url):
        with pytest.raises(InvalidInputError):
            store.append(url, "Alice")
        assert store.count() == 0

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_rejected(self, store, name):
        with pytest.raises(InvalidInputError):
            store.append(URL_A, name)
        assert store.count() == 0

    def test_concurrent_appends_are_not_lost(self, store):
        threads = [threading.Thread(target=store.append, args=(URL_A, f"user{i}")) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert store.count() == 20


class TestPop:
    def test_scenario_pop_two_entries(self, store):
        first = store.append(URL_A, "Alice")
        second = store.append(URL_B, "Bob")

        assert store.pop_current() == first
        assert store.count() == 1
        assert store.peek_current() == second

    def test_preserves_order_of_remaining(self, store):
        entries = [store.append(url, "Alice") for url in (URL_A, URL_B, URL_C)]
        store.pop_current()
        assert store.list_all() == entries[1:]

    def test_empty_pop_is_noop(self, store, queue_path):
        assert store.pop_current() is None
        assert not queue_path.exists()
        assert store.list_all() == []

    def test_last_pop_leaves_empty_file(self, store, queue_path):
        store.append(URL_A, "Alice")
        store.pop_current()
        assert queue_path.read_text(encoding="utf-8") == ""
        assert store.pop_current() is None


class TestDelete:
    @pytest.mark.parametrize("position", [0, 1, 2])
    def test_removes_matching_entry_only(self, store, position):
        entries = [store.append(url, "Alice") for url in (URL_A, URL_B, URL_C)]
        assert store.delete_by_id(entries[position].id) is True
        expected = [e for i, e in enumerate(entries) if i != position]
        assert store.list_all() == expected

    def test_absent_id_changes_nothing(self, store, queue_path):
        store.append(URL_A, "Alice")
        before = queue_path.read_text(encoding="utf-8")
        assert store.delete_by_id("missing") is False
        assert queue_path.read_text(encoding="utf-8") == before


class TestWriteFailures:
    def test_write_error_raises_storage_error(self, store):
        with patch("queue_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageIOError):
                store.append(URL_A, "Alice")
        assert store.count() == 0

    def test_write_error_leaves_no_temp_files(self, store, queue_path):
        with patch("queue_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageIOError):
                store.append(URL_A, "Alice")
        assert os.listdir(queue_path.parent) == []

    def test_missing_directory_raises_storage_error(self, tmp_path):
        store = QueueStore(str(tmp_path / "nope" / "queue.txt"), title_lookup=None)
        with pytest.raises(StorageIOError):
            store.append(URL_A, "Alice")
