"""Tests for the metadata store."""

import json
from datetime import timedelta

import pytest

from common.constants import FILES_KEY
from common.exceptions import DuplicateIdError
from common.types import FileRecord
from lifecycle.expiry import get_time_until_expiry


def test_upload_scenario_report_pdf(store, make_record, clock):
    record = make_record("r3p0", original_name="report.pdf", size=2_000_000, content_type="application/pdf")

    saved = store.save_file_metadata(record)
    assert saved.size == 2_000_000
    assert saved.download_count == 0

    updated = store.update_download_count("r3p0")
    assert updated.download_count == 1
    assert store.get_file_by_id("r3p0").download_count == 1

    clock.advance(milliseconds=5)
    remaining = get_time_until_expiry(updated.expires_at, now=clock())
    assert 299_000 <= remaining <= 300_000


def test_expires_at_is_upload_time_plus_ttl(make_record, clock):
    record = make_record("aaaa")
    assert record.expires_at == clock() + timedelta(minutes=5)


def test_record_not_found_after_sweep_past_expiry(store, make_record, clock):
    store.save_file_metadata(make_record("aaaa"))

    clock.advance(minutes=5, milliseconds=1)
    removed = store.remove_expired()

    assert [r.id for r in removed] == ["aaaa"]
    assert store.get_file_by_id("aaaa") is None


def test_expired_record_hidden_before_sweep(store, make_record, clock):
    store.save_file_metadata(make_record("aaaa"))
    clock.advance(minutes=5)

    assert store.get_file_by_id("aaaa") is None
    assert store.get_stored_files() == []


def test_stored_files_newest_first(store, make_record, clock):
    store.save_file_metadata(make_record("old1"))
    clock.advance(seconds=10)
    store.save_file_metadata(make_record("new1"))

    assert [r.id for r in store.get_stored_files()] == ["new1", "old1"]


def test_duplicate_live_id_rejected_and_original_kept(store, make_record):
    first = make_record("dupe", original_name="first.txt")
    store.save_file_metadata(first)

    with pytest.raises(DuplicateIdError):
        store.save_file_metadata(make_record("dupe", original_name="second.txt"))

    assert store.get_file_by_id("dupe") == first


def test_expired_id_can_be_reused(store, make_record, clock):
    store.save_file_metadata(make_record("dupe", original_name="first.txt"))
    clock.advance(minutes=6)

    store.save_file_metadata(make_record("dupe", original_name="second.txt"))

    assert store.get_file_by_id("dupe").original_name == "second.txt"
    assert len(json.loads(store.storage.get_item(FILES_KEY))) == 1


def test_delete_requires_matching_session(store, make_record):
    store.save_file_metadata(make_record("mine", user_id="session-a"))

    assert store.delete_file_metadata("mine", "session-b") is False
    assert store.get_file_by_id("mine") is not None

    assert store.delete_file_metadata("mine", "") is False
    assert store.delete_file_metadata("mine", "session-a") is True
    assert store.get_file_by_id("mine") is None


def test_delete_unknown_id_returns_false(store):
    assert store.delete_file_metadata("nope", "session-a") is False


def test_update_download_count_unknown_id(store):
    assert store.update_download_count("nope") is None


def test_returned_records_are_snapshots(store, make_record):
    store.save_file_metadata(make_record("snap"))
    before = store.get_file_by_id("snap")

    store.update_download_count("snap")

    assert before.download_count == 0
    assert store.get_file_by_id("snap").download_count == 1


def test_corrupt_store_treated_as_empty(store, storage):
    storage.set_item(FILES_KEY, "{not json")

    assert store.get_stored_files() == []
    assert store.get_file_by_id("aaaa") is None


def test_non_array_store_treated_as_empty(store, storage):
    storage.set_item(FILES_KEY, json.dumps({"id": "aaaa"}))

    assert store.get_stored_files() == []


def test_save_over_corrupt_store_starts_fresh(store, storage, make_record):
    storage.set_item(FILES_KEY, "garbage")

    store.save_file_metadata(make_record("aaaa"))

    assert [r.id for r in store.get_stored_files()] == ["aaaa"]


def test_malformed_entries_dropped(store, storage, make_record):
    good = make_record("good").to_dict()
    storage.set_item(FILES_KEY, json.dumps([good, {"id": "bad1"}, "string entry"]))

    assert [r.id for r in store.get_stored_files()] == ["good"]


def test_entry_without_expiry_uses_fallback_ttl(store, storage, make_record, clock):
    entry = make_record("nexp").to_dict()
    del entry["expiresAt"]
    storage.set_item(FILES_KEY, json.dumps([entry]))

    clock.advance(minutes=3)
    assert store.remove_expired(fallback_ttl=timedelta(minutes=2))[0].id == "nexp"


def test_remove_expired_resets_corrupt_store(store, storage):
    storage.set_item(FILES_KEY, "[[[")

    assert store.remove_expired() == []
    assert json.loads(storage.get_item(FILES_KEY)) == []


def test_record_round_trips_through_dict(make_record):
    record = make_record("trip", security_mode=True, download_count=4)
    data = record.to_dict()

    assert data["uploadedAt"].endswith("Z")
    assert data["originalName"] == "notes.txt"
    assert FileRecord.from_dict(data) == record


def test_record_rejects_expiry_not_after_upload(make_record):
    with pytest.raises(ValueError):
        make_record("bad1", ttl=timedelta(0))


def test_update_download_count_ignores_expired_record(store, storage, make_record, clock):
    store.save_file_metadata(make_record("late"))
    clock.advance(minutes=5)

    assert store.update_download_count("late") is None
    assert json.loads(storage.get_item(FILES_KEY))[0]["downloadCount"] == 0
