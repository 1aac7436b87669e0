import threading
import time

import pytest

from plate_inventory.exceptions import (
    InvalidImageError,
    PendingPlateConflict,
    PersistenceFailure,
    RecognitionFailure,
    SessionNotFound,
)
from plate_inventory.pipeline import confirm_pending, process_capture, skip_pending
from plate_inventory.reconcile import reconcile
from plate_inventory.recognizer import Detected, NotDetected, ServiceError
from plate_inventory.session import CaptureSession, CaptureSessionRegistry
from plate_inventory.store import PLATES_TABLE


@pytest.fixture
def session():
    return CaptureSession(id="s1", manifest=frozenset({"ABC-123", "KLM-456"}))


def _capture(make_image, session, recognizer, blob_store, store):
    return process_capture(make_image(), "car_plate.jpg", session, recognizer, blob_store, store)


def test_reconcile_saves_manifest_match(store):
    outcome = reconcile("ABC-123", frozenset({"ABC-123"}), "https://blobs.example.com/a.jpg", store)

    assert outcome.pending is None
    assert outcome.auto_saved.is_in_warehouse is True
    assert outcome.auto_saved.status == "matched"
    assert len(store.fetch_all(PLATES_TABLE)) == 1


def test_reconcile_is_case_sensitive_and_writes_nothing_for_unknown(store):
    outcome = reconcile("abc-123", frozenset({"ABC-123"}), None, store)

    assert outcome.auto_saved is None
    assert outcome.pending.plate_number == "abc-123"
    assert store.fetch_all(PLATES_TABLE) == []


def test_matched_capture_is_auto_saved(make_image, session, recognizer, blob_store, store):
    recognizer.result = Detected("ABC123")

    result = _capture(make_image, session, recognizer, blob_store, store)

    assert result.plate == "ABC-123"
    record = result.reconciliation.auto_saved
    assert record.is_in_warehouse is True
    assert record.image_url == f"https://blobs.example.com/{blob_store.uploads[0][0]}"
    assert session.pending is None
    assert result.warnings == []


def test_recognizer_receives_normalized_jpeg(make_image, session, recognizer, blob_store, store):
    recognizer.result = Detected("ABC123")
    process_capture(make_image(size=(3000, 2000), fmt="PNG"), "upload.png", session, recognizer, blob_store, store)

    image_bytes, filename = recognizer.calls[0]
    assert image_bytes[:2] == b"\xff\xd8"
    assert filename == "upload.jpg"
    assert blob_store.uploads[0][2] == "image/jpeg"


def test_unmatched_capture_waits_for_confirmation(make_image, session, recognizer, blob_store, store):
    recognizer.result = Detected("zzz999")

    result = _capture(make_image, session, recognizer, blob_store, store)

    assert result.reconciliation.auto_saved is None
    assert session.pending.plate_number == "ZZZ-999"
    assert store.fetch_all(PLATES_TABLE) == []

    record = confirm_pending(session, store)
    assert (record.plate, record.status, record.is_in_warehouse) == ("ZZZ-999", "unmatched", False)
    assert record.image_url is not None
    assert session.pending is None


def test_skip_discards_pending_plate(make_image, session, recognizer, blob_store, store):
    recognizer.result = Detected("zzz999")
    _capture(make_image, session, recognizer, blob_store, store)

    skipped = skip_pending(session)

    assert skipped.plate_number == "ZZZ-999"
    assert session.pending is None
    assert store.fetch_all(PLATES_TABLE) == []


def test_capture_blocked_while_decision_pending(make_image, session, recognizer, blob_store, store):
    recognizer.result = Detected("zzz999")
    _capture(make_image, session, recognizer, blob_store, store)

    with pytest.raises(PendingPlateConflict):
        _capture(make_image, session, recognizer, blob_store, store)
    assert len(recognizer.calls) == 1


def test_confirm_without_pending_plate(session, store):
    with pytest.raises(PendingPlateConflict):
        confirm_pending(session, store)
    with pytest.raises(PendingPlateConflict):
        skip_pending(session)


@pytest.mark.parametrize("result, status", [
    (NotDetected(), 422),
    (ServiceError("network: timed out"), 502),
])
def test_recognition_failure_creates_nothing(make_image, session, recognizer, blob_store, store, result, status):
    recognizer.result = result

    with pytest.raises(RecognitionFailure) as exc_info:
        _capture(make_image, session, recognizer, blob_store, store)

    assert exc_info.value.status_code == status
    assert blob_store.uploads == []
    assert store.fetch_all(PLATES_TABLE) == []
    assert session.pending is None

    # ready for the next capture
    recognizer.result = Detected("ABC123")
    assert _capture(make_image, session, recognizer, blob_store, store).reconciliation.auto_saved is not None


@pytest.mark.parametrize("plate, matched", [("ABC123", True), ("ZZZ999", False)])
def test_upload_failure_keeps_record_without_image(make_image, session, recognizer, blob_store, store, plate, matched):
    recognizer.result = Detected(plate)
    blob_store.fail = True

    result = _capture(make_image, session, recognizer, blob_store, store)

    assert result.warnings and "upload" in result.warnings[0].lower()
    if matched:
        record = result.reconciliation.auto_saved
    else:
        assert session.pending.image_url is None
        record = confirm_pending(session, store)
    assert record.image_url is None
    assert record.is_in_warehouse is matched


def test_bad_image_never_reaches_recognizer(session, recognizer, blob_store, store):
    with pytest.raises(InvalidImageError):
        process_capture(b"\x00" * 64, "car.jpg", session, recognizer, blob_store, store)
    assert recognizer.calls == []


def test_manifest_snapshot_is_fixed_at_session_start(store):
    registry = CaptureSessionRegistry()
    store.add_manifest_plate("ABC-123")
    session = registry.start(store)

    store.add_manifest_plate("NEW-001")

    assert session.manifest == frozenset({"ABC-123"})
    assert registry.get(session.id) is session
    registry.end(session.id)


class BlockingRecognizer:
    def __init__(self, result):
        self.result = result
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def recognize(self, image_bytes, filename="car_plate.jpg"):
        self.calls += 1
        self.started.set()
        self.release.wait(timeout=5)
        return self.result


def test_second_capture_rejected_while_first_in_flight(make_image, session, blob_store, store):
    recognizer = BlockingRecognizer(Detected("ABC123"))
    outcome = {}

    def first():
        outcome["result"] = _capture(make_image, session, recognizer, blob_store, store)

    worker = threading.Thread(target=first)
    worker.start()
    try:
        assert recognizer.started.wait(timeout=5)
        with pytest.raises(PendingPlateConflict):
            _capture(make_image, session, recognizer, blob_store, store)
        with pytest.raises(PendingPlateConflict):
            confirm_pending(session, store)
        with pytest.raises(PendingPlateConflict):
            skip_pending(session)
    finally:
        recognizer.release.set()
        worker.join(timeout=5)

    assert recognizer.calls == 1
    assert outcome["result"].reconciliation.auto_saved.plate == "ABC-123"
    assert session.processing is False


def test_failed_capture_releases_the_session(make_image, session, recognizer, blob_store, store):
    with pytest.raises(InvalidImageError):
        process_capture(b"\x00" * 64, "car.jpg", session, recognizer, blob_store, store)
    assert session.processing is False


def test_confirm_keeps_plate_pending_when_insert_fails(make_image, session, recognizer, blob_store, store, monkeypatch):
    recognizer.result = Detected("zzz999")
    _capture(make_image, session, recognizer, blob_store, store)

    def broken_add(*args, **kwargs):
        raise PersistenceFailure("Failed to save plate: database is locked")

    monkeypatch.setattr(store, "add_plate", broken_add)
    with pytest.raises(PersistenceFailure):
        confirm_pending(session, store)
    assert session.pending.plate_number == "ZZZ-999"


def test_idle_sessions_expire_when_a_new_one_starts(store):
    registry = CaptureSessionRegistry(ttl_seconds=60)
    idle = registry.start(store)
    idle.last_used = time.monotonic() - 120

    fresh = registry.start(store)

    with pytest.raises(SessionNotFound):
        registry.get(idle.id)
    assert registry.get(fresh.id) is fresh
    assert len(registry) == 1


def test_least_recently_used_session_is_evicted_at_capacity(store):
    registry = CaptureSessionRegistry(max_sessions=2)
    first = registry.start(store)
    second = registry.start(store)
    first.last_used = time.monotonic() - 10
    second.last_used = time.monotonic() - 20

    third = registry.start(store)

    assert len(registry) == 2
    with pytest.raises(SessionNotFound):
        registry.get(second.id)
    assert registry.get(first.id) is first
    assert registry.get(third.id) is third
