import json
from datetime import datetime, timezone

from application.services.snapshot import decode_snapshot, encode_snapshot


def test_encoded_document_is_readable_json():
    document = encode_snapshot(
        users=[{"username": "admin"}],
        equipment=[{"id": 1, "name": "采煤机"}],
        logs=[],
        timestamp=datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc),
    )
    assert "采煤机" in document
    assert "\n  " in document
    data = json.loads(document)
    assert set(data) == {"users", "equipment", "logs", "timestamp"}
    assert data["timestamp"] == "2024-05-01T08:00:00Z"


def test_missing_and_non_array_keys_decode_to_none():
    snapshot = decode_snapshot(json.dumps({"users": [], "equipment": {"id": 1}, "extra": 1}))
    assert snapshot.users == []
    assert snapshot.equipment is None
    assert snapshot.logs is None


def test_bad_timestamp_is_tolerated():
    snapshot = decode_snapshot(json.dumps({"logs": [], "timestamp": "yesterday"}))
    assert snapshot is not None
    assert snapshot.timestamp is None


def test_malformed_documents():
    assert decode_snapshot("not json") is None
    assert decode_snapshot("42") is None
    assert decode_snapshot(json.dumps({"users": [1, 2]})) is None
