"""Tests for app/services/consumption_service.py - download-once semantics."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from app.core.errors import AlreadyConsumed, NotFound
from app.core.exchange import ConsumedFile, DataEnvelope, UploadedFile
from app.services import consumption_service, ingestion_service


def test_structured_round_trip_is_exact(store):
    value = {"name": "report", "nested": {"rows": [1, 2.5, None, True, "text"]}, "empty": {}}
    code = ingestion_service.create_from_data(store, data=value).code

    envelope = consumption_service.consume_item(store, code, 0)

    assert isinstance(envelope, DataEnvelope)
    assert envelope.data == value
    assert envelope.code == code
    assert envelope.item_index == 0
    assert envelope.file_name == f"data-{code}-0.json"
    assert envelope.created_at == store.get(code).created_at


def test_file_item_returns_bytes_and_name(store):
    files = [
        UploadedFile("a.txt", "text/plain", b"alpha"),
        UploadedFile(None, None, b"\x00\xff"),
    ]
    code = ingestion_service.create_from_files(store, files).code

    first = consumption_service.consume_item(store, code, "0")
    second = consumption_service.consume_item(store, code, 1)

    assert isinstance(first, ConsumedFile)
    assert (first.content, first.file_name, first.media_type, first.byte_size) == (
        b"alpha",
        "a.txt",
        "text/plain",
        5,
    )
    # Unnamed, untyped uploads fall back to generated values
    assert second.file_name == f"file-{code}-1"
    assert second.media_type == "application/octet-stream"
    assert second.content == b"\x00\xff"


def test_second_download_is_gone(store):
    code = ingestion_service.create_from_data(store, multiple_data=["one", "two"]).code

    first = consumption_service.consume_item(store, code, 0)
    with pytest.raises(AlreadyConsumed, match="already been downloaded"):
        consumption_service.consume_item(store, code, 0)

    assert first.data == "one"
    record = store.get(code)
    assert record.items[0].consumed is True
    assert record.items[0].consumed_at is not None
    # Consumption is per item, not per record
    assert record.items[1].consumed is False
    assert consumption_service.consume_item(store, code, 1).data == "two"


@pytest.mark.parametrize("item_index", [-1, 1, 99, "abc", None])
def test_bad_item_index(store, item_index):
    code = ingestion_service.create_from_data(store, data="x").code
    with pytest.raises(NotFound, match="Item not found"):
        consumption_service.consume_item(store, code, item_index)


def test_unknown_code(store):
    with pytest.raises(NotFound, match="Data not found"):
        consumption_service.consume_item(store, "000000", 0)


def test_concurrent_downloads_have_one_winner(store):
    code = ingestion_service.create_from_data(store, data={"secret": 42}).code
    attempts = 8

    def attempt(_):
        try:
            return consumption_service.consume_item(store, code, 0)
        except AlreadyConsumed:
            return None

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        outcomes = list(pool.map(attempt, range(attempts)))

    winners = [outcome for outcome in outcomes if outcome is not None]
    assert len(winners) == 1
    assert winners[0].data == {"secret": 42}
    assert store.get(code).items[0].consumed is True


def test_lost_race_reports_already_consumed(store, monkeypatch):
    code = ingestion_service.create_from_data(store, data="x").code
    stale = store.get(code)

    # Another consumer claims the item between our read and our update
    consumption_service.consume_item(store, code, 0)
    monkeypatch.setattr(store, "get", lambda lookup: stale)

    with pytest.raises(AlreadyConsumed):
        consumption_service.consume_item(store, code, 0)


def test_record_deleted_mid_download(store, monkeypatch):
    code = ingestion_service.create_from_data(store, data="x").code
    stale = store.get(code)
    store.delete(code)
    monkeypatch.setattr(store, "get", lambda lookup: stale)

    with pytest.raises(NotFound, match="Data not found"):
        consumption_service.consume_item(store, code, 0)
