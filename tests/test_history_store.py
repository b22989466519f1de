from __future__ import annotations

import json
import os

import pytest

from personaprobe.errors import PersistenceError, ValidationError
from personaprobe.models import Message, MessageRole, SavedInterview
from personaprobe.persistence.history_store import STORAGE_KEY, HistoryStore
from personaprobe.persistence.kv_store import JsonFileKeyValueStore
from personaprobe.services.personas import coerce_persona

from conftest import persona_payload


def _record(record_id: str, summary: str | None = "## Summary") -> SavedInterview:
    return SavedInterview(
        id=record_id,
        timestamp=1_700_000_000_000,
        idea="Dog walking app",
        persona=coerce_persona(persona_payload("Ana")),
        messages=(
            Message(id="m1", role=MessageRole.MODEL, content="Hello!", timestamp=1),
            Message(id="m2", role=MessageRole.USER, content="Hi 👋", timestamp=2),
        ),
        summary=summary,
    )


@pytest.mark.asyncio
async def test_save_prepends_newest_first(history):
    await history.save(_record("a"))
    await history.save(_record("b"))
    records = await history.list()
    assert [r.id for r in records] == ["b", "a"]
    assert records[0] == _record("b")


@pytest.mark.asyncio
async def test_delete_preserves_order_of_remainder(history):
    for rid in ("a", "b", "c"):
        await history.save(_record(rid))
    await history.delete("b")
    assert [r.id for r in await history.list()] == ["c", "a"]


@pytest.mark.asyncio
async def test_delete_unknown_id_is_noop(history, kv):
    await history.save(_record("a"))
    before = kv.get(STORAGE_KEY)
    await history.delete("missing")
    assert kv.get(STORAGE_KEY) == before


@pytest.mark.asyncio
async def test_get_returns_record_unchanged(history):
    await history.save(_record("a", summary=None))
    assert await history.get("a") == _record("a", summary=None)
    assert await history.get("zzz") is None


@pytest.mark.asyncio
async def test_duplicate_id_is_rejected(history):
    await history.save(_record("a"))
    with pytest.raises(ValidationError):
        await history.save(_record("a"))
    assert len(await history.list()) == 1


@pytest.mark.asyncio
async def test_stored_layout_is_one_camelcase_blob(history, kv):
    await history.save(_record("a"))
    blob = json.loads(kv.get(STORAGE_KEY))
    assert blob[0]["persona"]["painPoints"] == ["no-show clients", "late payments"]
    assert blob[0]["messages"][0]["role"] == "model"


@pytest.mark.asyncio
async def test_corrupt_blob_is_reported(history, kv):
    kv.set(STORAGE_KEY, "{not json")
    with pytest.raises(PersistenceError):
        await history.list()


@pytest.mark.asyncio
async def test_unreadable_record_is_skipped(history, kv):
    good = _record("a").to_dict()
    kv.set(STORAGE_KEY, json.dumps([{"id": "broken"}, good]))
    assert [r.id for r in await history.list()] == ["a"]


_LEGACY = {
    "id": "old",
    "timestamp": 1,
    "idea": "Legacy idea",
    "persona": {"name": "B", "job": "J"},
    "messages": [],
}


@pytest.mark.asyncio
async def test_save_keeps_unreadable_records_in_blob(history, kv):
    kv.set(STORAGE_KEY, json.dumps([_LEGACY]))

    await history.save(_record("new"))

    blob = json.loads(kv.get(STORAGE_KEY))
    assert [item["id"] for item in blob] == ["new", "old"]
    assert blob[1] == _LEGACY
    assert [r.id for r in await history.list()] == ["new"]


@pytest.mark.asyncio
async def test_delete_keeps_unreadable_records_in_blob(history, kv):
    kv.set(STORAGE_KEY, json.dumps([_record("a").to_dict(), _LEGACY]))

    await history.delete("a")

    assert json.loads(kv.get(STORAGE_KEY)) == [_LEGACY]


@pytest.mark.asyncio
async def test_unreadable_record_id_still_blocks_duplicates(history, kv):
    kv.set(STORAGE_KEY, json.dumps([_LEGACY]))
    with pytest.raises(ValidationError):
        await history.save(_record("old"))


@pytest.mark.asyncio
async def test_file_store_round_trip(tmp_path):
    store = HistoryStore(JsonFileKeyValueStore(tmp_path / "data"))
    await store.save(_record("a"))
    reopened = HistoryStore(JsonFileKeyValueStore(tmp_path / "data"))
    assert await reopened.list() == [_record("a")]


@pytest.mark.asyncio
async def test_failed_write_keeps_previous_blob(tmp_path, monkeypatch):
    kv = JsonFileKeyValueStore(tmp_path)
    store = HistoryStore(kv)
    await store.save(_record("a"))
    before = kv.get(STORAGE_KEY)

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", broken_replace)
    with pytest.raises(PersistenceError):
        await store.save(_record("b"))

    assert kv.get(STORAGE_KEY) == before
    assert [p.name for p in tmp_path.iterdir()] == [f"{STORAGE_KEY}.json"]


def test_file_store_rejects_path_like_keys(tmp_path):
    with pytest.raises(PersistenceError):
        JsonFileKeyValueStore(tmp_path).get("../escape")


def test_file_store_remove_missing_key_is_noop(tmp_path):
    kv = JsonFileKeyValueStore(tmp_path)
    kv.remove("nothing")
    kv.set("k", "v")
    kv.remove("k")
    assert kv.get("k") is None
