"""
Purpose: Saved interviews, newest first, as one JSON blob under one key.
Every write is read-modify-write of the whole collection followed by one
atomic `set` on the key-value collaborator (single-writer assumption).
A failed write raises and leaves the previously persisted blob as it was.
"""

from __future__ import annotations
import asyncio
import json
import logging
from typing import Any, Optional

from ..errors import PersistenceError, ValidationError
from ..interfaces import KeyValueStore
from ..models import SavedInterview

logger = logging.getLogger(__name__)

STORAGE_KEY = "saved_interviews"


class HistoryStore:
    def __init__(self, kv: KeyValueStore, *, key: str = STORAGE_KEY) -> None:
        self._kv = kv
        self._key = key

    def _read_raw(self) -> list[Any]:
        blob = self._kv.get(self._key)
        if not blob:
            return []
        try:
            raw = json.loads(blob)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Saved interviews are corrupted: {e}") from e
        if not isinstance(raw, list):
            raise PersistenceError("Saved interviews must be a JSON array.")
        return raw

    @staticmethod
    def _parse(i: int, item: Any) -> Optional[SavedInterview]:
        try:
            return SavedInterview.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping unreadable saved interview #%d: %s", i, e)
            return None

    @staticmethod
    def _raw_id(item: Any) -> Any:
        return item.get("id") if isinstance(item, dict) else None

    def _load(self) -> list[SavedInterview]:
        records = (self._parse(i, item) for i, item in enumerate(self._read_raw()))
        return [r for r in records if r is not None]

    # Writes work on the raw items so records this version cannot read
    # are written back untouched.
    def _persist(self, items: list[Any]) -> None:
        self._kv.set(self._key, json.dumps(items, ensure_ascii=False))

    def _save(self, record: SavedInterview) -> None:
        items = self._read_raw()
        if any(self._raw_id(item) == record.id for item in items):
            raise ValidationError(f"An interview with id {record.id!r} already exists.")
        self._persist([record.to_dict(), *items])

    def _delete(self, interview_id: str) -> None:
        items = self._read_raw()
        remaining = [item for item in items if self._raw_id(item) != interview_id]
        if len(remaining) == len(items):
            return
        self._persist(remaining)

    def _get(self, interview_id: str) -> Optional[SavedInterview]:
        return next((r for r in self._load() if r.id == interview_id), None)

    async def list(self) -> list[SavedInterview]:
        return await asyncio.to_thread(self._load)

    async def save(self, record: SavedInterview) -> None:
        await asyncio.to_thread(self._save, record)
        logger.info("Saved interview %s with %s", record.id, record.persona.name)

    async def delete(self, interview_id: str) -> None:
        await asyncio.to_thread(self._delete, interview_id)

    async def get(self, interview_id: str) -> Optional[SavedInterview]:
        return await asyncio.to_thread(self._get, interview_id)
