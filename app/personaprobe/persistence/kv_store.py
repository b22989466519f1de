"""
Purpose: Key-value persistence collaborators (string key -> string blob).
Why: HistoryStore and CredentialStore take one of these as a constructor
argument instead of touching global storage.

What is inside:
InMemoryKeyValueStore for tests and session-scoped values (the credential).
JsonFileKeyValueStore: one file per key under a data directory. Every
write goes to a temp file in the same directory and is swapped in with
os.replace, so a reader sees either the old blob or the new one.

Testing:
In-memory: simple state tests.
File: tmp_path fixture; failure injection on the replace step.
"""

from __future__ import annotations
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from ..errors import PersistenceError

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore:
    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise PersistenceError(f"Unsupported storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{key}.", suffix=".tmp", dir=self.directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise PersistenceError(f"Could not write {path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temp file %s", tmp_name)

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as e:
            raise PersistenceError(f"Could not remove {path}: {e}") from e
