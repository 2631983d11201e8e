# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.storage.kvstore",
#   "purpose": "In-memory and file-locked JSON key-value stores for client state.",
#   "sections": [
#     {
#       "id": "keyvaluestore",
#       "name": "KeyValueStore",
#       "anchor": "class-keyvaluestore",
#       "kind": "class"
#     },
#     {
#       "id": "inmemorykeyvaluestore",
#       "name": "InMemoryKeyValueStore",
#       "anchor": "class-inmemorykeyvaluestore",
#       "kind": "class"
#     },
#     {
#       "id": "jsonfilekeyvaluestore",
#       "name": "JsonFileKeyValueStore",
#       "anchor": "class-jsonfilekeyvaluestore",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Durable key-value stores for small pieces of client state.

The export engine keeps two values here: the bearer token read by the
authenticated session, and the cached directory grant of the scoped-grant
storage backend.
"""

from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Protocol, Union, runtime_checkable

from filelock import FileLock, Timeout

from FormVox.DocumentExport.io_utils import atomic_write_text

__all__ = ["InMemoryKeyValueStore", "JsonFileKeyValueStore", "KeyValueStore"]

LOGGER = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """String key-value storage (``get``/``set``/``remove``)."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store, used by tests and one-shot CLI runs."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = str(value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return dict(self._data)


class JsonFileKeyValueStore:
    """
    Key-value store persisted as one JSON object on disk.

    Every write rewrites the file atomically, so a crash leaves either the
    previous or the new content. A corrupt file reads as empty.

    Writers serialize on a sibling ``<path>.lock`` file, so several stores
    (or processes) sharing one file never drop each other's keys.
    """

    def __init__(self, path: Union[str, Path], *, lock_timeout_s: float = 10.0) -> None:
        self.path = Path(path).expanduser()
        self.lock_path = Path(f"{self.path}.lock")
        self.lock_timeout_s = float(lock_timeout_s)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(str(self.lock_path))
        try:
            lock.acquire(timeout=self.lock_timeout_s)
        except Timeout as exc:
            raise TimeoutError(
                f"Timed out acquiring {self.lock_path} after {self.lock_timeout_s}s"
            ) from exc
        try:
            yield
        finally:
            lock.release()

    def _load(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw or "{}")
        except json.JSONDecodeError:
            LOGGER.warning("Ignoring corrupt key-value store at %s", self.path)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _dump(self, data: dict[str, str]) -> None:
        atomic_write_text(str(self.path), json.dumps(data, sort_keys=True, indent=2))

    def get(self, key: str) -> Optional[str]:
        # Writes replace the file atomically; readers never see a partial file.
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._locked():
            data = self._load()
            data[key] = str(value)
            self._dump(data)

    def remove(self, key: str) -> None:
        with self._locked():
            data = self._load()
            if key in data:
                del data[key]
                self._dump(data)
