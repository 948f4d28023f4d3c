"""
Local value cache.

The runtime keeps a best-effort copy of a session's answers so a reload
can pick up where the user left off. Everything here is best-effort:
store failures are logged and swallowed, never raised into navigation.

    ValueStore           get/set/clear protocol implemented by hosts
    InMemoryValueStore   dict-backed store (tests, previews)
    JsonFileValueStore   one JSON file per key in a directory
    DebouncedValueCache  coalesces rapid writes for one key
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from branchlogic.model import DocumentKind, Values

logger = logging.getLogger(__name__)


def values_storage_key(kind: DocumentKind, document_id: str) -> str:
    """Cache key for a document's answers, e.g. "quiz-abc123-values"."""
    return f"{kind.value}-{document_id}-values"


class ValueStore(Protocol):
    def get(self, key: str) -> Optional[Values]:
        ...

    def set(self, key: str, values: Values) -> None:
        ...

    def clear(self, key: str) -> None:
        ...


class InMemoryValueStore:
    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[Values]:
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, values: Values) -> None:
        # stored as JSON so callers never share mutable state with the cache
        self._data[key] = json.dumps(values)

    def clear(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileValueStore:
    """Stores each key as <directory>/<key>.json."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[Values]:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as fh:
            return json.load(fh)

    def set(self, key: str, values: Values) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self._path(key), "w", encoding="utf-8") as fh:
            json.dump(values, fh)

    def clear(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


class DebouncedValueCache:
    """
    Best-effort cache for one key with debounced writes.

    schedule() may be called on every keystroke; only the last values in
    each `wait`-second window reach the store. A wait of 0 writes
    immediately. Once clear() has run, writes scheduled before it never
    reach the store.
    """

    def __init__(self, store: Optional[ValueStore], key: str, wait: float = 0.3):
        self.store = store
        self.key = key
        self.wait = wait
        self._lock = threading.Lock()
        # held across every store.set / store.clear
        self._io_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[Values] = None
        self._generation = 0

    def load(self) -> Optional[Values]:
        if self.store is None:
            return None
        try:
            values = self.store.get(self.key)
        except Exception as e:
            logger.warning("Ignoring unreadable value cache %s: %s", self.key, e)
            return None
        return values if isinstance(values, dict) else None

    def schedule(self, values: Values) -> None:
        if self.store is None:
            return
        if self.wait <= 0:
            with self._lock:
                generation = self._generation
            self._write(dict(values), generation)
            return
        with self._lock:
            self._pending = dict(values)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.wait, self.flush)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> None:
        """Write any pending values now."""
        with self._lock:
            pending, self._pending = self._pending, None
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if pending is not None:
            self._write(pending, generation)

    def cancel(self) -> None:
        with self._lock:
            self._pending = None
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def clear(self) -> None:
        """Drop pending writes and remove the cached values."""
        self.cancel()
        if self.store is None:
            return
        with self._io_lock:
            try:
                self.store.clear(self.key)
            except Exception as e:
                logger.warning("Failed to clear value cache %s: %s", self.key, e)

    def _write(self, values: Values, generation: int) -> None:
        with self._io_lock:
            if generation != self._generation:
                logger.debug("Dropping stale write to value cache %s", self.key)
                return
            try:
                self.store.set(self.key, values)
            except Exception as e:
                logger.warning("Failed to write value cache %s: %s", self.key, e)
