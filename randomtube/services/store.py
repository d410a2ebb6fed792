import asyncio
import json
import logging
import os
from typing import Dict, List, Optional

from filelock import FileLock, Timeout

from ..models import StoredValue

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "channel#"
SHARE_PREFIX = "uuid#"


class StoreError(RuntimeError):
    """Raised when the key-value store cannot be read or written."""


class KVStore:
    """Namespaced string -> string mapping with optional per-key metadata.

    Writes may become visible to other readers later than to the writer, so
    callers must not rely on read-after-write across requests.
    """

    async def get(self, key: str) -> Optional[str]:
        return (await self.get_with_metadata(key)).value

    async def get_with_metadata(self, key: str) -> StoredValue:
        raise NotImplementedError

    async def put(self, key: str, value: str, metadata: Optional[dict] = None) -> None:
        raise NotImplementedError

    async def list(self, prefix: str = "") -> List[str]:
        """Returns key names starting with prefix, sorted."""
        raise NotImplementedError


class MemoryKVStore(KVStore):
    def __init__(self):
        self._data: Dict[str, dict] = {}

    async def get_with_metadata(self, key: str) -> StoredValue:
        entry = self._data.get(key)
        if entry is None:
            return StoredValue()
        return StoredValue(value=entry["value"], metadata=entry["metadata"])

    async def put(self, key: str, value: str, metadata: Optional[dict] = None) -> None:
        self._data[key] = {"value": value, "metadata": metadata}

    async def list(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class JsonFileKVStore(KVStore):
    """Keeps every record in one JSON file: {key: {"value": ..., "metadata": ...}}."""

    def __init__(self, path: str):
        self.path = path
        self._lock = asyncio.Lock()
        # Shared with every process and instance that opens the same path
        self._file_lock = FileLock(f"{path}.lock", timeout=10)

    def _load(self) -> Dict[str, dict]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r') as f:
                content = f.read().strip()
                if not content:
                    return {}
                data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupted store file at {self.path}: {e}")
            raise StoreError(f"Corrupted store file: {self.path}") from e
        except OSError as e:
            logger.error(f"Error reading store file {self.path}: {e}")
            raise StoreError(f"Could not read store file: {self.path}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Unexpected store file layout: {self.path}")
        return data

    def _save(self, data: Dict[str, dict]) -> None:
        # Write to a sibling file first so a crash never leaves a half-written store
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error saving store file {self.path}: {e}")
            raise StoreError(f"Could not write store file: {self.path}") from e

    def _update(self, key: str, entry: dict) -> None:
        try:
            with self._file_lock:
                data = self._load()
                data[key] = entry
                self._save(data)
        except Timeout as e:
            logger.error(f"Timed out waiting for store lock {self._file_lock.lock_file}")
            raise StoreError(f"Store is locked: {self.path}") from e

    async def get_with_metadata(self, key: str) -> StoredValue:
        data = await asyncio.to_thread(self._load)
        entry = data.get(key)
        if entry is None:
            return StoredValue()
        return StoredValue(value=entry.get("value"), metadata=entry.get("metadata"))

    async def put(self, key: str, value: str, metadata: Optional[dict] = None) -> None:
        async with self._lock:
            await asyncio.to_thread(self._update, key, {"value": value, "metadata": metadata})

    async def list(self, prefix: str = "") -> List[str]:
        data = await asyncio.to_thread(self._load)
        return sorted(k for k in data if k.startswith(prefix))


def create_store(settings) -> KVStore:
    if settings.STORE_BACKEND == "memory":
        return MemoryKVStore()
    if settings.STORE_BACKEND == "file":
        return JsonFileKVStore(settings.STORE_PATH)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")
