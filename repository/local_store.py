import asyncio
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional
from redis.asyncio import Redis
import logging

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Predicate = Callable[[Record], bool]


class LocalStore:
    """
    Key-scoped list storage for degraded mode. Each key holds records
    newest-first. Writes are atomic per record: readers see either the old
    list or the new one, never a partial record.
    """

    async def read(self, key: str) -> List[Record]:
        raise NotImplementedError

    async def prepend(self, key: str, record: Record, limit: Optional[int] = None) -> None:
        """Insert at the head, then keep at most `limit` records (oldest evicted)."""
        raise NotImplementedError

    async def remove(self, key: str, predicate: Predicate) -> int:
        """Drop matching records; returns how many were removed (0 is fine)."""
        raise NotImplementedError


class FileLocalStore(LocalStore):
    """
    One JSON file per key under `root`. Read-modify-write happens under a
    per-key lock against the latest on-disk snapshot; files are replaced
    atomically via os.replace.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._locks: Dict[str, asyncio.Lock] = {}

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self._root / f"{safe}.json"

    def _lock(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def _load(self, key: str) -> List[Record]:
        path = self._path(key)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.error("local.read.error key=%s", key, exc_info=True)
            return []
        return [r for r in data if isinstance(r, dict)] if isinstance(data, list) else []

    def _dump(self, key: str, records: List[Record]) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        fd, tmp = tempfile.mkstemp(dir=self._root, prefix=path.stem, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, ensure_ascii=False)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    async def read(self, key: str) -> List[Record]:
        return await asyncio.to_thread(self._load, key)

    async def prepend(self, key: str, record: Record, limit: Optional[int] = None) -> None:
        async with self._lock(key):
            current = await asyncio.to_thread(self._load, key)
            updated = [record] + current
            if limit is not None and limit > 0:
                updated = updated[:limit]
            await asyncio.to_thread(self._dump, key, updated)

    async def remove(self, key: str, predicate: Predicate) -> int:
        async with self._lock(key):
            current = await asyncio.to_thread(self._load, key)
            kept = [r for r in current if not predicate(r)]
            removed = len(current) - len(kept)
            if removed:
                await asyncio.to_thread(self._dump, key, kept)
            return removed


class RedisLocalStore(LocalStore):
    """
    Redis list per key (LPUSH newest-first). Push and trim run in one
    MULTI/EXEC so concurrent appends are never lost to truncation.
    """

    def __init__(self, client_factory: Callable[[], Awaitable[Redis]]) -> None:
        self._client_factory = client_factory

    async def _client(self) -> Redis:
        return await self._client_factory()

    async def read(self, key: str) -> List[Record]:
        r = await self._client()
        vals = await r.lrange(key, 0, -1)
        out: List[Record] = []
        for raw in vals or []:
            try:
                obj = json.loads(raw)
            except ValueError:
                # Skip malformed entries instead of failing the whole read
                continue
            if isinstance(obj, dict):
                out.append(obj)
        return out

    async def prepend(self, key: str, record: Record, limit: Optional[int] = None) -> None:
        r = await self._client()
        payload = json.dumps(record, ensure_ascii=False).encode("utf-8")
        async with r.pipeline(transaction=True) as pipe:
            pipe.lpush(key, payload)
            if limit is not None and limit > 0:
                pipe.ltrim(key, 0, limit - 1)
            await pipe.execute()

    async def remove(self, key: str, predicate: Predicate) -> int:
        r = await self._client()
        vals = await r.lrange(key, 0, -1)
        removed = 0
        for raw in vals or []:
            try:
                obj = json.loads(raw)
            except ValueError:
                continue
            if isinstance(obj, dict) and predicate(obj):
                removed += int(await r.lrem(key, 0, raw))
        return removed
