"""Partitioned response cache.

Large responses are split into partitions (one per dataset, one per feed
period) so that no single cache value grows unbounded. Each cache family
keeps two well-known keys next to its partitions:

- the index key: JSON array of the partition keys currently in use
- the master key: JSON manifest ``{"built_at": ..., "partitions": {key: field}}``

A read only succeeds when the master, the index and every listed partition
are present and decode cleanly; anything less is a miss and the caller
computes the response live.
"""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from app.core.config import settings
from app.core.logging import get_logger

log = get_logger("cache")

DEFAULT_TTL_SECONDS = 21600


class CacheBackend(Protocol):
    """Key-value store with per-key TTL."""

    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def remove_all(self, keys: Iterable[str]) -> None: ...


class InMemoryCache:
    """Process-local CacheBackend with lazy expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def remove_all(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            now = self._clock()
            return [key for key, (_, expires_at) in self._entries.items() if expires_at > now]


@dataclass(frozen=True)
class Partition:
    key: str
    field: str
    records: Any


@dataclass(frozen=True)
class CacheFamily:
    """Key layout and merge strategy for one group of partitions."""

    name: str
    master_key: str
    index_key: str
    merge: Callable[[Sequence[Tuple[str, Any]]], Any]


def merge_by_field(parts: Sequence[Tuple[str, Any]]) -> Dict[str, Any]:
    return {field: records for field, records in parts}


def merge_concat(parts: Sequence[Tuple[str, Any]]) -> List[Any]:
    merged: List[Any] = []
    for _, records in parts:
        merged.extend(records)
    return merged


DATASETS_FAMILY = CacheFamily(
    name="datasets",
    master_key="datasets:all",
    index_key="datasets:index",
    merge=merge_by_field,
)

FEED_FAMILY = CacheFamily(
    name="feed",
    master_key="feed:all",
    index_key="feed:index",
    merge=merge_concat,
)


def dataset_key(name: str) -> str:
    return f"dataset:{name.lower()}"


def period_key(period: str) -> str:
    return f"feed:{period}"


class PartitionedCacheManager:
    """Reads and rebuilds one CacheFamily on top of a CacheBackend.

    ``backend=None`` models an unavailable cache: reads miss, rebuilds are no-ops.
    """

    def __init__(
        self,
        backend: Optional[CacheBackend],
        family: CacheFamily,
        ttl_seconds: Optional[int] = None,
    ):
        self.backend = backend
        self.family = family
        self.ttl_seconds = ttl_seconds or settings.CACHE_TTL_SECONDS or DEFAULT_TTL_SECONDS

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    def rebuild(self, partitions: Sequence[Partition]) -> List[str]:
        """Replace every key of this family; returns the keys written in order.

        Backend failures stop the rebuild and are logged; the keys written up
        to that point are returned and readers fall back to live data.
        """
        if self.backend is None:
            log.warning(f"Cache backend unavailable; skipping rebuild of {self.family.name}")
            return []

        written: List[str] = []
        stale_keys = self._read_index() or []
        try:
            self._write_family(self.backend, partitions, stale_keys, written)
        except Exception as exc:  # noqa: BLE001
            log.warning(
                f"Cache rebuild of {self.family.name} aborted after {len(written)} keys: {exc}"
            )
            return written

        log.info(
            f"Cache family={self.family.name} rebuilt partitions={len(partitions)} "
            f"evicted_stale={len(stale_keys)}"
        )
        return written

    def _write_family(
        self,
        backend: CacheBackend,
        partitions: Sequence[Partition],
        stale_keys: List[str],
        written: List[str],
    ) -> None:
        if stale_keys:
            backend.remove_all(stale_keys)
        backend.remove_all([self.family.master_key, self.family.index_key])

        for partition in partitions:
            backend.put(partition.key, json.dumps(partition.records, ensure_ascii=False), self.ttl_seconds)
            written.append(partition.key)

        index = [partition.key for partition in partitions]
        backend.put(self.family.index_key, json.dumps(index), self.ttl_seconds)
        written.append(self.family.index_key)

        manifest = {
            "built_at": datetime.now(timezone.utc).isoformat(),
            "partitions": {partition.key: partition.field for partition in partitions},
        }
        backend.put(self.family.master_key, json.dumps(manifest, ensure_ascii=False), self.ttl_seconds)
        written.append(self.family.master_key)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------
    def read(self) -> Optional[Any]:
        """Return the merged family, or None on any kind of miss."""
        manifest = self._load_json(self.family.master_key)
        index = self._load_json(self.family.index_key)
        if not isinstance(manifest, dict) or not isinstance(index, list):
            log.debug(f"Cache miss (cold) family={self.family.name}")
            return None

        fields = manifest.get("partitions")
        if not isinstance(fields, dict):
            log.warning(f"Malformed cache manifest for family={self.family.name}")
            return None

        parts: List[Tuple[str, Any]] = []
        for key in index:
            records = self.read_partition(key)
            if records is None or key not in fields:
                log.debug(f"Cache miss (partial) family={self.family.name} key={key}")
                return None
            parts.append((fields[key], records))

        return self.family.merge(parts)

    def read_partition(self, key: str) -> Optional[List[Any]]:
        records = self._load_json(key)
        if not isinstance(records, list):
            return None
        return records

    def _read_index(self) -> Optional[List[str]]:
        index = self._load_json(self.family.index_key)
        if not isinstance(index, list):
            return None
        return [key for key in index if isinstance(key, str)]

    def _load_json(self, key: str) -> Any:
        if self.backend is None:
            return None
        try:
            raw = self.backend.get(key)
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Cache get failed for key={key}: {exc}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            log.warning(f"Discarding malformed cache value for key={key}")
            return None
