"""Partition identifiers and the write-once cache of parsed partitions.

Keys are bucketed by their first normalized character: each of ``0-9`` and
``a-z`` owns a bucket, everything else (escaped keys start with ``_``) shares
the fallback bucket. The store never performs I/O; the loader fills it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from .keys import normalize_key
from .model import Entry

logger = logging.getLogger(__name__)

PARTITION_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
FALLBACK_TOKEN = "_"
DEFAULT_SECTION = "all"


@dataclass(frozen=True)
class PartitionId:
    """Bucket token naming one partition."""

    token: str

    def __post_init__(self) -> None:
        if self.token != FALLBACK_TOKEN and (len(self.token) != 1 or self.token not in PARTITION_ALPHABET):
            raise ValueError(f"unknown partition token {self.token!r}")

    @property
    def is_fallback(self) -> bool:
        return self.token == FALLBACK_TOKEN

    def filename(self, section: str = DEFAULT_SECTION) -> str:
        """Return the partition file name, e.g. ``all_p.js``."""
        return f"{section}_{self.token}.js"

    def __str__(self) -> str:
        return self.token


FALLBACK_PARTITION = PartitionId(FALLBACK_TOKEN)
_PARTITIONS = {char: PartitionId(char) for char in PARTITION_ALPHABET}


def partition_for_key(key: str) -> PartitionId:
    """Return the partition owning an already normalized key."""
    return _PARTITIONS.get(key[:1], FALLBACK_PARTITION)


def partition_id_for(query: str) -> PartitionId:
    """Map a raw query to the partition that can hold its matches.

    Pure and total: an empty query or one starting outside ``0-9a-z`` lands in
    the fallback bucket.
    """
    if not query:
        return FALLBACK_PARTITION
    return partition_for_key(normalize_key(query[0]))


def all_partition_ids() -> tuple[PartitionId, ...]:
    """Return every partition id, alphabet order first and fallback last."""
    return tuple(_PARTITIONS.values()) + (FALLBACK_PARTITION,)


class _NotLoaded:
    """Sentinel returned for partitions that still need a load."""

    _instance: _NotLoaded | None = None

    def __new__(cls) -> _NotLoaded:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_LOADED"


NOT_LOADED = _NotLoaded()


class PartitionStore:
    """Thread-safe, write-once cache of parsed partitions.

    Loader workers write; the controller thread reads. A successfully stored
    partition is never replaced or invalidated. Failure markers only block
    further loads until the host calls ``reset``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[PartitionId, tuple[Entry, ...]] = {}
        self._failures: dict[PartitionId, str] = {}

    def entries_of(self, partition: PartitionId) -> tuple[Entry, ...] | _NotLoaded:
        """Return cached entries for ``partition`` or ``NOT_LOADED``."""
        with self._lock:
            return self._entries.get(partition, NOT_LOADED)

    def store(self, partition: PartitionId, entries: Iterable[Entry]) -> bool:
        """Cache ``entries`` for ``partition``; return ``False`` if already cached."""
        frozen = tuple(entries)
        with self._lock:
            if partition in self._entries:
                logger.debug("partition %s already cached; ignoring second write", partition)
                return False
            self._entries[partition] = frozen
            self._failures.pop(partition, None)
        return True

    def mark_failed(self, partition: PartitionId, reason: str) -> None:
        with self._lock:
            if partition in self._entries:
                return
            self._failures[partition] = reason

    def failure_of(self, partition: PartitionId) -> str | None:
        with self._lock:
            return self._failures.get(partition)

    def reset(self, partition: PartitionId | None = None) -> None:
        """Clear failure markers so the next load retries the fetch."""
        with self._lock:
            if partition is None:
                self._failures.clear()
            else:
                self._failures.pop(partition, None)

    def loaded_partitions(self) -> tuple[PartitionId, ...]:
        with self._lock:
            return tuple(sorted(self._entries, key=lambda pid: pid.token))


__all__ = [
    "DEFAULT_SECTION",
    "FALLBACK_PARTITION",
    "FALLBACK_TOKEN",
    "NOT_LOADED",
    "PARTITION_ALPHABET",
    "PartitionId",
    "PartitionStore",
    "all_partition_ids",
    "partition_for_key",
    "partition_id_for",
]
