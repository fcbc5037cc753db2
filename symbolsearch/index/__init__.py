"""Partitioned symbol index: key encoding, entries, partition files, loading."""

from __future__ import annotations

from .fetch import DirectoryPartitionFetcher, HttpPartitionFetcher, PartitionFetcher
from .keys import decode_key, normalize_key
from .loader import IndexLoader, LoadResult
from .model import Entry, Hit
from .partition_file import ParsedPartition, dump_partition, parse_partition
from .partitions import (
    FALLBACK_PARTITION,
    NOT_LOADED,
    PartitionId,
    PartitionStore,
    all_partition_ids,
    partition_id_for,
)

__all__ = [
    "DirectoryPartitionFetcher",
    "Entry",
    "FALLBACK_PARTITION",
    "Hit",
    "HttpPartitionFetcher",
    "IndexLoader",
    "LoadResult",
    "NOT_LOADED",
    "ParsedPartition",
    "PartitionFetcher",
    "PartitionId",
    "PartitionStore",
    "all_partition_ids",
    "decode_key",
    "dump_partition",
    "normalize_key",
    "parse_partition",
    "partition_id_for",
]
