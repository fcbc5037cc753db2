"""Prefix query engine over partitioned symbol entries.

Matching is an ordinal prefix test on normalized keys. Results keep the
partition's stored ascending order; nothing is scored or re-sorted.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from concurrent.futures import Future
from dataclasses import dataclass
from operator import attrgetter

from ..index.keys import normalize_key
from ..index.loader import IndexLoader, LoadResult
from ..index.model import Entry
from ..index.partitions import NOT_LOADED, PartitionId, PartitionStore, partition_id_for

MIN_QUERY_LENGTH = 1


@dataclass(frozen=True)
class PreparedQuery:
    text: str
    normalized: str
    partition: PartitionId


@dataclass(frozen=True)
class SearchResult:
    """Entries matching one query; ``failed`` means the index was unavailable."""

    query: str
    normalized: str = ""
    entries: tuple[Entry, ...] = ()
    failed: bool = False


def strip_query(raw_query: str) -> str:
    """Drop leading spaces the way the search box does."""
    return raw_query.lstrip(" ")


def prepare_query(raw_query: str, min_length: int = MIN_QUERY_LENGTH) -> PreparedQuery | None:
    """Normalize ``raw_query`` or return ``None`` when it is too short to run."""
    text = strip_query(raw_query)
    if not text or len(text) < max(1, min_length):
        return None
    normalized = normalize_key(text)
    return PreparedQuery(text=text, normalized=normalized, partition=partition_id_for(text))


def filter_prefix(entries: Sequence[Entry], normalized_query: str) -> tuple[Entry, ...]:
    """Return the contiguous run of ``entries`` whose key starts with the query.

    ``entries`` must be sorted by key; the run is located with ``bisect``.
    """
    if not normalized_query:
        return tuple(entries)
    start = bisect_left(entries, normalized_query, key=attrgetter("key"))
    matched: list[Entry] = []
    for entry in entries[start:]:
        if not entry.key.startswith(normalized_query):
            break
        matched.append(entry)
    return tuple(matched)


def _completed(result: SearchResult) -> Future[SearchResult]:
    future: Future[SearchResult] = Future()
    future.set_result(result)
    return future


class QueryEngine:
    """Resolve a raw query to its partition and filter that partition."""

    def __init__(self, loader: IndexLoader, *, min_query_length: int = MIN_QUERY_LENGTH) -> None:
        self.loader = loader
        self.min_query_length = max(1, min_query_length)

    @property
    def store(self) -> PartitionStore:
        return self.loader.store

    def _result(self, prepared: PreparedQuery, entries: Sequence[Entry]) -> SearchResult:
        return SearchResult(
            query=prepared.text,
            normalized=prepared.normalized,
            entries=filter_prefix(entries, prepared.normalized),
        )

    def search_cached(self, raw_query: str) -> SearchResult | None:
        """Answer from already loaded partitions only.

        Returns ``None`` when the query's partition still has to be loaded.
        """
        prepared = prepare_query(raw_query, self.min_query_length)
        if prepared is None:
            return SearchResult(query=strip_query(raw_query))
        entries = self.store.entries_of(prepared.partition)
        if entries is NOT_LOADED:
            if self.store.failure_of(prepared.partition) is not None:
                return SearchResult(query=prepared.text, normalized=prepared.normalized, failed=True)
            return None
        return self._result(prepared, entries)

    def search(self, raw_query: str) -> Future[SearchResult]:
        """Return a future resolving to the matches for ``raw_query``.

        Too-short queries and cached partitions resolve immediately; otherwise
        the result follows the partition load.
        """
        prepared = prepare_query(raw_query, self.min_query_length)
        if prepared is None:
            return _completed(SearchResult(query=strip_query(raw_query)))

        entries = self.store.entries_of(prepared.partition)
        if entries is not NOT_LOADED:
            return _completed(self._result(prepared, entries))

        out: Future[SearchResult] = Future()

        def finish(done: Future[LoadResult]) -> None:
            try:
                loaded = done.result()
            except Exception as exc:
                out.set_exception(exc)
                return
            if loaded.failed:
                out.set_result(SearchResult(query=prepared.text, normalized=prepared.normalized, failed=True))
                return
            out.set_result(self._result(prepared, loaded.entries))

        self.loader.load(prepared.partition).add_done_callback(finish)
        return out


__all__ = [
    "MIN_QUERY_LENGTH",
    "PreparedQuery",
    "QueryEngine",
    "SearchResult",
    "filter_prefix",
    "prepare_query",
    "strip_query",
]
