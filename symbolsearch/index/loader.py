"""Lazy, coalescing loader that fills the partition store.

``load`` never raises and never fetches a partition twice while a fetch is in
flight. Worker threads only touch the store and the returned futures; callers
consume results on their own thread.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from ..errors import PartitionFetchError, PartitionFormatError
from .fetch import PartitionFetcher
from .model import Entry
from .partition_file import parse_partition
from .partitions import DEFAULT_SECTION, NOT_LOADED, PartitionId, PartitionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadResult:
    """Outcome of loading one partition.

    A failed load carries no entries; callers treat it as "no matches".
    """

    partition: PartitionId
    entries: tuple[Entry, ...] = ()
    failed: bool = False
    reason: str | None = None
    dropped: int = 0


def _completed(result: LoadResult) -> Future[LoadResult]:
    future: Future[LoadResult] = Future()
    future.set_result(result)
    return future


class IndexLoader:
    """Fetch, parse and cache partitions on demand."""

    def __init__(
        self,
        store: PartitionStore,
        fetcher: PartitionFetcher,
        *,
        section: str = DEFAULT_SECTION,
        max_workers: int = 2,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.section = section
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="symbolsearch-partition",
        )
        self._lock = threading.Lock()
        self._inflight: dict[PartitionId, Future[LoadResult]] = {}
        self._closed = False

    def _settled_result(self, partition: PartitionId) -> LoadResult | None:
        entries = self.store.entries_of(partition)
        if entries is not NOT_LOADED:
            return LoadResult(partition=partition, entries=entries)
        reason = self.store.failure_of(partition)
        if reason is not None:
            return LoadResult(partition=partition, failed=True, reason=reason)
        return None

    def load(self, partition: PartitionId) -> Future[LoadResult]:
        """Return a future for ``partition``'s entries.

        Cached and failed partitions resolve immediately. A partition whose
        fetch is still running returns that same future.
        """
        with self._lock:
            settled = self._settled_result(partition)
            if settled is not None:
                return _completed(settled)
            pending = self._inflight.get(partition)
            if pending is not None:
                return pending
            if self._closed:
                return _completed(LoadResult(partition=partition, failed=True, reason="loader is closed"))
            future = self._executor.submit(self._load_partition, partition)
            self._inflight[partition] = future

        future.add_done_callback(lambda _done, pid=partition: self._forget(pid))
        return future

    def warm(self, partitions: Iterable[PartitionId]) -> list[Future[LoadResult]]:
        """Start best-effort loads for ``partitions`` ahead of any query."""
        return [self.load(partition) for partition in partitions]

    def is_loading(self, partition: PartitionId) -> bool:
        with self._lock:
            return partition in self._inflight

    def _forget(self, partition: PartitionId) -> None:
        with self._lock:
            self._inflight.pop(partition, None)

    def _load_partition(self, partition: PartitionId) -> LoadResult:
        filename = partition.filename(self.section)
        try:
            text = self.fetcher.fetch(filename)
            parsed = parse_partition(text, partition)
        except (PartitionFetchError, PartitionFormatError) as exc:
            reason = str(exc)
        except Exception as exc:
            logger.exception("unexpected error loading partition %s", filename)
            reason = f"{type(exc).__name__}: {exc}"
        else:
            self.store.store(partition, parsed.entries)
            entries = self.store.entries_of(partition)
            logger.debug("loaded partition %s with %d entries", filename, len(parsed.entries))
            return LoadResult(
                partition=partition,
                entries=parsed.entries if entries is NOT_LOADED else entries,
                dropped=parsed.dropped,
            )

        logger.warning("partition %s unavailable: %s", filename, reason)
        self.store.mark_failed(partition, reason)
        return LoadResult(partition=partition, failed=True, reason=reason)

    def close(self) -> None:
        """Stop accepting loads; running fetches finish in the background."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=False)

    def __enter__(self) -> IndexLoader:
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()


__all__ = ["IndexLoader", "LoadResult"]
