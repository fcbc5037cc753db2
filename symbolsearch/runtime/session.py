"""Wire store, loader, engine and controller for one documentation index."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..index.fetch import DirectoryPartitionFetcher, HttpPartitionFetcher, PartitionFetcher
from ..index.loader import IndexLoader
from ..index.partitions import PartitionStore
from ..render import ResultRenderer
from ..search.engine import QueryEngine
from .config import SearchSettings, load_search_settings
from .controller import IncrementalSearchController


def fetcher_for_source(source: Path | str, timeout: float) -> PartitionFetcher:
    """Pick a transport: ``http(s)://`` URLs use HTTP, anything else is a directory."""
    if isinstance(source, str) and source.startswith(("http://", "https://")):
        return HttpPartitionFetcher(source, timeout=timeout)
    return DirectoryPartitionFetcher(Path(source))


@dataclass
class SearchSession:
    """Objects backing one search box; close it on page or process teardown."""

    store: PartitionStore
    loader: IndexLoader
    engine: QueryEngine
    controller: IncrementalSearchController

    def close(self) -> None:
        self.loader.close()
        close_fetcher = getattr(self.loader.fetcher, "close", None)
        if close_fetcher is not None:
            close_fetcher()

    def __enter__(self) -> SearchSession:
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()


def open_search_session(
    source: Path | str | PartitionFetcher,
    renderer: ResultRenderer | None = None,
    *,
    navigate: Callable[[str], None] | None = None,
    settings: SearchSettings | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> SearchSession:
    """Build a session over ``source`` using persisted settings by default."""
    resolved = load_search_settings() if settings is None else settings
    if isinstance(source, (str, Path)):
        fetcher = fetcher_for_source(source, resolved.fetch_timeout_seconds)
    else:
        fetcher = source

    store = PartitionStore()
    loader = IndexLoader(store, fetcher, section=resolved.index_section)
    engine = QueryEngine(loader, min_query_length=resolved.min_query_length)
    controller = IncrementalSearchController(
        engine,
        renderer,
        navigate=navigate,
        debounce_seconds=resolved.debounce_seconds,
        clock=clock,
    )
    return SearchSession(store=store, loader=loader, engine=engine, controller=controller)


__all__ = ["SearchSession", "fetcher_for_source", "open_search_session"]
