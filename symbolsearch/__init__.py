"""Public package surface for symbolsearch.

Partitioned prefix index for generated documentation plus the incremental
search controller that queries it while the reader types.
"""

from __future__ import annotations

from .errors import (
    InvalidEntryError,
    KeyDecodeError,
    PartitionFetchError,
    PartitionFormatError,
    SymbolSearchError,
)
from .index import Entry, Hit, IndexLoader, PartitionId, PartitionStore, partition_id_for
from .runtime.controller import IncrementalSearchController
from .runtime.session import SearchSession, open_search_session
from .search import QueryEngine, SearchResult

__all__ = [
    "Entry",
    "Hit",
    "IncrementalSearchController",
    "IndexLoader",
    "InvalidEntryError",
    "KeyDecodeError",
    "PartitionFetchError",
    "PartitionFormatError",
    "PartitionId",
    "PartitionStore",
    "QueryEngine",
    "SearchResult",
    "SearchSession",
    "SymbolSearchError",
    "open_search_session",
    "partition_id_for",
]
