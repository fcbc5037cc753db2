"""Prefix query engine exports."""

from __future__ import annotations

from .engine import (
    MIN_QUERY_LENGTH,
    PreparedQuery,
    QueryEngine,
    SearchResult,
    filter_prefix,
    prepare_query,
    strip_query,
)

__all__ = [
    "MIN_QUERY_LENGTH",
    "PreparedQuery",
    "QueryEngine",
    "SearchResult",
    "filter_prefix",
    "prepare_query",
    "strip_query",
]
