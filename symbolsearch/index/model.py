"""Immutable values for searchable symbol names and their occurrences."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..errors import InvalidEntryError
from .keys import normalize_key


@dataclass(frozen=True)
class Hit:
    """One documented occurrence of a symbol.

    ``anchor`` is a document path relative to the index directory plus an
    optional ``#fragment``. ``container`` names the enclosing struct, union,
    group or file and is empty for file scope. ``disambiguator`` tells sibling
    hits of the same entry apart (usually a signature).
    """

    anchor: str
    container: str = ""
    file_label: str = ""
    disambiguator: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.anchor, str) or not self.anchor:
            raise InvalidEntryError("hit anchor must be a non-empty string")

    @property
    def document(self) -> str:
        return self.anchor.partition("#")[0]

    @property
    def fragment(self) -> str:
        return self.anchor.partition("#")[2]


@dataclass(frozen=True, order=True)
class Entry:
    """A searchable name: unique key within its partition and ordered hits.

    Entries compare and sort by ``key`` only, using ordinal string order.
    """

    key: str
    label: str = field(compare=False)
    hits: tuple[Hit, ...] = field(compare=False)

    def __post_init__(self) -> None:
        hits = tuple(self.hits)
        object.__setattr__(self, "hits", hits)
        if not self.key:
            raise InvalidEntryError("entry key must not be empty")
        if not hits:
            raise InvalidEntryError(f"entry {self.key!r} has no hits")
        if not all(isinstance(hit, Hit) for hit in hits):
            raise InvalidEntryError(f"entry {self.key!r} holds a non-Hit occurrence")
        if normalize_key(self.label) != self.key:
            raise InvalidEntryError(f"label {self.label!r} does not normalize to key {self.key!r}")

    @classmethod
    def from_label(cls, label: str, hits: Iterable[Hit]) -> Entry:
        """Build an entry whose key is derived from ``label``."""
        return cls(key=normalize_key(label), label=label, hits=tuple(hits))

    @property
    def first_character(self) -> str:
        return self.key[:1]

    @property
    def is_ambiguous(self) -> bool:
        return len(self.hits) > 1
