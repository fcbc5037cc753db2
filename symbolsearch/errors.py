"""Exception types raised inside the symbol-search subsystem.

Only construction and transport helpers raise these. The loader and the
controller convert them into empty or failed results so a host never sees
them from a running search session.
"""

from __future__ import annotations


class SymbolSearchError(Exception):
    """Base class for every error raised by ``symbolsearch``."""


class InvalidEntryError(SymbolSearchError, ValueError):
    """An entry or hit violates the index model invariants."""


class KeyDecodeError(SymbolSearchError, ValueError):
    """A normalized key contains a broken escape sequence."""

    def __init__(self, key: str, position: int, reason: str) -> None:
        super().__init__(f"cannot decode key {key!r} at offset {position}: {reason}")
        self.key = key
        self.position = position
        self.reason = reason


class PartitionFormatError(SymbolSearchError):
    """A partition file's top-level structure cannot be read."""


class PartitionFetchError(SymbolSearchError):
    """Transport failure while fetching one partition file."""

    def __init__(self, filename: str, reason: str | None = None, cause: BaseException | None = None) -> None:
        message = f"Trouble fetching index partition {filename}"
        if reason:
            message += ": " + reason
        elif cause is not None:
            message += ": " + str(cause)
        super().__init__(message)
        self.filename = filename
        self.reason = reason
        self.cause = cause
