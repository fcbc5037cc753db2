"""Normalized-key encoding shared by index entries and queries.

A normalized key is the lower-cased display label with every character outside
ASCII ``[a-z0-9]`` replaced by ``_`` plus two lowercase hex digits for each of
its UTF-8 bytes. ``pending_free`` becomes ``pending_5ffree``.
"""

from __future__ import annotations

from ..errors import KeyDecodeError

ESCAPE_CHAR = "_"
_SAFE_CHARS = frozenset("0123456789abcdefghijklmnopqrstuvwxyz")
_HEX_DIGITS = frozenset("0123456789abcdef")


def escape_char(char: str) -> str:
    """Return the key form of one already lower-cased character."""
    if char in _SAFE_CHARS:
        return char
    return "".join(f"{ESCAPE_CHAR}{byte:02x}" for byte in char.encode("utf-8"))


def normalize_key(label: str) -> str:
    """Case-fold ``label`` and escape every character that is unsafe in a key."""
    return "".join(escape_char(char) for char in label.lower())


def decode_key(key: str) -> str:
    """Undo the escaping of ``key``.

    Casing is not recoverable, so the result is the lower-cased label. Raises
    ``KeyDecodeError`` for dangling or non-hex escapes, invalid UTF-8, and
    escapes that ``normalize_key`` would never have produced.
    """
    raw = bytearray()
    idx = 0
    while idx < len(key):
        char = key[idx]
        if char in _SAFE_CHARS:
            raw.append(ord(char))
            idx += 1
            continue
        if char != ESCAPE_CHAR:
            raise KeyDecodeError(key, idx, f"unexpected character {char!r}")
        digits = key[idx + 1 : idx + 3]
        if len(digits) != 2 or not set(digits) <= _HEX_DIGITS:
            raise KeyDecodeError(key, idx, "escape needs two lowercase hex digits")
        raw.append(int(digits, 16))
        idx += 3

    try:
        label = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise KeyDecodeError(key, exc.start, "escaped bytes are not valid UTF-8") from exc

    if normalize_key(label) != key:
        raise KeyDecodeError(key, 0, "key is not in canonical escaped form")
    return label


def is_normalized_key(key: str) -> bool:
    """Return whether ``key`` round-trips through ``decode_key``."""
    try:
        decode_key(key)
    except KeyDecodeError:
        return False
    return True


__all__ = [
    "ESCAPE_CHAR",
    "decode_key",
    "escape_char",
    "is_normalized_key",
    "normalize_key",
]
