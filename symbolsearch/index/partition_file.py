"""Reader and writer for partition files.

A partition file is a script assigning one array to a named binding::

    var searchData=
    [
      ['path',['path',['../structtum__font.html#a71','tum_font','']]],
      ...
    ];

Each record is ``[key, [label, hit, ...]]``. A hit is either
``[anchor, container, file_label]`` / ``[anchor, container, file_label,
disambiguator]`` or the older generator layout ``[anchor, link_flag,
scope_text]`` where ``scope_text`` is ``container``, ``container::name()`` or
``signature:&#160;file``. Strings carry HTML entities.
"""

from __future__ import annotations

import ast
import html
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from ..errors import InvalidEntryError, PartitionFormatError
from .model import Entry, Hit
from .partitions import PartitionId, partition_for_key

logger = logging.getLogger(__name__)

DEFAULT_BINDING_NAME = "searchData"
SIGNATURE_MARKER = ":\xa0"

_BINDING_RE = re.compile(r"\A\s*(?:var|let|const)\s+([A-Za-z_$][\w$]*)\s*=\s*")


@dataclass(frozen=True)
class ParsedPartition:
    """Entries read from one partition file, in ascending key order."""

    name: str
    entries: tuple[Entry, ...]
    dropped: int = 0


def _split_scope_text(text: str) -> tuple[str, str, str | None]:
    """Split legacy scope text into ``(container, file_label, disambiguator)``."""
    signature: str | None = None
    file_label = ""
    head = text
    if SIGNATURE_MARKER in text:
        signature, _, file_label = text.rpartition(SIGNATURE_MARKER)
        head = signature

    name_part = head.split("(", 1)[0]
    if "::" in name_part:
        container = name_part.rpartition("::")[0]
    elif signature is None and "(" not in head:
        container = head
    else:
        container = ""
    return container, file_label, signature or None


def _require_str(value: object, what: str) -> str:
    if not isinstance(value, str):
        raise InvalidEntryError(f"{what} must be a string, got {type(value).__name__}")
    return html.unescape(value)


def _parse_hit(raw: object) -> Hit:
    if not isinstance(raw, (list, tuple)) or len(raw) not in (3, 4):
        raise InvalidEntryError(f"hit must have 3 or 4 elements: {raw!r}")
    anchor = _require_str(raw[0], "hit anchor")

    if isinstance(raw[1], int):
        if len(raw) != 3:
            raise InvalidEntryError(f"hit with a link flag must have 3 elements: {raw!r}")
        container, file_label, disambiguator = _split_scope_text(_require_str(raw[2], "scope text"))
        return Hit(anchor=anchor, container=container, file_label=file_label, disambiguator=disambiguator)

    container = _require_str(raw[1], "hit container")
    file_label = _require_str(raw[2], "hit file label")
    disambiguator = _require_str(raw[3], "hit disambiguator") if len(raw) == 4 else None
    return Hit(
        anchor=anchor,
        container=container,
        file_label=file_label,
        disambiguator=disambiguator or None,
    )


def _hits_of(body: list | tuple) -> list | tuple:
    """Return the raw hits of a record body.

    Generated files list hits inline after the label (``[label, hit, hit]``);
    a single nested list (``[label, [hit, hit]]``) is accepted too.
    """
    rest = body[1:]
    if len(rest) == 1 and isinstance(rest[0], (list, tuple)) and rest[0] and isinstance(rest[0][0], (list, tuple)):
        return rest[0]
    return rest


def parse_record(record: object) -> Entry:
    """Build one entry from a ``[key, [label, hit, ...]]`` record."""
    if not isinstance(record, (list, tuple)) or len(record) != 2:
        raise InvalidEntryError(f"record must be [key, [label, hit, ...]]: {record!r}")
    key, body = record
    if not isinstance(key, str):
        raise InvalidEntryError(f"record key must be a string: {key!r}")
    if not isinstance(body, (list, tuple)) or not body:
        raise InvalidEntryError(f"record body must be [label, hit, ...] for key {key!r}")
    label = _require_str(body[0], "entry label")
    return Entry(key=key, label=label, hits=tuple(_parse_hit(raw) for raw in _hits_of(body)))


def _read_binding(text: str) -> tuple[str, object]:
    match = _BINDING_RE.match(text)
    if match is None:
        raise PartitionFormatError("partition file does not start with a variable binding")
    body = text[match.end():].strip()
    if body.endswith(";"):
        body = body[:-1].rstrip()
    try:
        value = ast.literal_eval(body)
    except (ValueError, SyntaxError, MemoryError, RecursionError) as exc:
        raise PartitionFormatError(f"cannot read partition array: {exc}") from exc
    if not isinstance(value, list):
        raise PartitionFormatError(f"partition binding holds {type(value).__name__}, expected an array")
    return match.group(1), value


def parse_partition(text: str, partition: PartitionId | None = None) -> ParsedPartition:
    """Parse partition file ``text``.

    Malformed records, duplicate keys and, when ``partition`` is given, keys
    belonging to another bucket are dropped and counted. Records out of
    ascending key order are sorted once here so searches never re-sort.
    """
    name, records = _read_binding(text)

    entries: list[Entry] = []
    seen: set[str] = set()
    dropped = 0
    for position, record in enumerate(records):
        try:
            entry = parse_record(record)
        except InvalidEntryError as exc:
            logger.debug("dropping record %d of %s: %s", position, partition or name, exc)
            dropped += 1
            continue
        if entry.key in seen:
            logger.debug("dropping duplicate key %r in %s", entry.key, partition or name)
            dropped += 1
            continue
        if partition is not None and partition_for_key(entry.key) != partition:
            logger.debug("dropping key %r filed under partition %s", entry.key, partition)
            dropped += 1
            continue
        seen.add(entry.key)
        entries.append(entry)

    if any(left.key > right.key for left, right in zip(entries, entries[1:])):
        logger.warning("partition %s is not sorted by key; sorting on load", partition or name)
        entries.sort()

    if dropped:
        logger.warning("dropped %d malformed record(s) from partition %s", dropped, partition or name)
    return ParsedPartition(name=name, entries=tuple(entries), dropped=dropped)


def _js_string(value: str) -> str:
    escaped = html.escape(value, quote=False)
    out = ["'"]
    for char in escaped:
        if char in "\\'":
            out.append("\\" + char)
        elif ord(char) < 0x20:
            out.append(f"\\x{ord(char):02x}")
        else:
            out.append(char)
    out.append("'")
    return "".join(out)


def _dump_hit(hit: Hit) -> str:
    parts = [hit.anchor, hit.container, hit.file_label]
    if hit.disambiguator is not None:
        parts.append(hit.disambiguator)
    return "[" + ",".join(_js_string(part) for part in parts) + "]"


def dump_partition(entries: Iterable[Entry], name: str = DEFAULT_BINDING_NAME) -> str:
    """Serialize entries (sorted by key) in the current hit layout."""
    rows = []
    for entry in sorted(entries):
        hits = ",".join(_dump_hit(hit) for hit in entry.hits)
        rows.append(f"  [{_js_string(entry.key)},[{_js_string(entry.label)},{hits}]]")
    return f"var {name}=\n[\n" + ",\n".join(rows) + "\n];\n"


__all__ = [
    "DEFAULT_BINDING_NAME",
    "ParsedPartition",
    "SIGNATURE_MARKER",
    "dump_partition",
    "parse_partition",
    "parse_record",
]
