"""Renderer boundary and a plain-text result formatter.

Page rendering belongs to the host. The controller only calls
``render(frame)``; ``TextRenderer`` is a minimal host for terminals and logs.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from .index.model import Entry, Hit
from .runtime.state import PHASE_DEBOUNCING, PHASE_LOADING, SearchFrame

NO_MATCHES_TEXT = "No Matches"
SEARCHING_TEXT = "Searching..."


class ResultRenderer(Protocol):
    def render(self, frame: SearchFrame) -> None:
        ...


def describe_hit(hit: Hit) -> str:
    """Return the sub-row text used to tell sibling hits apart."""
    text = hit.disambiguator or hit.container or hit.document
    if hit.file_label:
        text = f"{text} ({hit.file_label})" if text else hit.file_label
    return text


def format_entry_lines(entry: Entry, *, selected: bool = False, selected_hit: int = 0) -> list[str]:
    marker = ">" if selected else " "
    if not entry.is_ambiguous:
        hit = entry.hits[0]
        suffix = f"  {hit.container}" if hit.container else ""
        return [f"{marker} {entry.label}{suffix}"]

    lines = [f"{marker} {entry.label}"]
    for idx, hit in enumerate(entry.hits):
        hit_marker = "*" if selected and idx == selected_hit else "-"
        lines.append(f"    {hit_marker} {describe_hit(hit)}")
    return lines


def format_result_lines(frame: SearchFrame) -> list[str]:
    """Render ``frame`` as text rows, one or more per entry."""
    if frame.phase in (PHASE_DEBOUNCING, PHASE_LOADING):
        return [SEARCHING_TEXT]
    if frame.no_matches:
        return [NO_MATCHES_TEXT]
    lines: list[str] = []
    for idx, entry in enumerate(frame.results):
        is_selected = idx == frame.selected
        lines.extend(
            format_entry_lines(
                entry,
                selected=is_selected,
                selected_hit=frame.selected_hit if is_selected else 0,
            )
        )
    return lines


class TextRenderer:
    """Write each frame through ``write`` as newline-joined text rows."""

    def __init__(self, write: Callable[[str], object]) -> None:
        self.write = write
        self.last_lines: list[str] = []

    def render(self, frame: SearchFrame) -> None:
        self.last_lines = format_result_lines(frame)
        self.write("\n".join(self.last_lines) + "\n")


__all__ = [
    "NO_MATCHES_TEXT",
    "ResultRenderer",
    "SEARCHING_TEXT",
    "TextRenderer",
    "describe_hit",
    "format_entry_lines",
    "format_result_lines",
]
