from __future__ import annotations

from dataclasses import dataclass

from ..index.model import Entry, Hit

PHASE_IDLE = "idle"
PHASE_DEBOUNCING = "debouncing"
PHASE_LOADING = "loading"
PHASE_READY = "ready"
PHASE_ERROR = "error"


@dataclass
class SearchState:
    phase: str = PHASE_IDLE
    query: str = ""
    results: tuple[Entry, ...] = ()
    selected: int = 0
    selected_hit: int = 0
    debounce_deadline: float | None = None
    issued_sequence: int = 0
    active_sequence: int | None = None


@dataclass(frozen=True)
class SearchFrame:
    """Snapshot handed to the renderer after every visible change."""

    phase: str
    query: str
    results: tuple[Entry, ...] = ()
    selected: int = 0
    selected_hit: int = 0

    @property
    def selected_entry(self) -> Entry | None:
        if self.phase != PHASE_READY or not (0 <= self.selected < len(self.results)):
            return None
        return self.results[self.selected]

    @property
    def selected_hit_value(self) -> Hit | None:
        entry = self.selected_entry
        if entry is None or not (0 <= self.selected_hit < len(entry.hits)):
            return None
        return entry.hits[self.selected_hit]

    @property
    def no_matches(self) -> bool:
        """Whether the renderer should show its "no matches" message."""
        return self.phase == PHASE_ERROR or (self.phase == PHASE_READY and not self.results)
