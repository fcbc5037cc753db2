"""Persistent JSON config for search timing and index location.

Every key is optional. Missing, unreadable, or malformed values fall back to
the module defaults, and failed writes are ignored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

from ..index.fetch import FETCH_TIMEOUT_SECONDS
from ..index.partitions import DEFAULT_SECTION
from ..search.engine import MIN_QUERY_LENGTH

APP_NAME = "symbolsearch"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

DEBOUNCE_SECONDS = 0.5


@dataclass(frozen=True)
class SearchSettings:
    debounce_seconds: float = DEBOUNCE_SECONDS
    min_query_length: int = MIN_QUERY_LENGTH
    fetch_timeout_seconds: float = FETCH_TIMEOUT_SECONDS
    index_section: str = DEFAULT_SECTION


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON, ignoring write errors."""
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        pass


def _coerce_seconds(value: object, default: float, *, allow_zero: bool) -> float:
    """Accept non-boolean numbers; zero only when ``allow_zero``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value < 0 or (value == 0 and not allow_zero):
        return default
    return float(value)


def _coerce_min_length(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return MIN_QUERY_LENGTH
    return value


def _coerce_section(value: object) -> str:
    if not isinstance(value, str):
        return DEFAULT_SECTION
    stripped = value.strip()
    return stripped if stripped else DEFAULT_SECTION


def load_search_settings() -> SearchSettings:
    """Read search settings, replacing each invalid value with its default."""
    data = load_config()
    return SearchSettings(
        debounce_seconds=_coerce_seconds(data.get("debounce_seconds"), DEBOUNCE_SECONDS, allow_zero=True),
        min_query_length=_coerce_min_length(data.get("min_query_length")),
        fetch_timeout_seconds=_coerce_seconds(
            data.get("fetch_timeout_seconds"),
            FETCH_TIMEOUT_SECONDS,
            allow_zero=False,
        ),
        index_section=_coerce_section(data.get("index_section")),
    )


def save_search_settings(settings: SearchSettings) -> None:
    """Merge ``settings`` into the stored config, keeping unrelated keys."""
    config = load_config()
    config["debounce_seconds"] = max(0.0, float(settings.debounce_seconds))
    config["min_query_length"] = max(1, int(settings.min_query_length))
    config["fetch_timeout_seconds"] = float(settings.fetch_timeout_seconds)
    config["index_section"] = _coerce_section(settings.index_section)
    save_config(config)


__all__ = [
    "CONFIG_PATH",
    "DEBOUNCE_SECONDS",
    "SearchSettings",
    "load_config",
    "load_search_settings",
    "save_config",
    "save_search_settings",
]
