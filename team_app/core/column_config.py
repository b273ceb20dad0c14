"""Load and expose column configuration from YAML (with fallbacks)."""

from __future__ import annotations

from pathlib import Path

import yaml

from .config import DISPLAY_ORDER_FEED, DISPLAY_ORDER_PAGES, DISPLAY_ORDER_RELEASES, DISPLAY_ORDER_TICKETS

_CACHE: dict[str, list[str]] | None = None


def _defaults() -> dict[str, list[str]]:
    return {
        "tickets": list(DISPLAY_ORDER_TICKETS),
        "pages": list(DISPLAY_ORDER_PAGES),
        "releases": list(DISPLAY_ORDER_RELEASES),
        "feed": list(DISPLAY_ORDER_FEED),
    }


def load_column_sets(base_path: str | Path | None = None):
    global _CACHE
    if _CACHE is not None:
        return _CACHE
    base = Path(base_path or Path(__file__).resolve().parent.parent)
    yaml_path = base / "columns.yaml"
    if not yaml_path.exists():
        _CACHE = _defaults()
        return _CACHE
    try:
        data = yaml.safe_load(yaml_path.read_text()) or {}
    except yaml.YAMLError:
        _CACHE = _defaults()
        return _CACHE
    sets = data.get("sets", {}) or {}
    _CACHE = {name: sets.get(name) or fallback for name, fallback in _defaults().items()}
    return _CACHE


def reset_column_cache() -> None:
    global _CACHE
    _CACHE = None


def get_columns(set_name: str) -> list[str]:
    sets = load_column_sets()
    return sets.get(set_name, [])
