"""Event template catalog: ``(domain, action) -> human text`` from JSON."""

from __future__ import annotations

import json
from pathlib import Path

TEMPLATES_PATH = Path(__file__).with_name("event_templates.json")

EVENT_TEMPLATES: dict[tuple[str, str], str] = {}


def load_event_templates(path: Path = TEMPLATES_PATH) -> dict[tuple[str, str], str]:
    """Flatten ``{"domain": {"action": "text"}}`` into a lookup table.

    Entries that are not strings are skipped. An unreadable file yields a
    single ``app/load_error`` entry; log_event then derives its text from the
    event name.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {("app", "load_error"): f"Event templates file missing: {path.name}"}
    except (OSError, ValueError) as e:
        return {("app", "load_error"): f"Failed to load event templates: {e}"[:200]}
    if not isinstance(raw, dict):
        return {}
    return {
        (domain, action): text
        for domain, actions in raw.items()
        if isinstance(actions, dict)
        for action, text in actions.items()
        if isinstance(text, str)
    }


def reload_event_templates() -> None:
    EVENT_TEMPLATES.clear()
    EVENT_TEMPLATES.update(load_event_templates())


reload_event_templates()

__all__ = ["EVENT_TEMPLATES", "load_event_templates", "reload_event_templates"]
