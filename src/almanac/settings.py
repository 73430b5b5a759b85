"""User-configurable preferences stored in data/settings.json."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_serializer, field_validator

from almanac.language.duration import Duration
from almanac.stores.files import atomic_write_text

logger = logging.getLogger(__name__)

_SETTINGS_FILE = "settings.json"


class Preferences(BaseModel):
    """How statements are read and how wide the `now` window is."""

    # When True, bare hours are never given a 12-hour reading
    use_24h_time: bool = False
    query_window: Duration = Field(default_factory=lambda: Duration(minutes=30))

    @field_validator("query_window")
    @classmethod
    def _window_not_negative(cls, value: Duration) -> Duration:
        if value.is_negative:
            raise ValueError("query window cannot be negative")
        return value

    @field_serializer("query_window")
    def _window_literal(self, value: Duration) -> str:
        return str(value)

    @property
    def infer_12h(self) -> bool:
        return not self.use_24h_time


def load_preferences(data_path: Path) -> Preferences:
    """Read preferences from data_path/settings.json.

    Returns defaults, and writes the defaults file, if it is missing or unparseable.
    """
    settings_file = data_path / _SETTINGS_FILE
    if settings_file.exists():
        try:
            with open(settings_file, encoding="utf-8") as f:
                raw = json.load(f)
            unknown = set(raw) - set(Preferences.model_fields)
            if unknown:
                logger.warning("Ignoring unknown preference keys: %s", ", ".join(sorted(unknown)))
            return Preferences.model_validate(raw)
        except (json.JSONDecodeError, OSError, TypeError, ValidationError):
            logger.warning("Settings file corrupt or unreadable, returning defaults")
            return Preferences()
    defaults = Preferences()
    save_preferences(data_path, defaults)
    return defaults


def save_preferences(data_path: Path, preferences: Preferences) -> None:
    """Write preferences to data_path/settings.json using atomic write."""
    atomic_write_text(data_path / _SETTINGS_FILE, preferences.model_dump_json(indent=2))
