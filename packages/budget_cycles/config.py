"""User settings loading and saving.

Settings are stored as a JSON document validated by
:class:`~budget_cycles.models.UserSettings`. The file location comes from an
explicit argument or the ``BUDGET_CYCLES_SETTINGS`` environment variable; with
neither, :data:`~budget_cycles.models.DEFAULT_SETTINGS` applies.

Atomicity: writes target ``<path>.tmp`` first and then ``os.replace`` into
place.
"""

from __future__ import annotations

import os
from os import PathLike
from pathlib import Path

from .logging_setup import get_logger
from .models import DEFAULT_SETTINGS, UserSettings

SETTINGS_ENV_VAR = "BUDGET_CYCLES_SETTINGS"

_logger = get_logger("budget_cycles.config")


def settings_path(path: str | PathLike[str] | None = None) -> Path | None:
    """Resolve the settings file path (argument first, then environment)."""

    if path is not None:
        return Path(path).expanduser()
    env_val = os.getenv(SETTINGS_ENV_VAR)
    if env_val and env_val.strip():
        return Path(env_val.strip()).expanduser()
    return None


def load_settings(path: str | PathLike[str] | None = None) -> UserSettings:
    """Load and validate user settings.

    Raises
    ------
    FileNotFoundError
        When a path is configured but the file does not exist.
    pydantic.ValidationError
        When the file is not valid JSON or violates the settings schema.
    """

    p = settings_path(path)
    if p is None:
        _logger.debug("No settings file configured; using defaults")
        return DEFAULT_SETTINGS
    raw = p.read_text(encoding="utf-8")
    settings = UserSettings.model_validate_json(raw)
    _logger.debug(
        "Loaded settings from %s (cycle=%s, anchor=%d)",
        p,
        settings.budget_cycle.value,
        settings.cycle_start_day,
    )
    return settings


def save_settings(settings: UserSettings, path: str | PathLike[str]) -> Path:
    """Write ``settings`` as JSON atomically and return the final path."""

    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_name(p.name + ".tmp")
    tmp.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
    os.replace(tmp, p)
    _logger.info("Saved settings to %s", p)
    return p


__all__ = ["SETTINGS_ENV_VAR", "load_settings", "save_settings", "settings_path"]
