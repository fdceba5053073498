"""Private override settings for DisableInactiveUsers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import DEFAULT_FAILSAFE_CAP, DEFAULT_SETTINGS_FILE

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "base_url": None,
    "username": None,
    "password": None,
    "api_key": None,
    "version": None,
    "failsafe": None,
}

CONNECTION_KEYS = ("base_url", "username", "password", "api_key", "version")


def load_settings(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load the private overrides file, or fall back to defaults.

    A missing file is normal. An unreadable one is logged and ignored.
    """
    settings_path = Path(path) if path else DEFAULT_SETTINGS_FILE
    if not settings_path.exists():
        logger.info("File '%s' not found; skipping load", settings_path)
        return DEFAULT_SETTINGS.copy()

    logger.info("Loading '%s'", settings_path)
    try:
        with settings_path.open("r", encoding="utf-8") as handle:
            stored = json.load(handle)
    except (OSError, json.JSONDecodeError) as error:
        logger.error("Error loading settings from %s: %s", settings_path, error)
        return DEFAULT_SETTINGS.copy()

    if not isinstance(stored, dict):
        logger.error("Settings file %s does not hold a JSON object; ignoring it", settings_path)
        return DEFAULT_SETTINGS.copy()

    merged = DEFAULT_SETTINGS.copy()
    for key, value in stored.items():
        if key not in DEFAULT_SETTINGS:
            logger.warning("Ignoring unknown setting '%s' in %s", key, settings_path)
            continue
        merged[key] = value
    return merged


def connection_overrides(settings: Dict[str, Any]) -> Dict[str, Any]:
    return {key: settings[key] for key in CONNECTION_KEYS if settings.get(key) is not None}


def failsafe_override(settings: Dict[str, Any]) -> Optional[int]:
    """Translate the ``failsafe`` setting into a cap (``true`` means the default cap).

    Integers pass through unchecked so ``RunConfig`` can reject ``0`` or less.
    """
    value = settings.get("failsafe")
    if value is None or value is False:
        return None
    if value is True:
        return DEFAULT_FAILSAFE_CAP
    if isinstance(value, int):
        return value
    raise ValueError(f"setting 'failsafe' must be true, false or a number of users: {value!r}")


__all__ = [
    "DEFAULT_SETTINGS",
    "connection_overrides",
    "failsafe_override",
    "load_settings",
]
