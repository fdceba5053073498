"""Runtime configuration for DisableInactiveUsers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from disable_inactive_users.eligibility import SelectionMode

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://rally1.rallydev.com"
DEFAULT_WSAPI_VERSION = "v2.0"
DEFAULT_FAILSAFE_CAP = 4
DEFAULT_SETTINGS_FILE = Path("..") / "MyVars.json"
DEFAULT_LOG_DIR = Path(".")


@dataclass
class RallyConfig:
    base_url: str = DEFAULT_BASE_URL
    username: str = ""
    password: str = ""
    api_key: str = ""
    version: str = DEFAULT_WSAPI_VERSION
    integration_name: str = "DisableInactiveUsers.py"
    integration_vendor: str = "Rally-Technical-Services"
    integration_version: str = "1.2345"

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key or (self.username and self.password))


@dataclass
class RunConfig:
    """Everything the selection and disable pipeline is allowed to read."""

    threshold_days: int
    mode: SelectionMode = SelectionMode.GENERAL
    apply: bool = False
    failsafe_cap: Optional[int] = None
    stop_on_failure: bool = True

    def __post_init__(self) -> None:
        if self.threshold_days < 0:
            raise ValueError(f"threshold_days must not be negative: {self.threshold_days}")
        if self.failsafe_cap is not None and self.failsafe_cap <= 0:
            raise ValueError(f"failsafe_cap must be positive: {self.failsafe_cap}")


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def failsafe_from_env(env: Optional[Mapping[str, str]] = None) -> Optional[int]:
    """Return the failsafe cap requested by ``RALLY_FAILSAFE``, if any.

    ``true`` selects the default cap and ``false`` (or unset) means no cap.
    Integers are returned unchecked so ``RunConfig`` can reject ``0`` or less.
    """
    env = os.environ if env is None else env
    raw = (env.get("RALLY_FAILSAFE") or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        pass
    if _env_flag(raw):
        return DEFAULT_FAILSAFE_CAP
    if raw.lower() in {"false", "no", "off"}:
        return None
    raise ValueError(f"RALLY_FAILSAFE must be true, false or a number of users: {raw!r}")


def load_rally_config(
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> RallyConfig:
    """Build connection settings from the environment, then apply overrides."""
    env = os.environ if env is None else env
    values: dict[str, Any] = {
        "base_url": env.get("RALLY_BASE_URL", DEFAULT_BASE_URL),
        "username": env.get("RALLY_USERNAME", ""),
        "password": env.get("RALLY_PASSWORD", ""),
        "api_key": env.get("RALLY_API_KEY", ""),
        "version": env.get("RALLY_WSAPI_VERSION", DEFAULT_WSAPI_VERSION),
    }
    for key, value in (overrides or {}).items():
        if key in RallyConfig.__dataclass_fields__ and value is not None:
            values[key] = value
        else:
            logger.debug("Ignoring unknown connection override '%s'", key)
    return RallyConfig(**values)


__all__ = [
    "DEFAULT_FAILSAFE_CAP",
    "DEFAULT_LOG_DIR",
    "DEFAULT_SETTINGS_FILE",
    "RallyConfig",
    "RunConfig",
    "failsafe_from_env",
    "load_rally_config",
]
