"""Selection of users that may be disabled."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from disable_inactive_users.users import NO_ACCESS_PERMISSION, UserRecord

logger = logging.getLogger(__name__)


class SelectionMode(str, Enum):
    GENERAL = "General"
    NO_ACCESS_ONLY = "No-Access"
    BLANK_LOGIN_ONLY = "Blank-Last-Login"

    @classmethod
    def from_option(cls, value: Optional[str]) -> "SelectionMode":
        """Map the ``--type`` option onto a mode; anything unrecognised is GENERAL."""
        text = (value or "").strip()
        for mode in (cls.NO_ACCESS_ONLY, cls.BLANK_LOGIN_ONLY):
            if text.lower() == mode.value.lower():
                return mode
        if text:
            logger.warning("Unrecognised request type '%s'; selecting all idle users", text)
        return cls.GENERAL

    def admits(self, user: UserRecord) -> bool:
        if self is SelectionMode.NO_ACCESS_ONLY:
            return user.subscription_permission == NO_ACCESS_PERMISSION
        if self is SelectionMode.BLANK_LOGIN_ONLY:
            return user.last_login_at is None
        return True


@dataclass
class EligibilitySelection:
    threshold_days: int
    mode: SelectionMode
    candidates: list[UserRecord] = field(default_factory=list)
    already_disabled: int = 0
    below_threshold: int = 0
    excluded_by_mode: int = 0

    def __len__(self) -> int:
        return len(self.candidates)

    def __iter__(self):
        return iter(self.candidates)

    @property
    def is_empty(self) -> bool:
        return not self.candidates


def select_eligible(
    ranked_users: Iterable[UserRecord],
    threshold_days: int,
    mode: SelectionMode = SelectionMode.GENERAL,
) -> EligibilitySelection:
    """Keep enabled users idle for at least ``threshold_days`` that the mode admits.

    Ranked order is preserved. An empty result is not an error.
    """
    if threshold_days < 0:
        raise ValueError(f"threshold_days must not be negative: {threshold_days}")

    selection = EligibilitySelection(threshold_days=threshold_days, mode=mode)
    for user in ranked_users:
        if user.disabled:
            selection.already_disabled += 1
            continue
        if user.idle_days < threshold_days:
            selection.below_threshold += 1
            continue
        if not mode.admits(user):
            selection.excluded_by_mode += 1
            continue
        selection.candidates.append(user)

    if selection.is_empty:
        logger.info("No eligible users found; nothing to do")
    else:
        logger.info("There are <%s> accounts eligible to be disabled", len(selection))
    logger.debug(
        "Excluded %s already disabled, %s below %s days, %s by mode %s",
        selection.already_disabled,
        selection.below_threshold,
        threshold_days,
        selection.excluded_by_mode,
        mode.value,
    )
    return selection


__all__ = ["EligibilitySelection", "SelectionMode", "select_eligible"]
