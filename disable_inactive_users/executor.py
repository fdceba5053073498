"""Disabling (or planning to disable) the selected users."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional

import requests

from disable_inactive_users.eligibility import EligibilitySelection
from disable_inactive_users.errors import RallyAPIError, UpdateFailure
from disable_inactive_users.users import UserRecord

logger = logging.getLogger(__name__)

UpdateUser = Callable[[Any, dict], dict]

DISABLE_FIELDS = {"Disabled": True}


class OutcomeStatus(str, Enum):
    WOULD_DISABLE = "would-disable"
    DISABLED = "disabled"
    FAILED = "failed"
    SKIPPED_FAILSAFE = "skipped-failsafe"


@dataclass(frozen=True)
class Outcome:
    user: UserRecord
    status: OutcomeStatus
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.DISABLED


@dataclass
class OutcomeLog:
    apply: bool
    entries: list[Outcome] = field(default_factory=list)

    def append(self, outcome: Outcome) -> None:
        self.entries.append(outcome)

    def __iter__(self) -> Iterator[Outcome]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def with_status(self, status: OutcomeStatus) -> list[Outcome]:
        return [entry for entry in self.entries if entry.status is status]

    @property
    def succeeded(self) -> list[Outcome]:
        return self.with_status(OutcomeStatus.DISABLED)

    @property
    def failed(self) -> list[Outcome]:
        return self.with_status(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> list[Outcome]:
        return self.with_status(OutcomeStatus.SKIPPED_FAILSAFE)

    @property
    def attempted(self) -> int:
        """Number of update calls actually issued."""
        return len(self.succeeded) + len(self.failed)

    def counts(self) -> dict[str, int]:
        return {status.value: len(self.with_status(status)) for status in OutcomeStatus}


def _disable_one(user: UserRecord, update_user: UpdateUser) -> Optional[str]:
    """Return None on a confirmed disable, else the failure detail."""
    try:
        updated = update_user(user.object_id, dict(DISABLE_FIELDS))
    except (requests.RequestException, RallyAPIError) as exc:
        return f"Could not update user: '{exc}'"

    if not isinstance(updated, dict):
        return f"update returned {updated!r} instead of the updated user"
    confirmed = updated.get("Disabled")
    if confirmed is not True:
        return f"update returned Disabled={confirmed!r}"
    return None


def execute_disables(
    selection: EligibilitySelection,
    update_user: UpdateUser,
    *,
    apply: bool,
    failsafe_cap: Optional[int] = None,
    stop_on_failure: bool = True,
) -> OutcomeLog:
    """Walk the selection in order and record one outcome per candidate.

    In dry-run mode ``update_user`` is never called. Candidates past
    ``failsafe_cap`` are skipped in both modes. With ``stop_on_failure`` the
    first unconfirmed disable raises ``UpdateFailure``.
    """
    if failsafe_cap is not None and failsafe_cap <= 0:
        raise ValueError(f"failsafe_cap must be positive: {failsafe_cap}")

    outcomes = OutcomeLog(apply=apply)
    for index, user in enumerate(selection.candidates):
        if failsafe_cap is not None and index >= failsafe_cap:
            logger.info("Skipping this user because the failsafe is set: %s", user.username)
            outcomes.append(Outcome(user, OutcomeStatus.SKIPPED_FAILSAFE))
            continue

        if not apply:
            outcomes.append(Outcome(user, OutcomeStatus.WOULD_DISABLE))
            continue

        detail = _disable_one(user, update_user)
        if detail is None:
            user.mark_disabled()
            outcomes.append(Outcome(user, OutcomeStatus.DISABLED))
            continue

        outcomes.append(Outcome(user, OutcomeStatus.FAILED, detail))
        logger.error(
            "ERROR:\tuser could NOT be disabled: Username:<%s>,  EmailAddress:<%s>,  ObjectID:<%s>: %s",
            user.username,
            user.email,
            user.object_id,
            detail,
        )
        if stop_on_failure:
            raise UpdateFailure(user, detail, outcomes)

    return outcomes


__all__ = [
    "DISABLE_FIELDS",
    "Outcome",
    "OutcomeLog",
    "OutcomeStatus",
    "execute_disables",
]
