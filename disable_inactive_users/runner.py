"""Fetch, rank, select and disable: the whole run in one place."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Protocol

from disable_inactive_users.config import RunConfig
from disable_inactive_users.eligibility import EligibilitySelection, SelectionMode, select_eligible
from disable_inactive_users.errors import UpdateFailure
from disable_inactive_users.executor import OutcomeLog, OutcomeStatus, execute_disables
from disable_inactive_users.ranking import rank_users
from disable_inactive_users.users import normalize_users

logger = logging.getLogger(__name__)


class UserDirectory(Protocol):
    def fetch_users(self) -> list[dict]: ...

    def update_user(self, object_id: Any, fields: dict) -> dict: ...


@dataclass
class RunResult:
    threshold_days: int
    mode: SelectionMode
    apply: bool
    total_users: int
    selection: EligibilitySelection
    outcomes: OutcomeLog
    halted_by: Optional[UpdateFailure] = field(default=None, repr=False)

    @property
    def nothing_to_do(self) -> bool:
        return self.selection.is_empty

    def summary(self) -> dict[str, int]:
        counts = self.outcomes.counts()
        return {
            "total": self.total_users,
            "eligible": len(self.selection),
            "already_disabled": self.selection.already_disabled,
            "below_threshold": self.selection.below_threshold,
            "excluded_by_mode": self.selection.excluded_by_mode,
            "disabled": counts[OutcomeStatus.DISABLED.value],
            "would_disable": counts[OutcomeStatus.WOULD_DISABLE.value],
            "failed": counts[OutcomeStatus.FAILED.value],
            "skipped": counts[OutcomeStatus.SKIPPED_FAILSAFE.value],
        }


def explain_halt(result: RunResult) -> list[str]:
    """Itemized explanation of why a run stopped early."""
    failure = result.halted_by
    if failure is None:
        return []
    summary = result.summary()
    remaining = len(result.selection) - len(result.outcomes)
    return [
        "Run halted on the first failed disable:",
        f"\tUserName     : <{failure.user.username}>",
        f"\tEmailAddress : <{failure.user.email}>",
        f"\tObjectID     : <{failure.user.object_id}>",
        f"\tError        : {failure.detail}",
        f"\tDisabled before the halt : {summary['disabled']}",
        f"\tSkipped by failsafe      : {summary['skipped']}",
        f"\tAlready disabled         : {summary['already_disabled']}",
        f"\tNot attempted            : {remaining}",
    ]


def run(config: RunConfig, client: UserDirectory, *, today: Optional[date] = None) -> RunResult:
    """Run one pass over the subscription.

    Raises ``EmptyFetchResult`` when no users come back and, under the
    default policy, ``UpdateFailure`` on the first unconfirmed disable. The
    failure carries the partial ``RunResult`` as ``result``.
    """
    logger.info("Query Rally for all Users")
    raw_users = client.fetch_users()
    users = normalize_users(raw_users, today=today)
    ranked = rank_users(users)
    selection = select_eligible(ranked, config.threshold_days, config.mode)

    def _result(outcomes: OutcomeLog, halted_by: Optional[UpdateFailure] = None) -> RunResult:
        return RunResult(
            threshold_days=config.threshold_days,
            mode=config.mode,
            apply=config.apply,
            total_users=len(users),
            selection=selection,
            outcomes=outcomes,
            halted_by=halted_by,
        )

    if selection.is_empty:
        return _result(OutcomeLog(apply=config.apply))

    try:
        outcomes = execute_disables(
            selection,
            client.update_user,
            apply=config.apply,
            failsafe_cap=config.failsafe_cap,
            stop_on_failure=config.stop_on_failure,
        )
    except UpdateFailure as failure:
        result = _result(failure.outcomes, halted_by=failure)
        for line in explain_halt(result):
            logger.error(line)
        failure.result = result
        raise

    return _result(outcomes)


__all__ = ["RunResult", "UserDirectory", "explain_halt", "run"]
