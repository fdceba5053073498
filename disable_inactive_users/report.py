"""Human-readable run report, written through logging."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, Optional

from disable_inactive_users.eligibility import SelectionMode
from disable_inactive_users.executor import OutcomeStatus
from disable_inactive_users.users import UserRecord

if TYPE_CHECKING:  # pragma: no cover
    from disable_inactive_users.runner import RunResult

logger = logging.getLogger(__name__)

HEADER_RULE = "--- --------------------------------- --------------------------------- ---------- ---------- ---- -------------- ---------"
HEADER_LINES = (
    "    User                              Email                             Creation   LastLogin  Days Subscription   Disabled?",
    "    Name                              Address                           Date       Date       Idle Permission              ",
)


def format_date(moment: Optional[datetime]) -> str:
    if not moment:
        return ""
    return moment.strftime("%Y-%m-%d")


def format_user_row(user: UserRecord, index: int) -> str:
    return " ".join(
        (
            f"{index + 1:<3d}",
            f"{user.username:<33s}",
            f"{user.email:<33s}",
            f"{format_date(user.created_at):<10s}",
            f"{format_date(user.last_login_at):<10s}",
            f"{user.idle_days:>4}",
            f"{user.subscription_permission:>14s}",
            f"{str(user.disabled).lower():>9s}",
        )
    )


def header_lines() -> list[str]:
    return [HEADER_RULE, *HEADER_LINES, HEADER_RULE]


def criteria_lines(threshold_days: int, mode: SelectionMode) -> list[str]:
    lines = [
        "The following are 'Enabled' user accounts which have either:",
        f"    - a LastLoginDate (or CreationDate if LastLoginDate was blank) greater than or equal to '{threshold_days}' days",
        f"    - or never logged on and were created more than '{threshold_days}' days ago",
    ]
    if mode is SelectionMode.NO_ACCESS_ONLY:
        lines.append("    - and the user has No-Access")
    if mode is SelectionMode.BLANK_LOGIN_ONLY:
        lines.append("    - and the LastLoginDate was blank")
    return lines


def table_lines(rows: Iterable[tuple[int, UserRecord]]) -> list[str]:
    lines = [" ", *header_lines()]
    lines.extend(format_user_row(user, index) for index, user in rows)
    lines.extend(header_lines())
    lines.append(" ")
    return lines


def summary_line(summary: dict[str, int]) -> str:
    return ", ".join(f"{key}={value}" for key, value in summary.items())


def render_result(result: "RunResult") -> list[str]:
    """Return the report lines for a finished (or halted) run."""
    lines = [f"display_only mode - {not result.apply}"]
    if result.apply:
        lines.extend([" ", "THE FOLLOWING USERS HAVE BEEN DISABLED!!"])
        rows = [
            (index, outcome.user)
            for index, outcome in enumerate(result.outcomes)
            if outcome.success
        ]
    else:
        lines.extend(criteria_lines(result.threshold_days, result.mode))
        rows = [
            (index, outcome.user)
            for index, outcome in enumerate(result.outcomes)
            if outcome.status is OutcomeStatus.WOULD_DISABLE
        ]
    lines.extend(table_lines(rows))
    lines.append(f"Summary: {summary_line(result.summary())}")
    return lines


def log_result(result: "RunResult", log: Optional[logging.Logger] = None) -> None:
    log = log or logger
    for line in render_result(result):
        log.info(line)


__all__ = [
    "criteria_lines",
    "format_user_row",
    "header_lines",
    "log_result",
    "render_result",
    "summary_line",
    "table_lines",
]
