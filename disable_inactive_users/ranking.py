"""Ordering of disable candidates.

Users who never logged in come first, then the longest-idle users. Within equal
last-login times the older account wins, so seats are reclaimed from long-held
dormant accounts before accounts that were created moments ago.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from disable_inactive_users.users import UserRecord

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


def ranking_key(user: UserRecord) -> tuple:
    has_login = user.last_login_at is not None
    return (has_login, user.last_login_at if has_login else _NEVER, user.created_at)


def rank_users(users: Iterable[UserRecord]) -> list[UserRecord]:
    # sorted() is stable: equal keys keep their input order.
    return sorted(users, key=ranking_key)


__all__ = ["rank_users", "ranking_key"]
