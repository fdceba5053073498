"""Typed user records built from raw Rally user data."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

from disable_inactive_users.errors import EmptyFetchResult, InvalidUserRecord
from disable_inactive_users.rally import parse_rally_datetime

logger = logging.getLogger(__name__)

NO_ACCESS_PERMISSION = "No Access"


@dataclass
class UserRecord:
    object_id: Any
    username: str
    email: str
    created_at: datetime
    last_login_at: Optional[datetime]
    subscription_permission: str
    disabled: bool
    idle_days: int

    @property
    def never_logged_in(self) -> bool:
        return self.last_login_at is None

    @property
    def reference_date(self) -> date:
        """Last login date, or creation date for users who never logged in."""
        moment = self.last_login_at if self.last_login_at is not None else self.created_at
        return moment.date()

    def mark_disabled(self) -> None:
        self.disabled = True


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def compute_idle_days(created_at: datetime, last_login_at: Optional[datetime], today: date) -> int:
    reference = last_login_at if last_login_at is not None else created_at
    return (today - reference.date()).days


def _parse_timestamp(raw: dict, field_name: str) -> Optional[datetime]:
    try:
        return parse_rally_datetime(raw.get(field_name))
    except ValueError:
        raise InvalidUserRecord(
            f"User {raw.get('UserName')!r} (ObjectID {raw.get('ObjectID')}) has an unreadable {field_name}: "
            f"{raw.get(field_name)!r}"
        ) from None


def normalize_user(raw: dict, today: date) -> UserRecord:
    created_at = _parse_timestamp(raw, "CreationDate")
    if created_at is None:
        raise InvalidUserRecord(
            f"User {raw.get('UserName')!r} (ObjectID {raw.get('ObjectID')}) has no usable CreationDate: "
            f"{raw.get('CreationDate')!r}"
        )
    # Only a missing or blank LastLoginDate means "never logged in".
    last_login_at = _parse_timestamp(raw, "LastLoginDate")

    return UserRecord(
        object_id=raw.get("ObjectID"),
        username=raw.get("UserName") or "",
        email=raw.get("EmailAddress") or "",
        created_at=created_at,
        last_login_at=last_login_at,
        subscription_permission=raw.get("SubscriptionPermission") or "",
        disabled=raw.get("Disabled") is True,
        idle_days=compute_idle_days(created_at, last_login_at, today),
    )


def normalize_users(raw_users: Iterable[dict], *, today: Optional[date] = None) -> list[UserRecord]:
    """Turn fetched user dicts into ``UserRecord`` objects with idle days filled in.

    Raises ``EmptyFetchResult`` if there is nothing to normalize and
    ``InvalidUserRecord`` for a record whose dates cannot be read.
    """
    raw_list = list(raw_users or [])
    if not raw_list:
        raise EmptyFetchResult()

    today = today or today_utc()
    records = [normalize_user(raw, today) for raw in raw_list]
    logger.debug("Normalized %s users against %s", len(records), today.isoformat())
    return records


__all__ = [
    "NO_ACCESS_PERMISSION",
    "UserRecord",
    "compute_idle_days",
    "normalize_user",
    "normalize_users",
    "today_utc",
]
