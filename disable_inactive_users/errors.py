"""Exception types raised while selecting and disabling inactive users."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:  # pragma: no cover
    from disable_inactive_users.executor import OutcomeLog
    from disable_inactive_users.users import UserRecord


class DisableInactiveUsersError(Exception):
    """Base class for every error this package raises on purpose."""


class EmptyFetchResult(DisableInactiveUsersError):
    """The user query returned nothing."""

    def __init__(self, message: str = "The query for users returned nothing.") -> None:
        super().__init__(message)


class RallyAPIError(DisableInactiveUsersError):
    """Rally answered, but reported errors instead of a result."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        errors: Optional[list[Any]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errors = list(errors or [])


class InvalidUserRecord(DisableInactiveUsersError, ValueError):
    """A fetched user carries a field the normalizer cannot interpret."""


class UpdateFailure(DisableInactiveUsersError):
    """A disable request did not come back confirmed."""

    def __init__(self, user: "UserRecord", detail: str, outcomes: "OutcomeLog") -> None:
        super().__init__(
            f"user could NOT be disabled: UserName:<{user.username}>, "
            f"EmailAddress:<{user.email}>, ObjectID:<{user.object_id}>: {detail}"
        )
        self.user = user
        self.detail = detail
        self.outcomes = outcomes
        self.result: Any = None


__all__ = [
    "DisableInactiveUsersError",
    "EmptyFetchResult",
    "InvalidUserRecord",
    "RallyAPIError",
    "UpdateFailure",
]
