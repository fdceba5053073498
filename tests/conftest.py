import itertools
import logging
from datetime import date, timedelta

import pytest

from disable_inactive_users.errors import RallyAPIError
from disable_inactive_users.logs import HANDLER_PREFIX

TODAY = date(2024, 6, 1)


def days_ago(days):
    return (TODAY - timedelta(days=days)).isoformat() + "T10:15:00.000Z"


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_raw_user():
    count = itertools.count(1000)

    def make(
        name=None,
        created_days_ago=400,
        last_login_days_ago=None,
        permission="Viewer",
        disabled=False,
    ):
        oid = next(count)
        name = name or f"user{oid}@example.com"
        return {
            "ObjectID": oid,
            "UserName": name,
            "EmailAddress": name,
            "CreationDate": days_ago(created_days_ago),
            "LastLoginDate": days_ago(last_login_days_ago) if last_login_days_ago is not None else None,
            "SubscriptionPermission": permission,
            "Disabled": disabled,
        }

    return make


class FakeDirectory:
    def __init__(self, users, fail_for=(), echo_disabled=True):
        self.users = users
        self.fail_for = set(fail_for)
        self.echo_disabled = echo_disabled
        self.update_calls = []

    def fetch_users(self):
        return [dict(user) for user in self.users]

    def update_user(self, object_id, fields):
        self.update_calls.append((object_id, fields))
        if object_id in self.fail_for:
            raise RallyAPIError("Not authorized to update user")
        return {"ObjectID": object_id, "Disabled": self.echo_disabled}


@pytest.fixture
def make_directory():
    return FakeDirectory


@pytest.fixture(autouse=True)
def _drop_run_log_handlers():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if (handler.get_name() or "").startswith(HANDLER_PREFIX):
            root.removeHandler(handler)
            handler.close()
