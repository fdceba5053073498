from datetime import date, datetime, timezone

import pytest

from disable_inactive_users.errors import EmptyFetchResult, InvalidUserRecord
from disable_inactive_users.users import normalize_users


def test_idle_days_from_last_login(make_raw_user, today):
    (user,) = normalize_users([make_raw_user(created_days_ago=500, last_login_days_ago=42)], today=today)
    assert user.idle_days == 42
    assert not user.never_logged_in


def test_idle_days_from_creation_when_never_logged_in(make_raw_user, today):
    (user,) = normalize_users([make_raw_user(created_days_ago=77)], today=today)
    assert user.last_login_at is None
    assert user.never_logged_in
    assert user.idle_days == 77


def test_blank_last_login_is_never_logged_in(make_raw_user, today):
    raw = make_raw_user(created_days_ago=10)
    raw["LastLoginDate"] = ""
    (user,) = normalize_users([raw], today=today)
    assert user.last_login_at is None
    assert user.idle_days == 10


def test_time_of_day_is_ignored():
    raw = {
        "ObjectID": 1,
        "UserName": "late@example.com",
        "EmailAddress": "late@example.com",
        "CreationDate": "2024-05-30T23:59:59.000Z",
        "LastLoginDate": None,
        "SubscriptionPermission": "Viewer",
        "Disabled": False,
    }
    (user,) = normalize_users([raw], today=date(2024, 5, 31))
    assert user.idle_days == 1
    assert user.created_at == datetime(2024, 5, 30, 23, 59, 59, tzinfo=timezone.utc)


def test_disabled_flag_is_strict_boolean(make_raw_user, today):
    raw = make_raw_user(disabled=True)
    other = make_raw_user()
    other["Disabled"] = None
    first, second = normalize_users([raw, other], today=today)
    assert first.disabled is True
    assert second.disabled is False


def test_empty_fetch_is_fatal():
    with pytest.raises(EmptyFetchResult):
        normalize_users([])


def test_missing_creation_date_names_user(make_raw_user, today):
    raw = make_raw_user(name="broken@example.com")
    raw["CreationDate"] = None
    with pytest.raises(ValueError, match="broken@example.com"):
        normalize_users([raw], today=today)


def test_unreadable_last_login_is_not_never_logged_in(make_raw_user, today):
    raw = make_raw_user(name="slashes@example.com", created_days_ago=400)
    raw["LastLoginDate"] = "2024/05/31 10:00"
    with pytest.raises(InvalidUserRecord, match="slashes@example.com.*LastLoginDate"):
        normalize_users([raw], today=today)


def test_unreadable_creation_date_names_user(make_raw_user, today):
    raw = make_raw_user(name="garbled@example.com")
    raw["CreationDate"] = "yesterday"
    with pytest.raises(InvalidUserRecord, match="garbled@example.com"):
        normalize_users([raw], today=today)


def test_mark_disabled(make_raw_user, today):
    (user,) = normalize_users([make_raw_user()], today=today)
    user.mark_disabled()
    assert user.disabled
