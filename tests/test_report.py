from disable_inactive_users.config import RunConfig
from disable_inactive_users.eligibility import SelectionMode
from disable_inactive_users.report import HEADER_RULE, criteria_lines, format_user_row, render_result
from disable_inactive_users.runner import run
from disable_inactive_users.users import normalize_users


def test_user_row_layout(make_raw_user, today):
    (user,) = normalize_users([make_raw_user("jdoe@example.com", created_days_ago=365)], today=today)
    row = format_user_row(user, 0)
    assert row.startswith("1   jdoe@example.com")
    assert len(row) == len(HEADER_RULE)
    assert "2023-06-02" in row
    assert row.endswith("false")


def test_criteria_lines_per_mode():
    assert len(criteria_lines(90, SelectionMode.GENERAL)) == 3
    assert criteria_lines(90, SelectionMode.NO_ACCESS_ONLY)[-1] == "    - and the user has No-Access"
    assert criteria_lines(90, SelectionMode.BLANK_LOGIN_ONLY)[-1] == "    - and the LastLoginDate was blank"


def test_render_dry_run(make_raw_user, make_directory, today):
    users = [make_raw_user("old@example.com", created_days_ago=300), make_raw_user("new@example.com", last_login_days_ago=1)]
    result = run(RunConfig(threshold_days=90), make_directory(users), today=today)
    lines = render_result(result)
    assert lines[0] == "display_only mode - True"
    assert any(line.startswith("1   old@example.com") for line in lines)
    assert not any("new@example.com" in line for line in lines)
    assert lines[-1].startswith("Summary: total=2, eligible=1")


def test_render_apply(make_raw_user, make_directory, today):
    users = [make_raw_user("old@example.com", created_days_ago=300)]
    result = run(RunConfig(threshold_days=90, apply=True), make_directory(users), today=today)
    lines = render_result(result)
    assert "THE FOLLOWING USERS HAVE BEEN DISABLED!!" in lines
    (row,) = [line for line in lines if "old@example.com" in line]
    assert row.endswith("true")
