import pytest

from disable_inactive_users import cli
from disable_inactive_users.errors import RallyAPIError


@pytest.fixture
def fake_rally(monkeypatch, make_directory):
    holder = {}

    def install(users, **kwargs):
        directory = make_directory(users, **kwargs)

        class FakeClient:
            def __init__(self, config):
                holder["config"] = config

            def describe(self):
                return ["\tBaseURL  : <fake>"]

            def fetch_users(self):
                return directory.fetch_users()

            def update_user(self, object_id, fields):
                return directory.update_user(object_id, fields)

        monkeypatch.setattr(cli, "RallyClient", FakeClient)
        holder["directory"] = directory
        return holder

    monkeypatch.setenv("RALLY_API_KEY", "_testkey")
    monkeypatch.delenv("RALLY_FAILSAFE", raising=False)
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    return install


def base_args(tmp_path, *extra):
    return ["--log-dir", str(tmp_path), "--settings", str(tmp_path / "MyVars.json"), *extra]


def test_no_arguments_prints_help(capsys):
    assert cli.main([]) == cli.EXIT_OK
    assert "--reallydoit" in capsys.readouterr().out


def test_dry_run_does_not_update(tmp_path, fake_rally, make_raw_user):
    holder = fake_rally([make_raw_user(created_days_ago=400)])
    assert cli.main(base_args(tmp_path, "-d", "90")) == cli.EXIT_OK
    assert holder["directory"].update_calls == []
    assert list(tmp_path.glob("ListInactiveUsers_*.log"))


def test_reallydoit_with_failsafe(tmp_path, fake_rally, make_raw_user):
    holder = fake_rally([make_raw_user(created_days_ago=400 + i) for i in range(6)])
    assert cli.main(base_args(tmp_path, "-d", "90", "-R", "--failsafe")) == cli.EXIT_OK
    assert len(holder["directory"].update_calls) == 4
    (logfile,) = tmp_path.glob("DisableInactiveUsers_*.log")
    assert "THE FOLLOWING USERS HAVE BEEN DISABLED!!" in logfile.read_text()


def test_no_users_exit_code(tmp_path, fake_rally):
    fake_rally([])
    assert cli.main(base_args(tmp_path, "-d", "90")) == cli.EXIT_NO_USERS


def test_update_failure_exit_code(tmp_path, fake_rally, make_raw_user):
    user = make_raw_user(created_days_ago=400)
    holder = fake_rally([user], fail_for=[user["ObjectID"]])
    assert cli.main(base_args(tmp_path, "-d", "90", "-R")) == cli.EXIT_UPDATE_FAILED
    assert len(holder["directory"].update_calls) == 1


def test_keep_going_reports_failure(tmp_path, fake_rally, make_raw_user):
    users = [make_raw_user(created_days_ago=400), make_raw_user(created_days_ago=300)]
    holder = fake_rally(users, fail_for=[users[0]["ObjectID"]])
    assert cli.main(base_args(tmp_path, "-d", "90", "-R", "--keep-going")) == cli.EXIT_UPDATE_FAILED
    assert len(holder["directory"].update_calls) == 2


def test_fetch_error_exit_code(tmp_path, fake_rally, monkeypatch):
    holder = fake_rally([])

    def broken_fetch():
        raise RallyAPIError("Not authorized")

    monkeypatch.setattr(holder["directory"], "fetch_users", broken_fetch)
    assert cli.main(base_args(tmp_path, "-d", "90")) == cli.EXIT_UPDATE_FAILED


def test_missing_credentials(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    for name in ("RALLY_API_KEY", "RALLY_USERNAME", "RALLY_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    assert cli.main(base_args(tmp_path, "-d", "90")) == cli.EXIT_USAGE


def test_password_prompt(tmp_path, fake_rally, make_raw_user, monkeypatch):
    holder = fake_rally([make_raw_user(last_login_days_ago=1)])
    monkeypatch.delenv("RALLY_API_KEY")
    monkeypatch.delenv("RALLY_PASSWORD", raising=False)
    monkeypatch.setenv("RALLY_USERNAME", "admin@example.com")
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "typed-secret ")
    assert cli.main(base_args(tmp_path, "-d", "90")) == cli.EXIT_OK
    assert holder["config"].password == "typed-secret"


def test_zero_failsafe_is_a_usage_error(tmp_path, fake_rally, make_raw_user):
    holder = fake_rally([make_raw_user(created_days_ago=400 + i) for i in range(6)])
    assert cli.main(base_args(tmp_path, "-d", "90", "-R", "--failsafe", "0")) == cli.EXIT_USAGE
    assert holder["directory"].update_calls == []


def test_zero_failsafe_from_environment_is_a_usage_error(tmp_path, fake_rally, make_raw_user, monkeypatch):
    holder = fake_rally([make_raw_user(created_days_ago=400 + i) for i in range(6)])
    monkeypatch.setenv("RALLY_FAILSAFE", "0")
    assert cli.main(base_args(tmp_path, "-d", "90", "-R")) == cli.EXIT_USAGE
    assert holder["directory"].update_calls == []


def test_failsafe_flag_beats_environment(tmp_path, fake_rally, make_raw_user, monkeypatch):
    holder = fake_rally([make_raw_user(created_days_ago=400 + i) for i in range(6)])
    monkeypatch.setenv("RALLY_FAILSAFE", "0")
    assert cli.main(base_args(tmp_path, "-d", "90", "-R", "--failsafe", "2")) == cli.EXIT_OK
    assert len(holder["directory"].update_calls) == 2


def test_missing_creation_date_exit_code(tmp_path, fake_rally, make_raw_user):
    broken = make_raw_user(name="broken@example.com", created_days_ago=400)
    broken["CreationDate"] = None
    holder = fake_rally([make_raw_user(created_days_ago=500), broken])
    assert cli.main(base_args(tmp_path, "-R", "-d", "90")) == cli.EXIT_INVALID_DATA
    assert holder["directory"].update_calls == []
    (logfile,) = tmp_path.glob("DisableInactiveUsers_*.log")
    assert "broken@example.com" in logfile.read_text()
