import os
from datetime import datetime, timedelta

import pytest

from clinic import cli, maintenance


@pytest.fixture
def lock_path(tmp_path):
    return str(tmp_path / "maintenance.lock")


def test_enable_and_disable(lock_path):
    now = datetime(2030, 1, 7, 8, 0)
    state = maintenance.enable(30, "Upgrading", path=lock_path, now=now)
    assert state.end_time == now + timedelta(minutes=30)

    active = maintenance.active_state(lock_path, now=now + timedelta(minutes=10))
    assert active.message == "Upgrading"
    assert active.start_time == now

    assert maintenance.disable(lock_path) is True
    assert maintenance.disable(lock_path) is False
    assert maintenance.active_state(lock_path) is None


def test_expired_lock_is_removed(lock_path):
    now = datetime(2030, 1, 7, 8, 0)
    maintenance.enable(5, path=lock_path, now=now)
    assert maintenance.active_state(lock_path, now=now + timedelta(minutes=5)) is None
    assert not os.path.exists(lock_path)


def test_open_ended_maintenance(lock_path):
    maintenance.enable(path=lock_path, now=datetime(2000, 1, 1))
    state = maintenance.active_state(lock_path)
    assert state.end_time is None
    assert state.message


def test_unreadable_lock_counts_as_maintenance(lock_path):
    with open(lock_path, "w") as fh:
        fh.write("{not json")
    state = maintenance.active_state(lock_path)
    assert state is not None
    assert state.end_time is None


@pytest.mark.parametrize("content", [
    "[]",
    "\"maintenance\"",
    "{\"start_time\": \"yesterday\"}",
    "{\"end_time\": 5}",
    "{\"start_time\": [2030, 1, 7]}",
    "{\"message\": {\"text\": \"x\"}}",
])
def test_malformed_lock_counts_as_maintenance(lock_path, content):
    with open(lock_path, "w") as fh:
        fh.write(content)
    state = maintenance.active_state(lock_path)
    assert state is not None
    assert isinstance(state.message, str) and state.message


def test_lock_with_utc_offset_is_compared_locally(lock_path):
    with open(lock_path, "w") as fh:
        fh.write('{"start_time": "2000-01-01T00:00:00+00:00", "end_time": "2000-01-01T01:00:00+00:00"}')
    assert maintenance.active_state(lock_path) is None
    assert not os.path.exists(lock_path)


def test_cli_status_with_malformed_lock(lock_path, monkeypatch, capsys):
    monkeypatch.setattr(maintenance.settings, "MAINTENANCE_FILE", lock_path)
    with open(lock_path, "w") as fh:
        fh.write("[1, 2]")
    assert cli.main(["maintenance", "--status"]) == 0
    assert "enabled" in capsys.readouterr().out


def test_cli_maintenance_commands(lock_path, monkeypatch, capsys):
    monkeypatch.setattr(maintenance.settings, "MAINTENANCE_FILE", lock_path)

    assert cli.main(["maintenance", "--status"]) == 0
    assert "disabled" in capsys.readouterr().out

    assert cli.main(["maintenance", "--enable", "--duration", "60", "--message", "Back soon"]) == 0
    assert "Back soon" in capsys.readouterr().out
    assert os.path.exists(lock_path)

    cli.main(["maintenance", "--status"])
    out = capsys.readouterr().out
    assert "enabled" in out and "Scheduled end" in out

    cli.main(["maintenance", "--disable"])
    assert "disabled" in capsys.readouterr().out
    assert not os.path.exists(lock_path)


def test_cli_rejects_conflicting_flags():
    with pytest.raises(SystemExit):
        cli.main(["maintenance", "--enable", "--disable"])


def test_exclusive_lock_blocks_second_holder(tmp_path):
    path = str(tmp_path / "task.lock")
    with cli.exclusive_lock(path):
        with pytest.raises(cli.TaskAlreadyRunning):
            with cli.exclusive_lock(path):
                pass
    # released once the first holder exits
    with cli.exclusive_lock(path):
        pass


def test_reminders_skip_when_locked(monkeypatch, tmp_path, capsys):
    path = str(tmp_path / "scheduler.lock")
    monkeypatch.setattr(cli.settings, "SCHEDULER_LOCK_FILE", path)
    with cli.exclusive_lock(path):
        assert cli.main(["reminders", "--hours-before", "12"]) == 0
    assert "reminder(s) sent" not in capsys.readouterr().out


def test_reminders_command_runs(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(cli.settings, "SCHEDULER_LOCK_FILE", str(tmp_path / "scheduler.lock"))
    assert cli.main(["reminders"]) == 0
    assert "0 reminder(s) sent" in capsys.readouterr().out
