"""Tests for the ``pyschtasks`` command line (``python -m pyschtasks``)."""

import io
import json

import pytest

from pyschtasks.__main__ import main, number_or_text, split_list


class TestHelpers:

    def test_split_list(self):
        assert split_list(["mon,wed", "fri"]) == ["mon", "wed", "fri"]
        assert split_list(None) is None

    def test_number_or_text(self):
        assert number_or_text("15") == 15
        assert number_or_text("LASTDAY") == "LASTDAY"
        assert number_or_text(None) is None


class TestCreate:

    def test_daily(self, captured, capsys):
        rc = main([
            "create", "--name", "Backup", "--run", "backup.bat", "--schedule", "daily",
            "--no-script", "--every", "2", "--start-time", "09:00",
        ])
        assert rc == 0
        assert captured.value_after("/sc") == "DAILY"
        assert captured.value_after("/mo") == "2"
        assert captured.value_after("/tr") == '"cmd /c "cd /d "C:\\Projects" && "backup.bat"""'
        assert "Task 'Backup' created" in capsys.readouterr().out

    def test_weekly_days(self, captured):
        main(["create", "--name", "W", "--run", "job.py", "--schedule", "weekly", "--days", "mon,wed", "fri"])
        assert captured.value_after("/d") == "MON,WED,FRI"

    def test_monthly_numeric_day(self, captured):
        main(["create", "--name", "M", "--run", "job.py", "--schedule", "monthly",
              "--modifier", "3", "--day", "15", "--months", "jan", "jul"])
        assert captured.value_after("/mo") == "3"
        assert captured.value_after("/d") == "15"
        assert captured.value_after("/m") == "JAN,JUL"

    def test_option_not_valid_for_schedule(self, captured):
        with pytest.raises(SystemExit):
            main(["create", "--name", "M", "--run", "job.py", "--schedule", "monthly", "--end-time", "10:00"])
        assert captured.calls == []

    @pytest.mark.parametrize("schedule, option", [
        ("once", "--start-time"),
        ("onidle", "--idle-time"),
    ])
    def test_missing_required_option(self, captured, capsys, schedule, option):
        with pytest.raises(SystemExit) as exc_info:
            main(["create", "--name", "J", "--run", "job.py", "--schedule", schedule])
        assert exc_info.value.code == 2
        assert f"{option} is required for --schedule {schedule}" in capsys.readouterr().err
        assert captured.calls == []

    def test_validation_error_exit_code(self, captured, capsys):
        rc = main(["create", "--name", "Bad|Name", "--run", "job.py", "--schedule", "onstart"])
        assert rc == 2
        assert "invalid characters" in capsys.readouterr().out
        assert captured.calls == []


class TestOtherCommands:

    def test_change_disable(self, captured):
        assert main(["change", "--name", "Job", "--disable"]) == 0
        assert captured.args == ["/change", "/tn", '"Job"', "/disable"]

    def test_change_without_state_flag(self, captured):
        main(["change", "--name", "Job", "--start-time", "07:00"])
        assert "/enable" not in captured.args
        assert "/disable" not in captured.args

    @pytest.mark.parametrize("cmd, expected", [
        ("run", ["/run", "/tn", '"Job"']),
        ("end", ["/end", "/tn", '"Job"']),
        ("enable", ["/change", "/tn", '"Job"', "/enable"]),
        ("delete", ["/delete", "/tn", '"Job"', "/f"]),
    ])
    def test_simple_commands(self, captured, cmd, expected):
        assert main([cmd, "--name", "Job"]) == 0
        assert captured.args == expected

    def test_delete_confirm_without_terminal(self, captured, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        assert main(["delete", "--name", "Job", "--confirm"]) == 2
        assert "not interactive" in capsys.readouterr().out
        assert captured.calls == []

    def test_query_json(self, captured, capsys):
        captured.output = ['"\\Job","N/A","Ready"']
        assert main(["query", "--brief", "--format", "json"]) == 0
        records = json.loads(capsys.readouterr().out)
        assert records == [{"task_name": "\\Job", "next_run_time": "N/A", "status": "Ready"}]

    def test_query_empty(self, captured, capsys):
        assert main(["query", "--brief"]) == 0
        assert "No scheduled tasks found." in capsys.readouterr().out
