"""Tests for command.py: the /tr command line and schtasks argument vectors."""

import warnings
from datetime import date

import pytest

from pyschtasks.command import (
    build_change_args,
    build_create_args,
    build_delete_args,
    build_end_args,
    build_query_args,
    build_run_args,
    build_task_command,
    quote,
    requires_password,
)
from pyschtasks.errors import ExtensionMismatchWarning, ValidationError


def _create(**kwargs):
    return build_create_args("TestTask", r"C:\test.exe", kwargs.pop("schedule_type", "DAILY"), **kwargs)


# =====================================================================
# build_task_command
# =====================================================================

class TestBuildTaskCommand:

    def test_interpreter_command_shape(self):
        cmd = build_task_command("script.py", "python", "C:/Projects")
        assert cmd == 'cmd /c "cd /d "C:\\Projects" && python "script.py""'

    def test_no_interpreter_command_shape(self):
        cmd = build_task_command("backup.bat", None, "C:/Scripts")
        assert cmd == 'cmd /c "cd /d "C:\\Scripts" && "backup.bat""'

    def test_converts_forward_slashes(self):
        with pytest.warns(ExtensionMismatchWarning):
            cmd = build_task_command("path/to/script.R", "C:/Python311/python.exe", "C:/Projects")
        assert "path\\to\\script.R" in cmd
        assert "C:\\Python311\\python.exe" in cmd
        assert "/" not in cmd.replace("cmd /c", "").replace("cd /d", "")

    def test_preserves_absolute_task_path(self):
        cmd = build_task_command("C:/Scripts/script.R", r"C:\R\bin\Rscript.exe", "C:/Projects")
        assert '"C:\\Scripts\\script.R"' in cmd

    def test_relative_task_path_is_kept_relative(self):
        cmd = build_task_command("subfolder/script.R", r"C:\R\bin\Rscript.exe", "C:/Projects")
        assert '"subfolder\\script.R"' in cmd

    def test_defaults_exec_path_to_cwd(self, monkeypatch):
        monkeypatch.setattr("os.getcwd", lambda: "C:\\Work\\Here")
        cmd = build_task_command("job.bat")
        assert 'cd /d "C:\\Work\\Here"' in cmd

    @pytest.mark.parametrize("task_run, script", [
        ("script.R", r"C:\R\bin\Rscript.exe"),
        ("script.r", r"C:\R\bin\Rscript.exe"),
        ("script.py", r"C:\Python311\python.exe"),
        ("gui.pyw", r"C:\Python311\pythonw.exe"),
        ("script.jl", r"C:\Julia\bin\julia.exe"),
        ("script.mjs", r"C:\nodejs\node.exe"),
        ("script.ts", r"C:\nodejs\ts-node.exe"),
        ("script.raku", r"C:\rakudo\bin\rakudo.exe"),
        ("script.py", "python"),
        ("anything.txt", "pwsh.exe"),
    ])
    def test_no_warning_for_expected_extension(self, task_run, script):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            cmd = build_task_command(task_run, script, "C:/Projects")
        assert task_run.replace("/", "\\") in cmd

    @pytest.mark.parametrize("task_run, script", [
        ("script.py", r"C:\R\bin\Rscript.exe"),
        ("script.R", r"C:\Python311\python.exe"),
        ("script", r"C:\Python311\PYTHON.EXE"),
    ])
    def test_warns_on_mismatched_extension_but_still_builds(self, task_run, script):
        with pytest.warns(ExtensionMismatchWarning, match="expected extension"):
            cmd = build_task_command(task_run, script, "C:/Projects")
        assert task_run in cmd

    @pytest.mark.parametrize("task_run", ["", None])
    def test_requires_task_run(self, task_run):
        with pytest.raises(ValidationError, match="task_run"):
            build_task_command(task_run, "python", "C:/Projects")


# =====================================================================
# build_create_args
# =====================================================================

class TestBuildCreateArgs:

    def test_required_prefix(self):
        args = _create()
        assert args[:7] == ["/create", "/sc", "DAILY", "/tn", '"TestTask"', "/tr", '"C:\\test.exe"']

    def test_only_prefix_when_nothing_optional(self):
        assert len(_create()) == 7

    def test_includes_modifier(self):
        args = _create(modifier=5)
        assert args[7:] == ["/mo", "5"]

    @pytest.mark.parametrize("kwargs, flag, value", [
        ({"schedule_type": "WEEKLY", "day": "MON,WED,FRI"}, "/d", "MON,WED,FRI"),
        ({"schedule_type": "MONTHLY", "months": "JAN,APR,JUL,OCT"}, "/m", "JAN,APR,JUL,OCT"),
        ({"schedule_type": "ONIDLE", "idle_time": 10}, "/i", "10"),
        ({"start_time": "09:00"}, "/st", "09:00"),
        ({"schedule_type": "MINUTE", "end_time": "17:00"}, "/et", "17:00"),
        ({"schedule_type": "HOURLY", "duration": "0010:00"}, "/du", "0010:00"),
        ({"interval": 30}, "/ri", "30"),
        ({"start_date": "2024/06/15"}, "/sd", "2024/06/15"),
        ({"end_date": date(2024, 12, 31)}, "/ed", "2024/12/31"),
        ({"run_level": "highest"}, "/rl", "HIGHEST"),
        ({"run_as_user": "SYSTEM"}, "/ru", "SYSTEM"),
    ])
    def test_optional_value_pairs(self, kwargs, flag, value):
        args = _create(**kwargs)
        assert args[7:] == [flag, value]

    def test_flags_when_true(self):
        args = _create(kill_on_end=True, delete_when_done=True, force=True, interactive_only=True)
        assert args[7:] == ["/k", "/z", "/f", "/it"]

    def test_flags_omitted_when_false(self):
        args = _create(kill_on_end=False, delete_when_done=False, force=False, interactive_only=False)
        for flag in ("/k", "/z", "/f", "/it"):
            assert flag not in args

    @pytest.mark.parametrize("idle_time", [0, 1000])
    def test_validates_idle_time(self, idle_time):
        with pytest.raises(ValidationError):
            _create(schedule_type="ONIDLE", idle_time=idle_time)

    @pytest.mark.parametrize("interval", [0, 599941, 600000])
    def test_validates_interval(self, interval):
        with pytest.raises(ValidationError):
            _create(interval=interval)

    def test_interval_bounds_accepted(self):
        assert _create(interval=1)[-1] == "1"
        assert _create(interval=599940)[-1] == "599940"

    @pytest.mark.parametrize("kwargs", [
        {"start_time": "25:00"},
        {"end_time": "9am"},
        {"start_date": "June 15, 2024"},
        {"end_date": "15-06-2024"},
        {"run_level": "ADMIN"},
    ])
    def test_invalid_optional_values_abort(self, kwargs):
        with pytest.raises(ValidationError):
            _create(**kwargs)

    def test_validates_task_name(self):
        with pytest.raises(ValidationError, match="invalid characters"):
            build_create_args("Bad|Name", r"C:\test.exe", "DAILY")

    @pytest.mark.parametrize("task_run, schedule_type", [("", "DAILY"), (r"C:\test.exe", "")])
    def test_requires_task_run_and_schedule_type(self, task_run, schedule_type):
        with pytest.raises(ValidationError):
            build_create_args("TestTask", task_run, schedule_type)


# =====================================================================
# Other operations
# =====================================================================

class TestBuildChangeArgs:

    def test_prefix(self):
        assert build_change_args("MyTask") == ["/change", "/tn", '"MyTask"']

    def test_task_run_is_quoted(self):
        args = build_change_args("MyTask", task_run=r"C:\New\program.exe")
        assert args[3:] == ["/tr", '"C:\\New\\program.exe"']

    def test_enable_and_disable(self):
        assert build_change_args("MyTask", enable=True)[-1] == "/enable"
        assert build_change_args("MyTask", enable=False)[-1] == "/disable"

    def test_enable_must_be_bool(self):
        with pytest.raises(ValidationError):
            build_change_args("MyTask", enable="yes")

    def test_password_follows_user(self):
        args = build_change_args("MyTask", run_as_user="DOMAIN\\User", run_as_password="pw")
        assert args[3:] == ["/ru", "DOMAIN\\User", "/rp", "pw"]

    @pytest.mark.parametrize("user", ["SYSTEM", "system", "NT AUTHORITY\\SYSTEM", "nt authority\\system"])
    def test_no_password_for_system(self, user):
        args = build_change_args("MyTask", run_as_user=user, run_as_password="ignored")
        assert "/rp" not in args
        assert not requires_password(user)

    def test_rejects_end_time_with_duration(self):
        with pytest.raises(ValidationError, match="Cannot specify both"):
            build_change_args("MyTask", end_time="17:00", duration="0008:00")

    def test_trailing_flags(self):
        args = build_change_args("MyTask", kill_on_end=True, delete_when_done=True, interactive_only=True)
        assert args[3:] == ["/k", "/z", "/it"]


class TestSimpleOperations:

    def test_query_verbose(self):
        assert build_query_args() == ["/query", "/fo", "CSV", "/v"]

    def test_query_brief_for_one_task(self):
        assert build_query_args("\\Folder\\Job", verbose=False) == [
            "/query", "/fo", "CSV", "/nh", "/tn", '"\\Folder\\Job"',
        ]

    def test_query_verbose_must_be_bool(self):
        with pytest.raises(ValidationError):
            build_query_args(verbose="yes")

    def test_run_end_delete(self):
        assert build_run_args("Job") == ["/run", "/tn", '"Job"']
        assert build_end_args("Job") == ["/end", "/tn", '"Job"']
        assert build_delete_args("Job") == ["/delete", "/tn", '"Job"', "/f"]

    @pytest.mark.parametrize("builder", [build_run_args, build_end_args, build_delete_args])
    def test_validate_task_name(self, builder):
        with pytest.raises(ValidationError):
            builder("Task?Name")

    def test_quote_wraps_in_double_quotes(self):
        assert quote("My Task") == '"My Task"'
