from __future__ import annotations

import ntpath
import os
import warnings
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .errors import ExtensionMismatchWarning
from .validation import (
    IDLE_TIME_RANGE,
    INTERVAL_RANGE,
    check_end_time_duration,
    validate_date,
    validate_flag,
    validate_int_range,
    validate_non_empty,
    validate_run_level,
    validate_task_name,
    validate_time,
)

PathLike = Union[str, Path]
DateLike = Union[str, date]

# Interpreter executable (lower-case base name) -> script extensions it expects.
INTERPRETER_EXTENSIONS: Dict[str, Tuple[str, ...]] = {
    "rscript.exe": ("r",),
    "python.exe": ("py", "pyw"),
    "pythonw.exe": ("py", "pyw"),
    "julia.exe": ("jl",),
    "perl.exe": ("pl", "pm"),
    "node.exe": ("js", "mjs", "cjs"),
    "ts-node.exe": ("ts",),
    "raku.exe": ("raku", "rakumod", "pl6", "pm6"),
    "rakudo.exe": ("raku", "rakumod", "pl6", "pm6"),
}

SYSTEM_ACCOUNTS = ("SYSTEM", "NT AUTHORITY\\SYSTEM")


def quote(value: str) -> str:
    # schtasks reads its own command line, so values are wrapped as-is
    return '"' + value + '"'


def _to_windows_path(p: PathLike) -> str:
    return ntpath.abspath(os.path.expanduser(os.fspath(p)))


def _check_interpreter_extension(task_run: str, script: str) -> None:
    interpreter = ntpath.basename(script).lower()
    expected = INTERPRETER_EXTENSIONS.get(interpreter)
    if expected is None:
        return

    ext = ntpath.splitext(task_run)[1].lstrip(".").lower()
    if ext not in expected:
        name = interpreter[: -len(".exe")]
        warnings.warn(
            f"Using {name} with a file that doesn't have an expected extension. "
            f"Task file: {task_run}. Expected extension(s): "
            + ", ".join("." + e for e in expected),
            ExtensionMismatchWarning,
            stacklevel=3,
        )


def build_task_command(
    task_run: str,
    script: Optional[PathLike] = None,
    exec_path: Optional[PathLike] = None,
) -> str:
    """Build the command line schtasks stores for ``/tr``.

    The command changes to ``exec_path`` and runs ``task_run``, through the
    ``script`` interpreter when one is given. Relative paths in ``task_run``
    and ``script`` are resolved from ``exec_path`` when the task runs.

    - task_run: program, script or command to run.
    - script: interpreter executable (absolute, relative, or a name on PATH).
      ``None`` runs ``task_run`` directly through cmd.exe.
    - exec_path: working directory for the task. Defaults to the current
      working directory.
    """
    validate_non_empty(task_run, "task_run")

    if script is not None:
        script = os.fspath(script)
        _check_interpreter_extension(task_run, script)

    exec_dir = _to_windows_path(exec_path if exec_path is not None else os.getcwd())
    run = task_run.replace("/", "\\")

    if script is not None:
        interpreter = script.replace("/", "\\")
        return f'cmd /c "cd /d "{exec_dir}" && {interpreter} "{run}""'
    return f'cmd /c "cd /d "{exec_dir}" && "{run}""'


def build_create_args(
    task_name: str,
    task_run: str,
    schedule_type: str,
    *,
    modifier: Optional[Union[int, str]] = None,
    day: Optional[str] = None,
    months: Optional[str] = None,
    idle_time: Optional[int] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    duration: Optional[str] = None,
    interval: Optional[int] = None,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    run_level: Optional[str] = None,
    run_as_user: Optional[str] = None,
    kill_on_end: bool = False,
    delete_when_done: bool = False,
    force: bool = False,
    interactive_only: bool = False,
) -> List[str]:
    """Return the argument vector for ``schtasks /create``.

    Optional values are only emitted when supplied; flags only when true.
    """
    validate_task_name(task_name)
    validate_non_empty(task_run, "task_run")
    validate_non_empty(schedule_type, "schedule_type")

    args = [
        "/create",
        "/sc", schedule_type,
        "/tn", quote(task_name),
        "/tr", quote(task_run),
    ]

    if modifier is not None:
        args += ["/mo", str(modifier)]
    if day is not None:
        args += ["/d", day]
    if months is not None:
        args += ["/m", months]
    if idle_time is not None:
        args += ["/i", str(validate_int_range(idle_time, IDLE_TIME_RANGE, "idle_time"))]
    if start_time is not None:
        args += ["/st", validate_time(start_time, "start_time")]
    if end_time is not None:
        args += ["/et", validate_time(end_time, "end_time")]
    if duration is not None:
        args += ["/du", duration]
    if interval is not None:
        args += ["/ri", str(validate_int_range(interval, INTERVAL_RANGE, "interval"))]
    if start_date is not None:
        args += ["/sd", validate_date(start_date, "start_date")]
    if end_date is not None:
        args += ["/ed", validate_date(end_date, "end_date")]
    if run_level is not None:
        args += ["/rl", validate_run_level(run_level)]
    if run_as_user is not None:
        args += ["/ru", run_as_user]

    if kill_on_end:
        args.append("/k")
    if delete_when_done:
        args.append("/z")
    if force:
        args.append("/f")
    if interactive_only:
        args.append("/it")

    return args


def requires_password(run_as_user: str) -> bool:
    return run_as_user.upper() not in SYSTEM_ACCOUNTS


def build_change_args(
    task_name: str,
    *,
    task_run: Optional[str] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    duration: Optional[str] = None,
    interval: Optional[int] = None,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    run_level: Optional[str] = None,
    run_as_user: Optional[str] = None,
    run_as_password: Optional[str] = None,
    enable: Optional[bool] = None,
    kill_on_end: bool = False,
    delete_when_done: bool = False,
    interactive_only: bool = False,
) -> List[str]:
    """Return the argument vector for ``schtasks /change``.

    ``/rp`` is only emitted for accounts other than SYSTEM, and only when a
    password was supplied.
    """
    validate_task_name(task_name)
    check_end_time_duration(end_time, duration)

    args = ["/change", "/tn", quote(task_name)]

    if task_run is not None:
        args += ["/tr", quote(validate_non_empty(task_run, "task_run"))]
    if start_time is not None:
        args += ["/st", validate_time(start_time, "start_time")]
    if end_time is not None:
        args += ["/et", validate_time(end_time, "end_time")]
    if duration is not None:
        args += ["/du", duration]
    if interval is not None:
        args += ["/ri", str(validate_int_range(interval, INTERVAL_RANGE, "interval"))]
    if start_date is not None:
        args += ["/sd", validate_date(start_date, "start_date")]
    if end_date is not None:
        args += ["/ed", validate_date(end_date, "end_date")]
    if run_level is not None:
        args += ["/rl", validate_run_level(run_level)]
    if run_as_user is not None:
        args += ["/ru", validate_non_empty(run_as_user, "run_as_user")]
        if requires_password(run_as_user) and run_as_password is not None:
            args += ["/rp", run_as_password]
    if enable is not None:
        args.append("/enable" if validate_flag(enable, "enable") else "/disable")

    if kill_on_end:
        args.append("/k")
    if delete_when_done:
        args.append("/z")
    if interactive_only:
        args.append("/it")

    return args


def build_query_args(task_name: Optional[str] = None, verbose: bool = True) -> List[str]:
    validate_flag(verbose, "verbose")
    args = ["/query", "/fo", "CSV", "/v" if verbose else "/nh"]
    if task_name is not None:
        args += ["/tn", quote(validate_task_name(task_name))]
    return args


def build_run_args(task_name: str) -> List[str]:
    return ["/run", "/tn", quote(validate_task_name(task_name))]


def build_end_args(task_name: str) -> List[str]:
    return ["/end", "/tn", quote(validate_task_name(task_name))]


def build_delete_args(task_name: str) -> List[str]:
    # /f suppresses schtasks' own confirmation prompt
    return ["/delete", "/tn", quote(validate_task_name(task_name)), "/f"]
