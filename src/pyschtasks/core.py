from __future__ import annotations

import io
import logging
import re
import subprocess
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Sequence, Union

import pandas as pd

from .command import (
    DateLike,
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
from .config import Settings, load_settings
from .errors import CommandFailedError, IgnoredParameterWarning, ValidationError
from .prompts import Prompter, TerminalPrompter
from .validation import (
    DAILY_RANGE,
    DAY_OF_MONTH_RANGE,
    HOURLY_RANGE,
    IDLE_TIME_RANGE,
    MINUTE_RANGE,
    MONTHLY_RANGE,
    WEEKLY_RANGE,
    check_end_time_duration,
    normalise_day,
    normalise_days,
    normalise_months,
    validate_flag,
    validate_int_range,
    validate_non_empty,
    validate_task_name,
    validate_time,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class _Default:
    def __repr__(self) -> str:
        return "DEFAULT"


# Use the configured interpreter / execution directory.
DEFAULT: Any = _Default()

WEEK_MODIFIERS = ("FIRST", "SECOND", "THIRD", "FOURTH", "LAST")
LASTDAY = "LASTDAY"

BRIEF_COLUMNS = ["task_name", "next_run_time", "status"]


# --- Process invocation -----------------------------------------------------

@dataclass
class CommandResult:
    exit_code: int
    output: List[str] = field(default_factory=list)


def _run_schtasks(command_line: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        command_line,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        check=False,
    )


def execute(
    args: Sequence[str],
    error_msg: str = "schtasks command failed",
    settings: Optional[Settings] = None,
    runner: Optional[Callable[[str], subprocess.CompletedProcess]] = None,
) -> CommandResult:
    """Run schtasks with ``args`` and return its exit code and output lines.

    The tokens are already quoted for schtasks, so they are joined into a
    single command line instead of going through ``list2cmdline``.
    Raises :class:`CommandFailedError` on a non-zero exit status.
    """
    settings = settings or load_settings()
    runner = runner or _run_schtasks
    executable = settings.schtasks
    if any(ch.isspace() for ch in executable) and not executable.startswith('"'):
        executable = quote(executable)
    command_line = " ".join([executable, *args])
    logger.debug("Running: %s", command_line)

    try:
        res = runner(command_line)
    except OSError as exc:
        logger.error("%s: could not start %s (%s)", error_msg, settings.schtasks, exc)
        raise CommandFailedError(error_msg, 127, [str(exc)]) from exc

    output = (res.stdout or "").splitlines()
    if res.returncode != 0:
        logger.error("%s (exit code %s)", error_msg, res.returncode)
        raise CommandFailedError(error_msg, res.returncode, output)

    return CommandResult(exit_code=res.returncode, output=output)


# --- Output parsing ---------------------------------------------------------

def to_snake_case(name: str) -> str:
    s = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    s = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", s)
    s = re.sub(r"[^0-9A-Za-z]+", "_", s)
    return s.strip("_").lower()


def to_snake_case_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.rename(columns=to_snake_case)


def parse_query_csv(lines: Iterable[str]) -> pd.DataFrame:
    """Parse ``schtasks /query /fo CSV /v`` output. Every column is text."""
    text = "\n".join(lines).strip()
    if not text:
        return pd.DataFrame()

    df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    if not df.empty:
        # /v repeats the header row for every task folder
        is_header = (df == list(df.columns)).all(axis=1)
        df = df[~is_header].reset_index(drop=True)
    return to_snake_case_columns(df)


def parse_brief_csv(lines: Iterable[str]) -> pd.DataFrame:
    """Parse ``schtasks /query /fo CSV /nh`` output (no header row)."""
    text = "\n".join(lines).strip()
    if not text:
        return pd.DataFrame({c: pd.Series(dtype=str) for c in BRIEF_COLUMNS})

    return pd.read_csv(
        io.StringIO(text),
        header=None,
        names=BRIEF_COLUMNS,
        dtype=str,
        keep_default_na=False,
    )


# --- Create -----------------------------------------------------------------

def _create(
    task_name: str,
    task_run: str,
    schedule_type: str,
    script: Any,
    exec_path: Any,
    settings: Optional[Settings],
    **options: Any,
) -> bool:
    settings = settings or load_settings()
    if script is DEFAULT:
        script = settings.interpreter
    if exec_path is DEFAULT or exec_path is None:
        exec_path = settings.exec_path or None

    task_command = build_task_command(task_run, script, exec_path)
    args = build_create_args(task_name, task_command, schedule_type, **options)

    execute(args, error_msg="Failed to create scheduled task", settings=settings)
    logger.info("Created scheduled task: %s", task_name)
    return True


def create_minute_task(
    task_name: str,
    task_run: str,
    every: int = 1,
    script: Optional[PathLike] = DEFAULT,
    exec_path: Optional[PathLike] = DEFAULT,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    duration: Optional[str] = None,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    run_level: Optional[str] = "LIMITED",
    run_as_user: Optional[str] = None,
    kill_on_end: bool = False,
    delete_when_done: bool = False,
    force: bool = False,
    interactive_only: bool = False,
    settings: Optional[Settings] = None,
) -> bool:
    """Run ``task_run`` every ``every`` minutes (1-1439).

    ``script`` is the interpreter used to run ``task_run``; it defaults to
    the configured interpreter (the running Python unless
    ``PYSCHTASKS_INTERPRETER`` is set). Pass ``None`` to run ``task_run``
    directly. ``exec_path`` defaults to the project root.
    """
    every = validate_int_range(every, MINUTE_RANGE, "every")
    check_end_time_duration(end_time, duration)
    return _create(
        task_name, task_run, "MINUTE", script, exec_path, settings,
        modifier=every,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
        start_date=start_date,
        end_date=end_date,
        run_level=run_level,
        run_as_user=run_as_user,
        kill_on_end=kill_on_end,
        delete_when_done=delete_when_done,
        force=force,
        interactive_only=interactive_only,
    )


def create_hourly_task(
    task_name: str,
    task_run: str,
    every: int = 1,
    script: Optional[PathLike] = DEFAULT,
    exec_path: Optional[PathLike] = DEFAULT,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    duration: Optional[str] = None,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    run_level: Optional[str] = "LIMITED",
    run_as_user: Optional[str] = None,
    kill_on_end: bool = False,
    delete_when_done: bool = False,
    force: bool = False,
    interactive_only: bool = False,
    settings: Optional[Settings] = None,
) -> bool:
    """Run ``task_run`` every ``every`` hours (1-23)."""
    every = validate_int_range(every, HOURLY_RANGE, "every")
    check_end_time_duration(end_time, duration)
    return _create(
        task_name, task_run, "HOURLY", script, exec_path, settings,
        modifier=every,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
        start_date=start_date,
        end_date=end_date,
        run_level=run_level,
        run_as_user=run_as_user,
        kill_on_end=kill_on_end,
        delete_when_done=delete_when_done,
        force=force,
        interactive_only=interactive_only,
    )


def create_daily_task(
    task_name: str,
    task_run: str,
    every: int = 1,
    script: Optional[PathLike] = DEFAULT,
    exec_path: Optional[PathLike] = DEFAULT,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    duration: Optional[str] = None,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    run_level: Optional[str] = "LIMITED",
    run_as_user: Optional[str] = None,
    kill_on_end: bool = False,
    delete_when_done: bool = False,
    force: bool = False,
    interactive_only: bool = False,
    settings: Optional[Settings] = None,
) -> bool:
    """Run ``task_run`` every ``every`` days (1-365)."""
    every = validate_int_range(every, DAILY_RANGE, "every")
    check_end_time_duration(end_time, duration)
    return _create(
        task_name, task_run, "DAILY", script, exec_path, settings,
        modifier=every,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
        start_date=start_date,
        end_date=end_date,
        run_level=run_level,
        run_as_user=run_as_user,
        kill_on_end=kill_on_end,
        delete_when_done=delete_when_done,
        force=force,
        interactive_only=interactive_only,
    )


def create_weekly_task(
    task_name: str,
    task_run: str,
    every: int = 1,
    days: Union[str, Sequence[str]] = "MON",
    script: Optional[PathLike] = DEFAULT,
    exec_path: Optional[PathLike] = DEFAULT,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    duration: Optional[str] = None,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    run_level: Optional[str] = "LIMITED",
    run_as_user: Optional[str] = None,
    kill_on_end: bool = False,
    delete_when_done: bool = False,
    force: bool = False,
    interactive_only: bool = False,
    settings: Optional[Settings] = None,
) -> bool:
    """Run ``task_run`` every ``every`` weeks (1-52) on ``days``.

    ``days`` takes day names or abbreviations in any case, or ``"*"`` for
    every day.
    """
    every = validate_int_range(every, WEEKLY_RANGE, "every")
    if not days:
        raise ValidationError("'days' must name at least one day of the week.")
    check_end_time_duration(end_time, duration)

    if days == "*" or list(days) == ["*"]:
        day_arg = "*"
    else:
        day_arg = normalise_days(days)

    return _create(
        task_name, task_run, "WEEKLY", script, exec_path, settings,
        modifier=every,
        day=day_arg,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
        start_date=start_date,
        end_date=end_date,
        run_level=run_level,
        run_as_user=run_as_user,
        kill_on_end=kill_on_end,
        delete_when_done=delete_when_done,
        force=force,
        interactive_only=interactive_only,
    )


def _monthly_day(modifier: Union[int, str], day: Any) -> tuple:
    """Resolve the /mo and /d values for a monthly task."""
    if isinstance(modifier, (int, float)) and not isinstance(modifier, bool):
        months = validate_int_range(modifier, MONTHLY_RANGE, "modifier")
        day = 1 if day is None else day
        return str(months), str(validate_int_range(day, DAY_OF_MONTH_RANGE, "day"))

    mode = modifier.upper() if isinstance(modifier, str) else None
    if mode in WEEK_MODIFIERS:
        if day is None:
            raise ValidationError(
                f"The 'day' parameter is required when 'modifier' is {mode!r}. "
                "Specify a day of the week, e.g. 'MON', 'TUE'."
            )
        return mode, normalise_day(day)

    if mode == LASTDAY:
        if day is not None:
            warnings.warn(
                "The 'day' parameter is ignored when 'modifier' is 'LASTDAY'. "
                "Task will run on the last day of each specified month.",
                IgnoredParameterWarning,
                stacklevel=3,
            )
        return mode, None

    raise ValidationError(
        "Invalid 'modifier' value: expected a number (1-12), or one of "
        f"{', '.join(WEEK_MODIFIERS + (LASTDAY,))}, got {modifier!r}."
    )


def create_monthly_task(
    task_name: str,
    task_run: str,
    modifier: Union[int, str] = 1,
    day: Optional[Union[int, str]] = None,
    months: Union[str, Sequence[str]] = "*",
    script: Optional[PathLike] = DEFAULT,
    exec_path: Optional[PathLike] = DEFAULT,
    start_time: Optional[str] = None,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    run_level: Optional[str] = "LIMITED",
    run_as_user: Optional[str] = None,
    delete_when_done: bool = False,
    force: bool = False,
    interactive_only: bool = False,
    settings: Optional[Settings] = None,
) -> bool:
    """Run ``task_run`` monthly.

    ``modifier`` selects the mode:

    - a number (1-12): every N months on day-of-month ``day`` (1-31,
      default 1);
    - ``FIRST``, ``SECOND``, ``THIRD``, ``FOURTH`` or ``LAST``: that week of
      the month, on weekday ``day`` (required);
    - ``LASTDAY``: the last day of the month; ``day`` is ignored with a
      warning.

    ``months`` restricts the months (names, abbreviations, or ``"*"``).
    """
    mo_arg, day_arg = _monthly_day(modifier, day)
    months_arg = normalise_months(months)

    return _create(
        task_name, task_run, "MONTHLY", script, exec_path, settings,
        modifier=mo_arg,
        day=day_arg,
        months=months_arg,
        start_time=start_time,
        start_date=start_date,
        end_date=end_date,
        run_level=run_level,
        run_as_user=run_as_user,
        delete_when_done=delete_when_done,
        force=force,
        interactive_only=interactive_only,
    )


def create_once_task(
    task_name: str,
    task_run: str,
    start_time: str,
    script: Optional[PathLike] = DEFAULT,
    exec_path: Optional[PathLike] = DEFAULT,
    start_date: Optional[DateLike] = None,
    run_level: Optional[str] = "LIMITED",
    run_as_user: Optional[str] = None,
    delete_when_done: bool = False,
    force: bool = False,
    interactive_only: bool = False,
    settings: Optional[Settings] = None,
) -> bool:
    """Run ``task_run`` once at ``start_time`` (HH:MM), on ``start_date`` if given."""
    validate_time(start_time, "start_time")
    return _create(
        task_name, task_run, "ONCE", script, exec_path, settings,
        start_time=start_time,
        start_date=start_date,
        run_level=run_level,
        run_as_user=run_as_user,
        delete_when_done=delete_when_done,
        force=force,
        interactive_only=interactive_only,
    )


def create_on_start_task(
    task_name: str,
    task_run: str,
    script: Optional[PathLike] = DEFAULT,
    exec_path: Optional[PathLike] = DEFAULT,
    start_date: Optional[DateLike] = None,
    run_level: Optional[str] = "LIMITED",
    run_as_user: Optional[str] = None,
    delete_when_done: bool = False,
    force: bool = False,
    interactive_only: bool = False,
    settings: Optional[Settings] = None,
) -> bool:
    """Run ``task_run`` every time the system starts."""
    return _create(
        task_name, task_run, "ONSTART", script, exec_path, settings,
        start_date=start_date,
        run_level=run_level,
        run_as_user=run_as_user,
        delete_when_done=delete_when_done,
        force=force,
        interactive_only=interactive_only,
    )


def create_on_logon_task(
    task_name: str,
    task_run: str,
    script: Optional[PathLike] = DEFAULT,
    exec_path: Optional[PathLike] = DEFAULT,
    start_date: Optional[DateLike] = None,
    run_level: Optional[str] = "LIMITED",
    run_as_user: Optional[str] = None,
    delete_when_done: bool = False,
    force: bool = False,
    interactive_only: bool = False,
    settings: Optional[Settings] = None,
) -> bool:
    """Run ``task_run`` whenever a user logs on."""
    return _create(
        task_name, task_run, "ONLOGON", script, exec_path, settings,
        start_date=start_date,
        run_level=run_level,
        run_as_user=run_as_user,
        delete_when_done=delete_when_done,
        force=force,
        interactive_only=interactive_only,
    )


def create_on_idle_task(
    task_name: str,
    task_run: str,
    idle_time: int,
    script: Optional[PathLike] = DEFAULT,
    exec_path: Optional[PathLike] = DEFAULT,
    start_date: Optional[DateLike] = None,
    run_level: Optional[str] = "LIMITED",
    run_as_user: Optional[str] = None,
    delete_when_done: bool = False,
    force: bool = False,
    interactive_only: bool = False,
    settings: Optional[Settings] = None,
) -> bool:
    """Run ``task_run`` after the system has been idle for ``idle_time`` minutes (1-999)."""
    idle_time = validate_int_range(idle_time, IDLE_TIME_RANGE, "idle_time")
    return _create(
        task_name, task_run, "ONIDLE", script, exec_path, settings,
        idle_time=idle_time,
        start_date=start_date,
        run_level=run_level,
        run_as_user=run_as_user,
        delete_when_done=delete_when_done,
        force=force,
        interactive_only=interactive_only,
    )


# --- Change / query / run / end / delete ------------------------------------

def change_task(
    task_name: str,
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
    prompter: Optional[Prompter] = None,
    settings: Optional[Settings] = None,
) -> bool:
    """Modify an existing task. Only the supplied properties change.

    Setting ``run_as_user`` to an account other than ``SYSTEM`` /
    ``NT AUTHORITY\\SYSTEM`` without ``run_as_password`` asks ``prompter``
    (the terminal by default) for the password. ``enable=True``/``False``
    enables or disables the task; ``None`` leaves it alone.
    """
    options = dict(
        task_run=task_run,
        start_time=start_time,
        end_time=end_time,
        duration=duration,
        interval=interval,
        start_date=start_date,
        end_date=end_date,
        run_level=run_level,
        run_as_user=run_as_user,
        run_as_password=run_as_password,
        enable=enable,
        kill_on_end=kill_on_end,
        delete_when_done=delete_when_done,
        interactive_only=interactive_only,
    )
    args = build_change_args(task_name, **options)

    if run_as_user is not None and run_as_password is None and requires_password(run_as_user):
        prompter = prompter or TerminalPrompter()
        options["run_as_password"] = prompter.password(f"Enter password for {run_as_user}: ")
        args = build_change_args(task_name, **options)

    execute(args, error_msg="Failed to modify scheduled task", settings=settings)
    logger.info("Modified scheduled task: %s", task_name)
    return True


def enable_task(task_name: str, settings: Optional[Settings] = None) -> bool:
    return change_task(task_name, enable=True, settings=settings)


def disable_task(task_name: str, settings: Optional[Settings] = None) -> bool:
    return change_task(task_name, enable=False, settings=settings)


def query_tasks(
    task_name: Optional[str] = None,
    verbose: bool = True,
    settings: Optional[Settings] = None,
) -> pd.DataFrame:
    """Return scheduled tasks as a DataFrame of strings.

    With ``verbose=False`` the columns are ``task_name``, ``next_run_time``
    and ``status``. With ``verbose=True`` every field schtasks reports is
    included (``last_run_time``, ``last_result``, ``author``,
    ``task_to_run``, ``schedule_type``, ...), snake_cased.
    """
    if task_name is not None:
        validate_non_empty(task_name, "task_name")
    args = build_query_args(task_name, verbose)

    res = execute(args, error_msg="Failed to query scheduled tasks", settings=settings)
    if verbose:
        return parse_query_csv(res.output)
    return parse_brief_csv(res.output)


def run_task(task_name: str, settings: Optional[Settings] = None) -> bool:
    """Start a task now. Its schedule is not affected."""
    args = build_run_args(task_name)
    execute(args, error_msg="Failed to run scheduled task", settings=settings)
    logger.info("Started scheduled task: %s", task_name)
    return True


def end_task(task_name: str, settings: Optional[Settings] = None) -> bool:
    """Stop the running instance of a task. It still runs at its next scheduled time."""
    args = build_end_args(task_name)
    execute(args, error_msg="Failed to stop scheduled task", settings=settings)
    logger.info("Stopped scheduled task: %s", task_name)
    return True


stop_task = end_task


def delete_task(
    task_name: str,
    confirm: bool = False,
    prompter: Optional[Prompter] = None,
    settings: Optional[Settings] = None,
) -> bool:
    """Delete a task. Returns False if the user declines the confirmation."""
    validate_task_name(task_name)
    validate_flag(confirm, "confirm")

    if confirm:
        prompter = prompter or TerminalPrompter()
        if not prompter.confirm(f"Delete scheduled task '{task_name}'? (y/N): "):
            logger.info("Deletion cancelled.")
            return False

    args = build_delete_args(task_name)
    execute(args, error_msg="Failed to delete scheduled task", settings=settings)
    logger.info("Deleted scheduled task: %s", task_name)
    return True
