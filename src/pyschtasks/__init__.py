"""
Windows Task Scheduler (schtasks.exe) wrapper.

Public API:
- create_*_task: create tasks on minute/hourly/daily/weekly/monthly/once,
  on-start, on-logon and on-idle schedules.
- change_task, enable_task, disable_task: modify an existing task.
- query_tasks: list tasks as a pandas DataFrame.
- run_task, end_task, delete_task: start, stop and remove tasks.
"""

from .command import build_create_args, build_task_command
from .core import (
    DEFAULT,
    change_task,
    create_daily_task,
    create_hourly_task,
    create_minute_task,
    create_monthly_task,
    create_on_idle_task,
    create_on_logon_task,
    create_on_start_task,
    create_once_task,
    create_weekly_task,
    delete_task,
    disable_task,
    enable_task,
    end_task,
    query_tasks,
    run_task,
    stop_task,
)
from .errors import (
    CommandFailedError,
    ExtensionMismatchWarning,
    IgnoredParameterWarning,
    InteractivityRequiredError,
    TaskError,
    TaskWarning,
    ValidationError,
)
from .prompts import NonInteractivePrompter, Prompter, TerminalPrompter

__all__ = [
    "DEFAULT",
    "build_create_args",
    "build_task_command",
    "change_task",
    "create_daily_task",
    "create_hourly_task",
    "create_minute_task",
    "create_monthly_task",
    "create_on_idle_task",
    "create_on_logon_task",
    "create_on_start_task",
    "create_once_task",
    "create_weekly_task",
    "delete_task",
    "disable_task",
    "enable_task",
    "end_task",
    "query_tasks",
    "run_task",
    "stop_task",
    "CommandFailedError",
    "ExtensionMismatchWarning",
    "IgnoredParameterWarning",
    "InteractivityRequiredError",
    "TaskError",
    "TaskWarning",
    "ValidationError",
    "NonInteractivePrompter",
    "Prompter",
    "TerminalPrompter",
]

__version__ = "0.1.0"
