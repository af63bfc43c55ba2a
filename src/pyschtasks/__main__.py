from __future__ import annotations

import argparse
import inspect
import logging
from typing import Any, Dict, List, Optional, Union

from . import core
from .config import load_settings
from .errors import TaskError

SCHEDULES = {
    "minute": core.create_minute_task,
    "hourly": core.create_hourly_task,
    "daily": core.create_daily_task,
    "weekly": core.create_weekly_task,
    "monthly": core.create_monthly_task,
    "once": core.create_once_task,
    "onstart": core.create_on_start_task,
    "onlogon": core.create_on_logon_task,
    "onidle": core.create_on_idle_task,
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.captureWarnings(True)


def split_list(values: Optional[List[str]]) -> Optional[List[str]]:
    # Accept both "--days mon wed" and "--days mon,wed"
    if not values:
        return None
    return [part.strip() for v in values for part in v.split(",") if part.strip()]


def number_or_text(value: Optional[str]) -> Optional[Union[int, str]]:
    if value is None:
        return None
    return int(value) if value.isdigit() else value


def _add_common_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--start-time", help="HH:MM (24h)")
    p.add_argument("--end-time", help="HH:MM (24h)")
    p.add_argument("--duration", help="HHHH:MM")
    p.add_argument("--start-date", help="YYYY/MM/DD, DD/MM/YYYY or YYYY-MM-DD")
    p.add_argument("--end-date", help="YYYY/MM/DD, DD/MM/YYYY or YYYY-MM-DD")
    p.add_argument("--run-level", choices=["LIMITED", "HIGHEST"], type=str.upper)
    p.add_argument("--run-as-user")
    p.add_argument("--kill-on-end", action="store_true")
    p.add_argument("--delete-when-done", action="store_true")
    p.add_argument("--interactive-only", action="store_true")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pyschtasks", description="Manage Windows Task Scheduler tasks via schtasks"
    )
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")

    sub = p.add_subparsers(dest="cmd", required=True)

    create = sub.add_parser("create", help="Create a new scheduled task")
    create.add_argument("--name", required=True)
    create.add_argument("--run", required=True, help="Program or script to run")
    create.add_argument("--schedule", required=True, choices=sorted(SCHEDULES))
    create.add_argument("--script", help="Interpreter used to run --run (default: configured interpreter)")
    create.add_argument("--no-script", action="store_true", help="Run --run directly, without an interpreter")
    create.add_argument("--exec-path", help="Working directory for the task (default: project root)")
    create.add_argument("--every", type=int, help="Repeat every N minutes/hours/days/weeks")
    create.add_argument("--days", nargs="+", help="Weekly: days of week, or *")
    create.add_argument("--modifier", help="Monthly: 1-12, FIRST..LAST or LASTDAY")
    create.add_argument("--day", help="Monthly: day of month or day of week")
    create.add_argument("--months", nargs="+", help="Monthly: months, or *")
    create.add_argument("--idle-time", type=int, help="On idle: minutes idle (1-999)")
    create.add_argument("--force", action="store_true", help="Overwrite an existing task")
    _add_common_options(create)

    change = sub.add_parser("change", help="Modify an existing task")
    change.add_argument("--name", required=True)
    change.add_argument("--run", help="New command to run")
    change.add_argument("--interval", type=int, help="Repetition interval in minutes")
    change.add_argument("--run-as-password", help="Prompted for when omitted")
    state = change.add_mutually_exclusive_group()
    state.add_argument("--enable", dest="enable", action="store_true", default=None)
    state.add_argument("--disable", dest="enable", action="store_false")
    change.set_defaults(enable=None)
    _add_common_options(change)

    query = sub.add_parser("query", help="List scheduled tasks")
    query.add_argument("--name", default=None)
    query.add_argument("--brief", action="store_true", help="Only name, next run time and status")
    query.add_argument("--format", choices=["table", "csv", "json"], default="table")

    for cmd, text in (
        ("run", "Run a task immediately"),
        ("end", "Stop a running task"),
        ("enable", "Enable a task"),
        ("disable", "Disable a task"),
    ):
        sp = sub.add_parser(cmd, help=text)
        sp.add_argument("--name", required=True)

    dele = sub.add_parser("delete", help="Delete an existing task")
    dele.add_argument("--name", required=True)
    dele.add_argument("--confirm", action="store_true", help="Ask before deleting")

    ui = sub.add_parser("ui", help="Open the Streamlit dashboard")
    ui.add_argument("--port", type=int, help="Port for the dashboard server")
    ui.add_argument("--headless", action="store_true", help="Do not open a browser")

    return p


def _create(args: argparse.Namespace, parser: argparse.ArgumentParser) -> bool:
    func = SCHEDULES[args.schedule]
    options: Dict[str, Any] = {
        "every": args.every,
        "days": split_list(args.days),
        "modifier": number_or_text(args.modifier),
        "day": number_or_text(args.day),
        "months": split_list(args.months),
        "idle_time": args.idle_time,
        "start_time": args.start_time,
        "end_time": args.end_time,
        "duration": args.duration,
        "start_date": args.start_date,
        "end_date": args.end_date,
        "run_level": args.run_level,
        "run_as_user": args.run_as_user,
        "exec_path": args.exec_path,
        "script": args.script,
    }
    params = inspect.signature(func).parameters
    kwargs = {}
    for key, value in options.items():
        if value is None:
            continue
        if key not in params:
            parser.error(f"--{key.replace('_', '-')} is not valid for --schedule {args.schedule}")
        kwargs[key] = value

    if args.no_script:
        kwargs["script"] = None
    for flag in ("kill_on_end", "delete_when_done", "force", "interactive_only"):
        if getattr(args, flag):
            if flag not in params:
                parser.error(f"--{flag.replace('_', '-')} is not valid for --schedule {args.schedule}")
            kwargs[flag] = True

    for key, param in params.items():
        if key in ("task_name", "task_run") or param.default is not inspect.Parameter.empty:
            continue
        if key not in kwargs:
            parser.error(f"--{key.replace('_', '-')} is required for --schedule {args.schedule}")

    return func(args.name, args.run, **kwargs)


def main(argv: List[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    configure_logging(args.log_level or load_settings().log_level)

    try:
        if args.cmd == "create":
            _create(args, p)
            print(f"Task '{args.name}' created")
            return 0

        if args.cmd == "change":
            core.change_task(
                args.name,
                task_run=args.run,
                start_time=args.start_time,
                end_time=args.end_time,
                duration=args.duration,
                interval=args.interval,
                start_date=args.start_date,
                end_date=args.end_date,
                run_level=args.run_level,
                run_as_user=args.run_as_user,
                run_as_password=args.run_as_password,
                enable=args.enable,
                kill_on_end=args.kill_on_end,
                delete_when_done=args.delete_when_done,
                interactive_only=args.interactive_only,
            )
            print(f"Task '{args.name}' modified")
            return 0

        if args.cmd == "query":
            df = core.query_tasks(args.name, verbose=not args.brief)
            if df.empty:
                print("No scheduled tasks found.")
            elif args.format == "csv":
                print(df.to_csv(index=False), end="")
            elif args.format == "json":
                print(df.to_json(orient="records", indent=2))
            else:
                print(df.to_string(index=False))
            return 0

        if args.cmd == "run":
            core.run_task(args.name)
            print(f"Task '{args.name}' started")
            return 0

        if args.cmd == "end":
            core.end_task(args.name)
            print(f"Task '{args.name}' stopped")
            return 0

        if args.cmd == "enable":
            core.enable_task(args.name)
            print(f"Task '{args.name}' enabled")
            return 0

        if args.cmd == "disable":
            core.disable_task(args.name)
            print(f"Task '{args.name}' disabled")
            return 0

        if args.cmd == "delete":
            if not core.delete_task(args.name, confirm=args.confirm):
                print("Deletion cancelled.")
                return 1
            print(f"Task '{args.name}' deleted")
            return 0

        if args.cmd == "ui":
            from .ui_launcher import main as ui_main

            return ui_main(port=args.port, headless=args.headless)

    except TaskError as e:
        print(str(e))
        return 2

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
