"""Shared fixtures for the pyschtasks test suite.

No test starts schtasks.exe: ``captured`` replaces ``core.execute`` and
records the argument vectors it would have run.
"""

from typing import List, Optional

import pytest

import pyschtasks.__main__ as cli
from pyschtasks import core
from pyschtasks.config import Settings


@pytest.fixture(autouse=True)
def settings(monkeypatch):
    """Fixed settings, so tests never depend on the environment."""
    fixed = Settings(
        schtasks="schtasks",
        interpreter=r"C:\Python311\python.exe",
        exec_path=r"C:\Projects",
        log_level="INFO",
    )
    monkeypatch.setattr(core, "load_settings", lambda: fixed)
    monkeypatch.setattr(cli, "load_settings", lambda: fixed)
    return fixed


class CapturedExecute:
    def __init__(self):
        self.calls: List[List[str]] = []
        self.output: List[str] = []

    def __call__(self, args, error_msg="schtasks command failed", settings=None, runner=None):
        self.calls.append(list(args))
        return core.CommandResult(exit_code=0, output=list(self.output))

    @property
    def args(self) -> List[str]:
        assert self.calls, "schtasks was not invoked"
        return self.calls[-1]

    def value_after(self, flag: str) -> Optional[str]:
        args = self.args
        if flag not in args:
            return None
        return args[args.index(flag) + 1]


@pytest.fixture()
def captured(monkeypatch):
    recorder = CapturedExecute()
    monkeypatch.setattr(core, "execute", recorder)
    return recorder


class CannedPrompter:
    """Returns fixed answers and remembers what it was asked."""

    def __init__(self, answer: bool = True, secret: str = "s3cret"):
        self.answer = answer
        self.secret = secret
        self.messages: List[str] = []

    def confirm(self, message: str) -> bool:
        self.messages.append(message)
        return self.answer

    def password(self, message: str) -> str:
        self.messages.append(message)
        return self.secret


@pytest.fixture()
def prompter():
    return CannedPrompter()
