"""Interactive confirmation and password entry.

Operations that may need the user (``delete_task(confirm=True)`` and
``change_task`` with a new run-as user) take a ``prompter``. Headless
callers pass :class:`NonInteractivePrompter` or their own implementation.
"""

from __future__ import annotations

import getpass
import sys
from typing import Protocol

from .errors import InteractivityRequiredError


YES_ANSWERS = ("y", "yes")


class Prompter(Protocol):
    def confirm(self, message: str) -> bool: ...

    def password(self, message: str) -> str: ...


class TerminalPrompter:
    def _require_tty(self, what: str) -> None:
        if sys.stdin is None or not sys.stdin.isatty():
            raise InteractivityRequiredError(
                f"{what} required but session is not interactive. "
                "Run this command from an interactive terminal."
            )

    def confirm(self, message: str) -> bool:
        self._require_tty("Confirmation")
        return input(message).strip().lower() in YES_ANSWERS

    def password(self, message: str) -> str:
        self._require_tty("Password")
        return getpass.getpass(message)


class NonInteractivePrompter:
    def confirm(self, message: str) -> bool:
        raise InteractivityRequiredError(
            f"Confirmation required but no interactive session is available: {message}"
        )

    def password(self, message: str) -> str:
        raise InteractivityRequiredError(
            f"Password required but no interactive session is available: {message}"
        )
