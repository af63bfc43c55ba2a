from __future__ import annotations

from typing import List, Optional, Sequence


class TaskError(Exception):
    pass


class ValidationError(TaskError, ValueError):
    pass


class InteractivityRequiredError(TaskError):
    pass


class CommandFailedError(TaskError):
    """schtasks exited with a non-zero status.

    ``output`` holds the captured stdout/stderr lines, unmodified.
    """

    def __init__(
        self,
        message: str,
        exit_code: int,
        output: Optional[Sequence[str]] = None,
    ) -> None:
        self.exit_code = exit_code
        self.output: List[str] = list(output or [])
        details = "\n".join(self.output).strip()
        text = f"{message}\nExit code: {exit_code}"
        if details:
            text += f"\nschtasks output:\n{details}"
        super().__init__(text)


class TaskWarning(UserWarning):
    pass


class ExtensionMismatchWarning(TaskWarning):
    pass


class IgnoredParameterWarning(TaskWarning):
    pass
