from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv


PROJECT_ROOT_MARKERS: Sequence[str] = ("pyproject.toml", "setup.py", "setup.cfg", ".git")


def find_project_root(start: Optional[Path] = None) -> Path:
    """Walk up from ``start`` (default: cwd) to the first directory holding a
    project marker. Falls back to ``start`` itself."""
    here = Path(start or os.getcwd()).resolve()
    for candidate in (here, *here.parents):
        if any((candidate / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return candidate
    return here


@dataclass
class Settings:
    schtasks: str = "schtasks"
    interpreter: str = sys.executable
    exec_path: str = ""
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Read settings from the environment (and a ``.env`` file, if any).

    Called per operation, so changes to the environment are picked up
    without restarting.
    """
    load_dotenv()
    return Settings(
        schtasks=os.getenv("PYSCHTASKS_EXECUTABLE", "schtasks"),
        interpreter=os.getenv("PYSCHTASKS_INTERPRETER") or sys.executable,
        exec_path=os.getenv("PYSCHTASKS_EXEC_PATH") or str(find_project_root()),
        log_level=os.getenv("PYSCHTASKS_LOG_LEVEL", "INFO").upper(),
    )
