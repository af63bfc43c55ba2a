from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

APP_PATH = Path(__file__).resolve().with_name("ui_app.py")


def streamlit_argv(port: Optional[int] = None, headless: bool = False) -> List[str]:
    """Command line handed to ``streamlit.web.cli`` for the dashboard."""
    argv = ["streamlit", "run", str(APP_PATH)]
    if port is not None:
        argv += ["--server.port", str(port)]
    if headless:
        argv += ["--server.headless", "true"]
    return argv + ["--"]


def main(port: Optional[int] = None, headless: bool = False) -> int:
    try:
        from streamlit.web import cli as stcli  # type: ignore
    except ImportError:  # pragma: no cover
        print("Streamlit is not installed. Install with: pip install 'pyschtasks[ui]'")
        return 1

    sys.argv = streamlit_argv(port, headless)
    logger.info("Starting dashboard: %s", " ".join(sys.argv))
    return stcli.main()  # type: ignore


if __name__ == "__main__":
    raise SystemExit(main())
