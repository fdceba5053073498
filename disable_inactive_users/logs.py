"""Console plus log-file output for a run."""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

PLAIN_FORMAT = "%(message)s"
HANDLER_PREFIX = "disable_inactive_users."


def log_file_name(apply: bool, now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y_%m_%d_%H_%M_%S")
    prefix = "DisableInactiveUsers_" if apply else "ListInactiveUsers_"
    return f"{prefix}{stamp}.log"


def setup_logging(
    *,
    apply: bool,
    log_dir: Optional[Union[str, Path]] = None,
    verbose: bool = False,
) -> Path:
    """Send every record to stdout and to a timestamped log file.

    Returns the log file path.
    """
    directory = Path(log_dir) if log_dir else Path(".")
    directory.mkdir(parents=True, exist_ok=True)
    logfile = directory / log_file_name(apply)

    formatter = logging.Formatter(PLAIN_FORMAT)
    console = logging.StreamHandler(sys.stdout)
    console.set_name(HANDLER_PREFIX + "console")
    console.setFormatter(formatter)
    file_handler = logging.FileHandler(logfile, mode="a", encoding="utf-8")
    file_handler.set_name(HANDLER_PREFIX + "file")
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if (handler.get_name() or "").startswith(HANDLER_PREFIX):
            root.removeHandler(handler)
            handler.close()
    root.addHandler(console)
    root.addHandler(file_handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    # keep connection chatter out of the report
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Log file is: '%s'", logfile)
    return logfile


__all__ = ["log_file_name", "setup_logging"]
