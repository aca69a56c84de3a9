# src/config/logging_config.py

"""Per-run logging for radar_precos, shaped by the run mode.

Every launch writes a timestamped file inside ``logs/`` named after the
mode it runs in (``logs/tui_20261019_153045.log`` or
``logs/cli_20261019_153045.log``), and all ``radar_precos.*`` loggers
route into it.

Console output differs per mode: the headless CLI mirrors warnings to
stderr (stdout carries the JSON/table result), while the TUI logs to
the file only because stray stderr lines corrupt the Textual screen.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | "
    "%(message)s"
)
_CONSOLE_FORMAT = "radar_precos %(levelname)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

PROJECT_LOGGER = "radar_precos"
MODE_TUI = "tui"
MODE_CLI = "cli"
RUN_MODES = (MODE_TUI, MODE_CLI)

# Third-party loggers that are chatty at DEBUG/INFO
_QUIET_LOGGERS = ("asyncio", "curl_cffi")


def setup_logging(mode: str = MODE_TUI) -> Path:
    """Attach the run's file handler (and, for the CLI, a stderr one).

    Args:
        mode: ``"tui"`` or ``"cli"``; picks the file name prefix and
            whether warnings are echoed to stderr.

    Returns:
        The path of the log file for this run.

    Raises:
        ValueError: for an unknown *mode*.
    """
    if mode not in RUN_MODES:
        msg = f"Unknown run mode {mode!r}; expected one of {RUN_MODES}"
        raise ValueError(msg)

    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"{mode}_{datetime.now():%Y%m%d_%H%M%S}.log"

    project_logger = logging.getLogger(PROJECT_LOGGER)
    project_logger.setLevel(logging.DEBUG)

    # Already configured in this process (tests, re-entry)
    if project_logger.handlers:
        return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )
    project_logger.addHandler(file_handler)

    if mode == MODE_CLI:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        project_logger.addHandler(console_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    project_logger.info("%s run started, log file: %s", mode.upper(), log_file)
    return log_file
