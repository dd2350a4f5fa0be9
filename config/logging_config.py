"""Logging setup: console plus rotating files under the log directory.

narrasim.log receives everything at the chosen level. generation_calls.log
keeps the full request/retry/cost trail of the generation client and
simulation.log the per-year workflow trail, both at DEBUG.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# logger name -> dedicated file
DEDICATED_LOGS = {
    "tools.agent_sdk_client": "generation_calls.log",
    "workflow": "simulation.log",
}

NOISY_LOGGERS = ("httpx", "httpcore", "anyio", "asyncio")


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        str(path), maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str | Path] = None,
    console_enabled: bool = True,
) -> None:
    """Install the root and dedicated handlers. Safe to call more than once.

    Args:
        level: Level for the console and the main log file.
        log_dir: Directory for log files. Defaults to ./data/logs.
        console_enabled: Whether to echo records to stderr.
    """
    log_dir = Path(log_dir or "./data/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)
    root.addHandler(_rotating_handler(log_dir / "narrasim.log", level, formatter))
    if console_enabled:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(formatter)
        root.addHandler(console)

    for name, filename in DEDICATED_LOGS.items():
        dedicated = logging.getLogger(name)
        dedicated.handlers.clear()
        dedicated.addHandler(_rotating_handler(log_dir / filename, logging.DEBUG, formatter))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging initialized: level=%s, dir=%s", level, log_dir)
