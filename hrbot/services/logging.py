"""Root logger setup for the bot process and the CLI tools.

Records go to stdout and to a log file. LOG_LEVEL picks the level (INFO when
unset or unknown); HTTP client and scheduler chatter stays at WARNING or above.
"""

import logging
import os
import sys
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# One record per Bot API request / job tick otherwise
_NOISY_LOGGERS = ("httpx", "apscheduler")


def get_log_level() -> int:
    """Level named by LOG_LEVEL (case-insensitive), INFO by default."""
    name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _handlers(log_path: Path, level: int) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(log_path, encoding="utf-8"),
    ]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_server_logging(log_file: str = "logs/server.log") -> None:
    """Replace root handlers with stdout + file output.

    Args:
        log_file: Log file path; its directory is created if missing
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    level = get_log_level()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    for handler in _handlers(log_path, level):
        root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


__all__ = ["get_log_level", "setup_server_logging"]
