"""File-based logging setup, so stdio hosts never see log output."""
import logging
import os
import tempfile
import time
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DIR_NAME = "sfcc-mcp-logs"
LOG_FILE_NAME = "commerce-bridge.log"


def default_log_dir() -> str:
    return os.path.join(tempfile.gettempdir(), LOG_DIR_NAME)


def setup_logging(debug: bool = False, log_dir: Optional[str] = None) -> str:
    """Route the ``commerce_bridge`` loggers to a file. Returns the log file path."""
    log_dir = log_dir or default_log_dir()
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, LOG_FILE_NAME)

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger("commerce_bridge")
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.propagate = False

    root.debug(f"Logging to {log_path}")
    return log_path


def elapsed_ms(start_time: float) -> float:
    """Wall-clock milliseconds since ``start_time`` (a ``time.time()`` value)."""
    return (time.time() - start_time) * 1000


def log_timing(logger: logging.Logger, label: str, start_time: float) -> float:
    ms = elapsed_ms(start_time)
    logger.info(f"[TIMING] {label}: {ms:.0f}ms")
    return ms
