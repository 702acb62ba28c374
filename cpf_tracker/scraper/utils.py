from __future__ import annotations

import logging
import sys
from pathlib import Path

from . import config

LOGGER = logging.getLogger("cpf_tracker")
_LOGGER_INITIALISED = False
_CURRENT_LOG_FILE: Path | None = None


def _configure_logger(log_path: Path) -> None:
    """Configure the shared application logger to write to ``log_path``.

    When the log directory cannot be created the logger still writes to stdout.
    """

    global _LOGGER_INITIALISED, _CURRENT_LOG_FILE

    for handler in list(LOGGER.handlers):
        LOGGER.removeHandler(handler)
        try:
            handler.close()
        except Exception:  # noqa: BLE001
            continue

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    LOGGER.addHandler(stream_handler)

    file_error: OSError | None = None
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as exc:
        file_error = exc
        _CURRENT_LOG_FILE = None
    else:
        file_handler.setFormatter(formatter)
        LOGGER.addHandler(file_handler)
        _CURRENT_LOG_FILE = log_path

    LOGGER.setLevel(logging.INFO)
    LOGGER.propagate = False
    _LOGGER_INITIALISED = True

    if file_error is not None:
        LOGGER.warning("File logging disabled for %s: %s", log_path, file_error)


def _ensure_logger() -> None:
    """Initialise the logger lazily using the default log file."""

    if _LOGGER_INITIALISED:
        return
    _configure_logger(config.LOG_FILE)


def get_current_log_path() -> Path | None:
    """Return the path to the log file currently receiving log lines."""

    _ensure_logger()
    return _CURRENT_LOG_FILE


def log_line(message: str, level: int = logging.INFO) -> None:
    """Write a timestamped log line to stdout and the active log file."""

    _ensure_logger()
    LOGGER.log(level, message)


def mask_cpf(cpf: str) -> str:
    """Return ``cpf`` with everything but the last two characters hidden."""

    value = (cpf or "").strip()
    if len(value) <= 2:
        return "*" * len(value)
    return "*" * (len(value) - 2) + value[-2:]
