"""
Logging utilities for the rfcast engine.

Provides unified structured logging:
- pretty console output via Rich
- structured (JSON) file output when a log file is requested (`rfcast --log-file`)
"""

import logging
import json
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_ROOT = "rfcast"


class JSONFormatter(logging.Formatter):
    """
    Formatter that serializes log records to JSON.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level":     record.levelname,
            "logger":    record.name,
            "message":   record.getMessage(),
        }
        return json.dumps(log_record)


def get_logger(name: str, level: int | str = logging.INFO) -> logging.Logger:
    """
    Return a configured logger for the given name.

    Attaches a RichHandler for console output the first time a logger is
    requested; later calls return the same logger untouched.

    Parameters
    ----------
    name
        Logger name (typically __name__).
    level
        Log level (int or string), defaults to INFO.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(level)
        console_handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True)
        console_handler.setLevel(logging.NOTSET)
        logger.addHandler(console_handler)

    return logger


def _rfcast_loggers() -> list[logging.Logger]:
    # placeholders for parent packages are skipped so records are not written twice
    return [
        logger
        for name, logger in list(logging.root.manager.loggerDict.items())
        if (name == _ROOT or name.startswith(_ROOT + ".")) and isinstance(logger, logging.Logger)
    ]


def set_level(level: int | str) -> None:
    """
    Change the level of every rfcast logger created so far.
    """
    for logger in _rfcast_loggers():
        logger.setLevel(level)


def configure_file_logging(log_path: str | Path, level: int | str = logging.DEBUG) -> Path:
    """
    Mirror every rfcast logger into a JSON-lines file.

    Parameters
    ----------
    log_path
        Destination file; appended to if it exists.
    level
        Minimum level written to the file.

    Returns
    -------
    Path
        The resolved log file path.
    """
    path = Path(log_path).resolve()
    file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(JSONFormatter())
    for logger in _rfcast_loggers():
        logger.addHandler(file_handler)
    return path
