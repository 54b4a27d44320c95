# ==================================================
# ================ Logger Utilities ================
# ==================================================
from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

# Public API
__all__ = ["LOG_FORMAT", "make_file_handler", "get_logger", "get_error_logger", "get_debug_logger"]

LOG_FORMAT: str = "%(asctime)s - %(levelname)s - %(message)s"


def _sync_handler_levels(logger: logging.Logger, level: int) -> None:
    """Apply `level` to a logger and every handler already attached to it."""
    logger.setLevel(level)
    for h in logger.handlers:
        h.setLevel(level)


# ====[ Shared rotating file handler generator ]====
def make_file_handler(
    log_path: Union[str, Path],
    level: int,
    when: str = "midnight",
    backupCount: int = 7,
    encoding: str = "utf-8",
) -> TimedRotatingFileHandler:
    """
    Create a TimedRotatingFileHandler with the converter's log format.

    Parameters
    ----------
    log_path : str | Path
        Output log file path. Parent folders are created if missing.
    level : int
        Logging level (e.g., logging.INFO).
    when : str, default 'midnight'
        Rotation interval basis per logging.handlers.TimedRotatingFileHandler.
    backupCount : int, default 7
        Number of rotated files to keep.
    encoding : str, default 'utf-8'
        File encoding.

    Returns
    -------
    TimedRotatingFileHandler
    """
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = TimedRotatingFileHandler(
        filename=str(path),
        when=when,
        backupCount=backupCount,
        encoding=encoding,
        delay=True,  # file is opened on first emit
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _dated_log_path(log_dir: Union[str, Path], stem: str) -> Path:
    today = datetime.now().strftime("%Y-%m-%d")
    return Path(log_dir) / f"{stem}_{today}.log"


# ==================================================
# ================ Logger Factory ==================
# ==================================================

# ====[ Main logger: console (+ file) ]====
def get_logger(
    name: str = "tensor_converter",
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.INFO,
    when: str = "midnight",
    backupCount: int = 7,
) -> logging.Logger:
    """
    Create or fetch the converter logger.

    A console handler is always attached; a daily rotating file handler is
    added when `log_dir` is given. Repeated calls with the same `name` do not
    add handlers, they only re-sync the level. Propagation is disabled so
    messages are not duplicated by the root logger.

    Parameters
    ----------
    name : str, default "tensor_converter"
        Logger name.
    log_dir : str | Path, optional
        Folder for the rotating log file. No file output when None.
    level : int, default logging.INFO
        Level applied to the logger and its handlers.
    when : str, default "midnight"
        Rotation interval for the file handler.
    backupCount : int, default 7
        Number of rotated files to retain.

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)
    logger.propagate = False

    if not logger.handlers:
        logger.setLevel(level)
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(console_handler)

        if log_dir is not None:
            logger.addHandler(
                make_file_handler(_dated_log_path(log_dir, name), level, when=when, backupCount=backupCount)
            )
    else:
        _sync_handler_levels(logger, level)

    return logger


# ====[ Error logger: file when possible, else stderr ]====
def get_error_logger(
    name: str = "tensor_converter.errors",
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.ERROR,
    backupCount: int = 30,
) -> logging.Logger:
    """
    Create or fetch the dedicated error logger.

    Errors go to a rotating `errors_<date>.log` file under `log_dir`; without a
    folder they are written to stderr.

    Parameters
    ----------
    name : str, default "tensor_converter.errors"
        Logger name.
    log_dir : str | Path, optional
        Folder for the error log file.
    level : int, default logging.ERROR
        Minimum level captured.
    backupCount : int, default 30
        Number of daily files to retain.

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)
    logger.propagate = False

    if not logger.handlers:
        logger.setLevel(level)
        if log_dir is not None:
            handler: logging.Handler = make_file_handler(
                _dated_log_path(log_dir, "errors"), level, backupCount=backupCount
            )
        else:
            handler = logging.StreamHandler()
            handler.setLevel(level)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    else:
        _sync_handler_levels(logger, level)

    return logger


# ====[ Debug logger: file only ]====
def get_debug_logger(
    name: str = "tensor_converter.debug",
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.DEBUG,
    backupCount: int = 7,
) -> logging.Logger:
    """
    Create or fetch the debug logger used for per-call traces.

    Records go to `debug_<date>.log` under `log_dir`. Without a folder the
    logger only carries a NullHandler, so debug traces cost nothing.
    """
    logger = logging.getLogger(name)
    logger.propagate = False

    if not logger.handlers:
        logger.setLevel(level)
        if log_dir is not None:
            logger.addHandler(
                make_file_handler(_dated_log_path(log_dir, "debug"), level, backupCount=backupCount)
            )
        else:
            logger.addHandler(logging.NullHandler())
    else:
        _sync_handler_levels(logger, level)

    return logger
