# ==================================================
# ========  MODULE: decorators & timing utils  =====
# ==================================================
from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from utils.logger import get_logger, get_error_logger

# Public API
__all__ = ["timed_wrapper"]

F = TypeVar("F", bound=Callable[..., Any])


# ====[ Shared timing and error handler core ]====
def timed_wrapper(
    func: F,
    label: str,
    level: int = logging.DEBUG,
    log: bool = True,
    log_errors: bool = True,
    raise_exception: bool = True,
    info_logger: Optional[logging.Logger] = None,
    error_logger: Optional[logging.Logger] = None,
) -> F:
    """
    Wrap a function with timing and exception logging.

    Parameters
    ----------
    func : Callable
        Function to wrap.
    label : str
        Label used in log records.
    level : int, default logging.DEBUG
        Level of the timing record.
    log : bool, default True
        If True, log the elapsed time through `info_logger`.
    log_errors : bool, default True
        If True, log exceptions (with traceback) through `error_logger`.
    raise_exception : bool, default True
        Re-raise after logging. When False the wrapper returns None on error.
    info_logger, error_logger : logging.Logger, optional
        Loggers to use; default to the converter's main and error loggers.

    Returns
    -------
    Callable
        The wrapped function.
    """
    info_logger = info_logger or get_logger()
    error_logger = error_logger or get_error_logger()

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            if log_errors:
                error_logger.error(f"Exception in '{label}': {e}", exc_info=True)
            if raise_exception:
                raise
            return None

        if log:
            elapsed = time.perf_counter() - start
            info_logger.log(level, f"Execution time for '{label}': {elapsed:.6f} seconds")
        return result

    return wrapper  # type: ignore[return-value]
