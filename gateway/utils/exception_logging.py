"""
Exception logging for upstream failures.

httpx and anyio may surface transport errors wrapped in exception groups; these
helpers log and format every sub-exception and never raise themselves, so a
broken exception object cannot turn a 500 into a crashed request handler.
"""

import logging
from typing import List


def _safe_str(obj) -> str:
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def _sub_exceptions(exception) -> List[BaseException]:
    try:
        return list(getattr(exception, "exceptions", None) or [])
    except Exception:
        return []


def format_exception_message(exception: BaseException) -> str:
    """Render an exception, including sub-exceptions of exception groups."""
    if exception is None:
        return "None"

    message = _safe_str(exception)
    subs = _sub_exceptions(exception)
    if not subs:
        return message

    details = "; ".join(f"{type(sub).__name__}: {_safe_str(sub)}" for sub in subs)
    return f"{message} [{details}]"


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: BaseException,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with its traceback, one record per sub-exception for
    exception groups.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Proxy]", "[Custom-Proxy]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        subs = _sub_exceptions(exception)
        if not subs:
            logger.log(
                level,
                f"{prefix} Exception: {_safe_str(exception)}",
                exc_info=exception if exception is not None else False,
            )
            return

        logger.log(
            level,
            f"{prefix} Exception with {len(subs)} sub-exceptions: {_safe_str(exception)}",
        )
        for i, sub in enumerate(subs, start=1):
            logger.log(
                level,
                f"{prefix} Sub-exception {i}: {type(sub).__name__}: {_safe_str(sub)}",
                exc_info=sub,
            )
    except Exception:
        try:
            logger.log(logging.ERROR, f"{prefix} Exception logging failed")
        except Exception:
            pass
