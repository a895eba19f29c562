"""
Logging setup.

Console output goes through Rich; an optional plain-text file receives the
same records. Modules log through get_logger(__name__) so everything lands
under the "media_transcoder" namespace configured here.
"""

import inspect
import logging
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar, cast

from rich.console import Console
from rich.logging import RichHandler

F = TypeVar("F", bound=Callable[..., Any])

ROOT_LOGGER_NAME = "media_transcoder"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: str = "INFO",
    log_file: Optional[Path] = None,
    verbose: bool = False,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Configure a logger for console and optional file output.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        name: Logger to configure
        level: Level name; unknown names mean INFO
        log_file: Also write records here (parent directories are created)
        verbose: Force DEBUG and show source locations
        console: Rich console to render to (stderr if None)

    Returns:
        The configured logger
    """
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.propagate = False

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        level=log_level,
        markup=True,
        rich_tracebacks=True,
        show_path=verbose,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Logger for a module, normally called with __name__."""
    return logging.getLogger(name)


def log_performance(logger: Optional[logging.Logger] = None) -> Callable[[F], F]:
    """
    Log how long each call of the decorated function takes.

    Works on plain and async functions. Failures are logged with their
    elapsed time and re-raised.
    """
    log = logger or get_logger()

    def report(name: str, start: float, error: Optional[Exception] = None) -> None:
        elapsed = time.perf_counter() - start
        if error is None:
            log.info(f"[cyan]{name}[/cyan] completed in {elapsed:.2f}s")
        else:
            log.error(f"[red]{name}[/red] failed after {elapsed:.2f}s: {error}")

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    report(func.__name__, start, e)
                    raise
                report(func.__name__, start)
                return result

            return cast(F, async_wrapper)

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                report(func.__name__, start, e)
                raise
            report(func.__name__, start)
            return result

        return cast(F, sync_wrapper)

    return decorator
