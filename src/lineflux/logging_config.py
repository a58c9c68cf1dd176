import logging as root_logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

SDK_LOGGER_NAME = "lineflux"


def setup_sdk_logging(
    level="INFO",
    pretty: bool = False,
    console: Optional[Console] = None,
    propagate: bool = False,
):
    """
    Configures the logging output of the lineflux SDK.

    The SDK is silent by default (a `NullHandler` is attached to the
    'lineflux' namespace at import). Calling this function replaces any
    handler previously attached to that namespace with either a Rich handler
    ('pretty' mode) or a plain stderr stream handler, so repeated calls never
    duplicate log lines.

    Args:
        level (str): The logging threshold (e.g., "DEBUG", "INFO", "WARNING").
            Defaults to "INFO".
        pretty (bool): If True, enables colored terminal output with
            timestamps and formatted tracebacks via `rich`.
        console (Optional[rich.console.Console]): The Rich Console to write
            to in 'pretty' mode. Defaults to a new Console(stderr=True).
        propagate (bool): Whether records bubble up to the root logger.
            Disabled by default to avoid duplicate output in test runners.
    """
    logger = root_logging.getLogger(SDK_LOGGER_NAME)

    # Clear existing handlers to prevent duplicates
    if logger.hasHandlers():
        logger.handlers.clear()

    if pretty:
        console = console or Console(stderr=True)

        handler = RichHandler(
            level=level,
            console=console,
            show_time=True,
            show_path=True,
            markup=True,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        formatter = root_logging.Formatter(
            fmt="[dim white]%(name)s[/dim white]: %(message)s", datefmt="[%X]"
        )
        handler.setFormatter(formatter)
        init_message = f"SDK Logging initialized at level: [bold]{level}[/bold]"
        extra = {"markup": True}
    else:
        handler = root_logging.StreamHandler(sys.stderr)
        # Standard format: Time [Level] Name: Message
        formatter = root_logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        init_message = f"SDK Logging initialized at level: {level}"
        extra = {}

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate

    logger.info(init_message, extra=extra)


def get_logger(name: Optional[str] = None):
    """
    Retrieves a logger instance within the lineflux namespace.

    Args:
        name (Optional[str]): The name of the logger, typically `__name__`
            (e.g., 'lineflux.comm.client'). If None, the top-level SDK logger
            is returned.

    Returns:
        logging.Logger: The requested logger.
    """
    if name is not None:
        return root_logging.getLogger(name=name)
    else:
        return root_logging.getLogger(SDK_LOGGER_NAME)


def _install_null_handler():
    logger = root_logging.getLogger(SDK_LOGGER_NAME)
    if not any(isinstance(h, root_logging.NullHandler) for h in logger.handlers):
        logger.addHandler(root_logging.NullHandler())
