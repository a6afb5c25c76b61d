import logging

from rich.logging import RichHandler

from storefront import config

ROOT_LOGGER = "storefront"


def _configure_root() -> logging.Logger:
    """Install the single RichHandler on the package logger, once."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(logging.Formatter(config.LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(config.LOG_LEVEL)
        root.propagate = False
    return root


def get_logger(name=None) -> logging.Logger:
    """
    Logger under the `storefront` hierarchy. Module loggers share the
    package handler, so level and format are set in one place (config).
    """
    root = _configure_root()
    if not name or name == ROOT_LOGGER:
        return root
    if not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
