import logging
import sys

from btcfolio.config.settings import settings

ROOT_LOGGER = "btcfolio"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = settings.LOG_LEVEL) -> logging.Logger:
    """
    Configure the package logger once.
    Module loggers from `get_logger` are its children and share its stdout
    handler, so records read e.g. "btcfolio.infrastructure.coingecko.client".
    """
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    root.addHandler(handler)
    return root


def get_logger(name: str) -> logging.Logger:
    """Child of the package logger; pass the module's `__name__`."""
    setup_logging()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)

