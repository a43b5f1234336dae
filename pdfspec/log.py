"""Logging setup shared by the library modules."""
import logging

_DEFAULT_LEVEL = logging.INFO


def get_logger(name=None):
    """Return a module logger, configuring the root logger once if nobody has."""
    logger = logging.getLogger(name)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=_DEFAULT_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    return logger
