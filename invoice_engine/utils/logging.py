"""
Logging for the invoice engine.

Every module logger hangs from the ``invoice_engine`` logger. The stdout
handler is attached there once, so module loggers never duplicate output
and a single call changes the level of the whole engine.
"""
import logging
import sys
from typing import Optional, Union

ENGINE_LOGGER = "invoice_engine"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _engine_logger() -> logging.Logger:
    logger = logging.getLogger(ENGINE_LOGGER)
    if not logger.handlers:
        from invoice_engine.core.config import get_settings

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(get_settings().LOG_LEVEL)
    return logger


def get_logger(name: str, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Get a logger for an engine module.

    Args:
        name: Logger name, typically __name__
        level: Module-specific level; by default it inherits LOG_LEVEL

    Returns:
        Logger under the ``invoice_engine`` hierarchy
    """
    _engine_logger()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def configure_logging(level: Optional[Union[int, str]] = None, format_string: Optional[str] = None) -> logging.Logger:
    """
    Change level and/or format of every engine logger.

    Args:
        level: New level for the ``invoice_engine`` logger
        format_string: Custom format string for its handler
    """
    engine = _engine_logger()
    if level is not None:
        engine.setLevel(level)
    if format_string:
        for handler in engine.handlers:
            handler.setFormatter(logging.Formatter(format_string))
    return engine
