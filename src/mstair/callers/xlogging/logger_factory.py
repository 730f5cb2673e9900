# File: src/mstair/callers/xlogging/logger_factory.py
"""
Logger factory for CoreLogger instances.

Loggers are created through logging.getLogger() so that they take part in the
normal logging hierarchy (parents, propagation, caplog).
"""

import logging

from mstair.callers.xlogging.core_logger import CoreLogger


def create_logger(name: str, *, level: int | str | None = None) -> CoreLogger:
    """
    Return the CoreLogger registered under `name`, creating it if needed.

    A plain logging.Logger already registered under the same name is replaced.

    :param name: Logger name, normally the caller's `__name__`.
    :param level: Optional level to set on the logger.
    :raises TypeError: If logging hands back something other than a CoreLogger.
    """
    existing = logging.Logger.manager.loggerDict.get(name)
    if isinstance(existing, logging.Logger) and not isinstance(existing, CoreLogger):
        del logging.Logger.manager.loggerDict[name]

    logging_class = logging.getLoggerClass()
    logging.setLoggerClass(CoreLogger)
    try:
        logger = logging.getLogger(name)
    finally:
        logging.setLoggerClass(logging_class)
    if not isinstance(logger, CoreLogger):
        raise TypeError(f"Failed to create CoreLogger: {logger!r}")

    if level is not None:
        logger.setLevel(level)
    return logger


# End of file: src/mstair/callers/xlogging/logger_factory.py
