"""src/progstart/logging.py

Log setup for programs using progstart. Everything progstart logs (cleanup
warnings, failed cleanup functions, the run subcommand's errors) goes through
`logger()`, and every line is prefixed with the program's name so that output
from a backgrounded run is still attributable once it lands in a shared log.
"""
import logging
import logging.handlers
import inspect

class LoggingNotInitializedException(Exception):
    ...

_logging_initialized = False

def _level_number(level) -> int:
    if isinstance(level, str):
        number = logging.getLevelName(level.upper())
        if not isinstance(number, int):
            raise ValueError(f"unknown log level: {level}")
        return number
    return level

def _configured(handler, formatter, level):
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler

def init_logging(stderr=True, logfile=None, syslog=False, syslog_address="/dev/log", level=logging.INFO, name="progstart"):
    """Send log records for program `name` to stderr, `logfile`, and/or
    syslog at `syslog_address`. With no destination at all, stderr is used.

    `level` is a logging level number or name ('DEBUG', 'info', ...). Calling
    this again replaces the previous setup; the handlers are installed on the
    root logger.
    """
    level = _level_number(level)
    if not (stderr or logfile or syslog):
        stderr = True
    formatter = logging.Formatter(f"{name} - %(asctime)s - %(levelname)s - %(message)s", "%Y-%m-%d %H:%M:%S")
    handlers = []
    if syslog:
        handlers.append(_configured(logging.handlers.SysLogHandler(address=syslog_address), formatter, level))
    if stderr:
        handlers.append(_configured(logging.StreamHandler(), formatter, level))
    if logfile:
        handlers.append(_configured(logging.FileHandler(logfile, encoding="utf-8"), formatter, level))
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    global _logging_initialized
    _logging_initialized = True

def logging_initialized() -> bool:
    """True once init_logging() has run (and disable_logging() has not since)."""
    return _logging_initialized

def disable_logging():
    """Close and drop every root handler and silence the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.CRITICAL + 1)
    global _logging_initialized
    _logging_initialized = False

def logger(name=None) -> logging.Logger:
    """Return the logger called `name`, by default named after the calling
    module. Raises LoggingNotInitializedException before init_logging().
    """
    if not _logging_initialized:
        raise LoggingNotInitializedException("trying to get logger but logging has not been initialized")
    if name is None:
        name = inspect.getmodule(inspect.stack()[1][0]).__name__
    return logging.getLogger(name)
