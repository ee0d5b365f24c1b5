"""
Logging

Every module logs through a child of the "voicedialer" logger. Handlers
live on that package logger only, so the log file is opened once however
many modules ask for a logger. The first call that carries a config sets
it up:

    logging.level     package level (default INFO)
    logging.levels    per-module overrides, e.g. {voicedialer.grammar: DEBUG}
    logging.file      optional log file (~ expanded)
    logging.console   log to stdout (default true)

VOICEDIALER_LOG_FILE_ONLY=1 keeps stdout free for batch reports and sends
everything to logs/batch.log instead.
"""

import logging
import os
import sys
from pathlib import Path

PACKAGE = "voicedialer"
FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
BATCH_LOG = Path(__file__).resolve().parent.parent / "logs" / "batch.log"

_configured = False
_levels = {}


def _level(value) -> int:
    return getattr(logging, str(value).upper(), logging.INFO)


def _qualified(name: str) -> str:
    if name == PACKAGE or name.startswith(PACKAGE + "."):
        return name
    return f"{PACKAGE}.{name}"


def _handlers(config) -> list:
    console = config.get("logging.console", True) if config else True
    log_file = config.get("logging.file") if config else None

    if os.environ.get("VOICEDIALER_LOG_FILE_ONLY"):
        console = False
        log_file = BATCH_LOG

    handlers = []
    if console:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def configure(config=None, force: bool = False) -> logging.Logger:
    """
    Attach handlers to the package logger.

    Args:
        config: Configuration object (optional; defaults log INFO to stdout)
        force: Replace an existing setup instead of keeping it

    Returns:
        The package logger
    """
    global _configured, _levels

    root = logging.getLogger(PACKAGE)
    if _configured and not force:
        return root

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(FORMAT, datefmt=DATE_FORMAT)
    for handler in _handlers(config):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.setLevel(_level(config.get("logging.level", "INFO") if config else "INFO"))
    root.propagate = False

    levels = config.get("logging.levels", {}) if config else {}
    _levels = {_qualified(str(k)): _level(v) for k, v in dict(levels).items()}
    for name in logging.Logger.manager.loggerDict:
        if name.startswith(PACKAGE + "."):
            logging.getLogger(name).setLevel(_levels.get(name, logging.NOTSET))

    _configured = True
    return root


def get_logger(name: str, config=None) -> logging.Logger:
    """
    Logger for a module, under the package logger.

    Args:
        name: Logger name (usually __name__)
        config: Configuration object; the first one seen configures output

    Returns:
        Configured logger instance
    """
    if config is not None:
        configure(config)

    qualified = _qualified(name)
    logger = logging.getLogger(qualified)
    if qualified != PACKAGE:
        logger.setLevel(_levels.get(qualified, logging.NOTSET))
    return logger
