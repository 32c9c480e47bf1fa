"""
src/utils/logger.py
Rich console + rotating file logging for the checker.

All loggers hang off the "lotofacil" root: get_logger("sync") returns
"lotofacil.sync", which propagates to the root's handlers, so every
area writes to one console and one logs/lotofacil.log.
"""
import logging
import os
from logging.handlers import RotatingFileHandler

from rich.logging import RichHandler

ROOT_LOGGER = "lotofacil"
LOG_DIR = os.getenv("LOG_DIR", "logs")

_loggers: dict[str, logging.Logger] = {}


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.propagate = False

    if not root.handlers:
        console = RichHandler(rich_tracebacks=True, show_path=False)
        console.setLevel(logging.DEBUG)
        root.addHandler(console)

        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(LOG_DIR, f"{ROOT_LOGGER}.log"),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        root.addHandler(file_handler)
    return root


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Logger for one area (sync, archive, crawler.caixa...), cached by name."""
    if name in _loggers:
        return _loggers[name]

    root = _configure_root()
    logger = root if name == ROOT_LOGGER else root.getChild(name)
    _loggers[name] = logger
    return logger
