from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

EXCHANGE_LOGGER = "fundspread.exchanges"
LOG_FILE = "fundspread.log"


def _level_from_env(name: str, default: int) -> int:
    level = logging.getLevelName(os.environ.get(name, "").upper())
    return level if isinstance(level, int) else default


def configure_logging(log_dir: Path | None = None) -> None:
    """Configure console and rotating file logging for fundspread.

    ``FUNDSPREAD_LOG_LEVEL`` sets the root level (default INFO) and
    ``FUNDSPREAD_LOG_DIR`` replaces ``log_dir``. Every exchange client logs
    a line per poll, so the ``fundspread.exchanges`` loggers stay at WARNING
    unless the root level is DEBUG or ``FUNDSPREAD_EXCHANGE_LOG_LEVEL`` says
    otherwise.
    """
    level = _level_from_env("FUNDSPREAD_LOG_LEVEL", logging.INFO)
    default_exchange_level = level if level <= logging.DEBUG else max(level, logging.WARNING)
    exchange_level = _level_from_env("FUNDSPREAD_EXCHANGE_LOG_LEVEL", default_exchange_level)
    log_dir = os.environ.get("FUNDSPREAD_LOG_DIR") or log_dir

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    # stderr, so CLI --json output on stdout stays parseable
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / LOG_FILE,
            maxBytes=10*1024*1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger(EXCHANGE_LOGGER).setLevel(exchange_level)
    logging.getLogger("aiohttp").setLevel(max(level, logging.WARNING))
