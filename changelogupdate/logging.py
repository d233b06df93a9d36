"""Module to handle logging to the console and a rotating log file."""

import contextlib
import logging
import logging.handlers

from pathlib import Path
from typing import Optional


NOTICE = 25

LOG_BACKUP_COUNT = 10


class StatusFilter(logging.Filter):
    """A logging filter that prefixes console output by severity."""

    # pylint: disable=too-few-public-methods

    prefixes = {
        logging.DEBUG: "debug: ",
        logging.INFO: "",
        NOTICE: "",
        logging.WARNING: "WARNING: ",
        logging.ERROR: "ERROR: ",
        logging.CRITICAL: "FATAL: ",
    }

    def filter(self, record):
        record.statusprefix = self.prefixes.get(record.levelno, "")
        return True


def log_file_handler(log_file: Path) -> logging.handlers.RotatingFileHandler:
    """Return a handler for a fresh log file, rotating out any prior runs."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_file, backupCount=LOG_BACKUP_COUNT, encoding="utf-8", delay=True
    )

    # One log file per run
    if log_file.exists():
        file_handler.doRollover()

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    return file_handler


def setup_logging(log_file: Optional[Path] = None):
    """Set up logging to the console and (optionally) a rotating log file."""
    # Does this need to be re-entrant like this?
    if logging.getLevelName("NOTICE") == NOTICE:
        return

    logging.addLevelName(NOTICE, "NOTICE")

    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter("%(statusprefix)s%(message)s"))
    handler.addFilter(StatusFilter())

    # Set these handlers on the root logger of this module
    root_logger = logging.getLogger(__name__.rpartition(".")[0])
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    if log_file is not None:
        root_logger.addHandler(log_file_handler(log_file))
        root_logger.debug("Logging to %s", log_file)


@contextlib.contextmanager
def log_step(logger: logging.Logger, description: str):
    """Log a pass/fail indicator around a single step."""
    logger.info("%s...", description)
    try:
        yield
    except Exception:
        logger.error("%s: FAILED", description)
        raise

    logger.log(NOTICE, "%s: OK", description)


class LoggingMixin:
    """A mixin class for logging."""

    # pylint: disable=too-few-public-methods

    @property
    def logger(self) -> logging.Logger:
        """Create and return a logger for instance or class."""
        if not hasattr(self, "_logger") or not self._logger:
            self._logger = logging.getLogger(
                f"{self.__class__.__module__}.{self.__class__.__name__}"
            )
        return self._logger
