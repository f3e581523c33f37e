"""
Logging configuration driven by the ``logging`` config section.
"""

import logging
import logging.handlers

from .config import ConfigManager

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(config: ConfigManager, verbose: bool = False) -> None:
    """Configure the root logger, adding a rotating file handler when configured."""
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, str(config.get("logging.level", "INFO")).upper(), logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT)

    log_file = config.get("logging.file")
    if log_file:
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=int(config.get("logging.max_size_mb", 100)) * 1024 * 1024,
            backupCount=int(config.get("logging.backup_count", 5)),
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)

    # The SDK's HTTP policy logs every request at INFO.
    if not verbose:
        logging.getLogger("azure").setLevel(logging.WARNING)
