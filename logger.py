# logger.py
import os
import logging
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "pos_system"

# Default logging configuration
DEFAULT_CONFIG = {
    "level": "INFO",
    "file": "logs/pos.log",
    "max_size": 1048576,  # 1MB
    "backup_count": 3
}

# Mapping of string log levels to logging constants
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL
}


def setup_logger(config=None):
    """
    Configure the application logger from the "logging" section of config.
    Calling it again replaces the previous handlers.
    """
    if config is None:
        config = {}

    log_config = {**DEFAULT_CONFIG, **config.get("logging", {})}

    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    level = LOG_LEVELS.get(str(log_config["level"]).upper(), logging.INFO)
    logger.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_config["file"]:
        try:
            log_dir = os.path.dirname(log_config["file"])
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_config["file"],
                maxBytes=log_config["max_size"],
                backupCount=log_config["backup_count"]
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.error(f"Failed to set up file logging: {e}")

    return logger
