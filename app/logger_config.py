import logging
import os
from logging.handlers import RotatingFileHandler

# Logger name
LOG_NAME = os.getenv("APP_LOGGER_NAME", "church_ledger")

# Create logger
logger = logging.getLogger(LOG_NAME)
logger.setLevel(logging.DEBUG)

# Log format with ISO-like timestamp including milliseconds
LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(filename)s - %(funcName)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Formatter
formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

# Console handler
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.DEBUG)
console_handler.setFormatter(formatter)
logger.addHandler(console_handler)

# Optional file handler (disabled by default)
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "false").lower() in ("1", "true", "yes")
LOG_FILE_PATH = os.getenv("LOG_FILE_PATH", os.path.join("logs", "app.log"))

if LOG_TO_FILE:
    log_dir = os.path.dirname(LOG_FILE_PATH)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    file_handler = RotatingFileHandler(LOG_FILE_PATH, maxBytes=5 * 1024 * 1024, backupCount=3)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

# Avoid duplicate logs when imported in multiple modules
logger.propagate = False
