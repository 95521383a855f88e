# utils/logger.py - shared logger setup for the api scripts
import json
import logging


def get_logger(name: str = "dispatch-api"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def set_debug(enabled: bool, *names):
    level = logging.DEBUG if enabled else logging.INFO
    for name in names:
        get_logger(name).setLevel(level)


def log_step(logger, msg, data=None, dbg=False):
    """Log a walkthrough step; the api data is only dumped when debugging."""
    logger.info(msg)
    if dbg and data is not None:
        try:
            logger.info(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        except (TypeError, ValueError):
            logger.info("%r", data)
