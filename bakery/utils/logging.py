# bakery/utils/logging.py
import logging
import sys

from bakery.utils.settings import LOG_LEVEL

logger = logging.getLogger("bakery")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)

# uvicorn/celery configure the root logger too, avoid printing twice
logger.propagate = False


def get_logger(name: str | None = None) -> logging.Logger:
    """Child of the `bakery` logger, e.g. get_logger(__name__)."""
    if not name:
        return logger
    if name == "bakery" or name.startswith("bakery."):
        return logging.getLogger(name)
    return logging.getLogger(f"bakery.{name}")
