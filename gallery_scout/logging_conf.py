"""Logging setup shared by the CLI, the API and scripts."""
import logging
import sys

from gallery_scout.config import config

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("asyncio", "urllib3", "httpx", "uvicorn.access")


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once for the process."""
    level_name = (level or config.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
