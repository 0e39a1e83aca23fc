"""Logging configuration helpers."""

import logging
from datetime import date
from pathlib import Path

_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(level: str = "INFO", log_dir: Path | None = None) -> None:
    """Configure application logging with a stream handler.

    When ``log_dir`` is given, records are also appended to a dated file
    such as ``photobooth-2024-06-01.log`` in that directory.
    """
    logger = logging.getLogger("photobooth")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(
            log_dir / f"photobooth-{date.today().isoformat()}.log", encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(f"%(asctime)s {_FORMAT}"))
        logger.addHandler(file_handler)
    logger.propagate = False
