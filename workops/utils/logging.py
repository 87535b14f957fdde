"""Logging configuration for WorkOps."""

import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()


def setup_logging(level_name: str = None) -> None:
    """Configure process logging from `LOG_LEVEL` (debug/info/warning/error)."""
    level_name = (level_name or os.getenv("LOG_LEVEL", "info")).lower()

    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    level = level_map.get(level_name, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("uvicorn").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if level_name == "debug" else logging.WARNING
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at level: {level_name}")
