"""Runtime settings for the local records store."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=True)

DEFAULT_DB_PATH = Path(__file__).parent / "clinical_data" / "openmrs_records.db"

DB_PATH = Path(os.getenv("OPENMRS_DB_PATH", DEFAULT_DB_PATH))
LOG_LEVEL = os.getenv("OPENMRS_LOG_LEVEL", "WARNING")
TASK_WORKERS = int(os.getenv("OPENMRS_TASK_WORKERS", "4"))

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Set up root logging for command-line use."""
    level_name = (level or LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.WARNING), format=LOG_FORMAT)
