"""
Logging setup for the ingestion job process.

One job per process: every module logs through ``logging.getLogger(__name__)``
to stdout, where the job launcher collects it. Fetch timing, per-source
record counts and the failure reason all arrive here.
"""

import logging
import sys
from core.config import settings


def setup_logging():
    """Configure root logging for one job run"""
    
    # Get log level from settings
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    
    # Configure root logger
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    
    # Keep driver and HTTP client chatter out of the job log
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    
    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {settings.LOG_LEVEL} level")
