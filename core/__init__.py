"""
Core utilities and configuration for the device-data ingestion job.

This package provides foundational components used throughout the job:

Modules:
    config: Application configuration and environment variable management
    database: Async engine and session factory
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import create_engine, create_session_maker
    from core.exceptions import FetchError, ParseError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Open a session for the job
    engine = create_engine()
    async with create_session_maker(engine)() as session:
        # Perform database operations
        pass
"""

__all__ = [
    "settings",
    "create_engine",
    "create_session_maker",
    "setup_logging",
    # Exceptions
    "IngestionJobError",
    "ConfigError",
    "UnknownSourceError",
    "FetchError",
    "ParseError",
    "EmptyResultError",
    "PersistenceError",
]
