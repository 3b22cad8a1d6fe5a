"""
Create the device_events table (development databases; production uses Alembic)
"""

import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.database import create_engine
from core.logging import setup_logging
from models.base import Base
# Import all models to ensure they are registered
from models.device_event import DeviceEvent  # noqa: F401

logger = logging.getLogger(__name__)


async def init_database(drop: bool = False):
    engine = create_engine()
    
    async with engine.begin() as conn:
        if drop:
            logger.warning("Dropping existing tables")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Tables ready: {sorted(Base.metadata.tables)}")
        
    await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database(drop="--drop" in sys.argv[1:]))
