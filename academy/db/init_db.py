"""
Create the schema for every model.

Usage: python -m academy.db.init_db   (uses DATABASE_URL)
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

# Import all models so their tables are registered on Base.metadata
from academy.core import models  # noqa: F401
from academy.core.config import settings
from academy.core.logging_config import configure_logging
from academy.db.session import Base, engine

logger = logging.getLogger(__name__)


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Created %d tables", len(Base.metadata.tables))


def main() -> None:
    configure_logging(settings.log_level)
    asyncio.run(init_db())


if __name__ == "__main__":
    main()
