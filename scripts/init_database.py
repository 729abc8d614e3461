#!/usr/bin/env python3
"""Initialize database tables and default rebate settings."""

import asyncio

from loguru import logger

from rebate_core.config.constants import (
    CONFIG_KEY_INVITE_DEFAULT_LIMIT,
    CONFIG_KEY_REBATE_MODE,
    CONFIG_KEY_REBATE_RATE,
)
from rebate_core.config.settings import settings
from rebate_core.database import create_engine, create_session_maker
from rebate_core.models import Base, RebateMode
from rebate_core.repositories.system_config_repository import (
    SystemConfigRepository,
)
from rebate_core.utils.logging import setup_logging

DEFAULT_SETTINGS = {
    CONFIG_KEY_REBATE_RATE: "0",
    CONFIG_KEY_REBATE_MODE: RebateMode.EVERY_ORDER.value,
    CONFIG_KEY_INVITE_DEFAULT_LIMIT: "0",
}


async def init_database() -> None:
    """Create all tables and seed settings that are not set yet."""
    logger.info("Connecting to database...")
    engine = create_engine(settings.database_url, use_null_pool=True)

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    session_maker = create_session_maker(engine)
    async with session_maker() as session:
        repo = SystemConfigRepository(session)
        existing = await repo.get_values(list(DEFAULT_SETTINGS))
        for key, value in DEFAULT_SETTINGS.items():
            if key not in existing:
                await repo.set_value(key, value)
                logger.info(f"Seeded setting {key}={value}")
        await session.commit()

    await engine.dispose()
    logger.success("Database initialized successfully!")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database())
