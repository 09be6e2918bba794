"""Create the database schema for development."""
from __future__ import annotations

import asyncio
import logging

from app.core.config import settings
from app.core.logging_config import configure_logging
from app.db.session import engine, init_models

logger = logging.getLogger("bootstrap_db")


async def main() -> None:
    configure_logging()
    await init_models()
    await engine.dispose()
    logger.info("Schema ready at %s", settings.database_async_url)


if __name__ == "__main__":
    asyncio.run(main())
