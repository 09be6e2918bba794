"""Database session management."""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..core.config import settings
from ..models.base import Base

connect_args: dict[str, object] = {}
if settings.database_ssl_required:
    connect_args["ssl"] = True

engine = create_async_engine(
    settings.database_async_url,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args,
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Create tables that do not exist yet."""

    # Import for side effects so every table is registered on the metadata.
    from .. import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
