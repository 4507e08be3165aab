# app/models/base.py
"""
SQLAlchemy Base setup and DB connection management
"""

import uuid
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from app.config import settings
from app.utils.logger import logger

Base = declarative_base()


def build_engine(url: str):
    if url.startswith("sqlite"):
        # aiosqlite connections are bound to the loop that opened them
        return create_async_engine(url, echo=settings.debug, poolclass=NullPool)
    return create_async_engine(
        url,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_recycle=3600
    )


engine = build_engine(settings.sqlalchemy_url)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


def new_id() -> str:
    return str(uuid.uuid4())


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped async session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bind=None):
    """Create all tables."""
    # model modules must be imported so their tables are registered
    from app import models  # noqa: F401

    target = bind or engine
    try:
        async with target.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("🗄️ Database tables ready")
    except Exception as e:
        logger.error(f"❌ Table creation failed: {e}")
        raise


async def close_db():
    await engine.dispose()
