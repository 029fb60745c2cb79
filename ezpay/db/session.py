# ezpay/db/session.py
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from ezpay.config import settings

DATABASE_URL = settings.database_url

# Async engine
engine = create_async_engine(DATABASE_URL, echo=settings.database_echo, future=True)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

Base = declarative_base()


async def init_db(bind=None) -> None:
    """
    Create all tables on the given engine (defaults to the application engine).
    """
    # models must be imported so their tables are registered on Base.metadata
    from ezpay.db import models  # noqa: F401

    target = bind if bind is not None else engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
