"""Database connection and session management"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from modelvault.config import settings

# Convert postgresql:// to postgresql+asyncpg:// for async support
ASYNC_DATABASE_URL = settings.database_url.replace(
    "postgresql://", "postgresql+asyncpg://"
)

engine_kwargs = {
    "echo": False,
    "pool_pre_ping": True,
}

# SQLite (local development) does not take pool sizing arguments
if not ASYNC_DATABASE_URL.startswith("sqlite"):
    engine_kwargs["pool_size"] = settings.database_pool_size
    engine_kwargs["max_overflow"] = settings.database_max_overflow


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Enforce foreign keys, and so ON DELETE CASCADE, on every new SQLite connection"""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async_engine = create_async_engine(ASYNC_DATABASE_URL, **engine_kwargs)

if ASYNC_DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(async_engine)

AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Base class for all models
Base = declarative_base()


async def create_all() -> None:
    """Create all tables (local development and tests)"""
    # Register mappers on Base.metadata
    import modelvault.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
