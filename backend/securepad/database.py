"""Async SQLAlchemy engine and session factory.

The engine is owned by the application context, not by this module, so
each app (and each test) gets its own. Usage in routes:
    from securepad.database import get_db

    @router.post("/items")
    async def create_item(db: AsyncSession = Depends(get_db)):
        ...
"""
from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from securepad.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the async engine for DATABASE_URL."""
    if settings.DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(settings.DATABASE_URL, echo=False)

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_async_engine(
        settings.DATABASE_URL,
        echo=False,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db(request: Request):
    """FastAPI dependency that yields an async DB session."""
    async with request.app.state.context.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
