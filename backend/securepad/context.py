"""Per-process application context.

Holds every long-lived handle the routes and the sweeper need. Created by
create_app, started and closed by the FastAPI lifespan, and reached from
handlers through the get_context dependency.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from securepad.config import Settings
from securepad.database import create_engine, create_session_factory
from securepad.models import Base
from securepad.models.base import utcnow
from securepad.services.alerts import AlertService
from securepad.services.credentials import hash_secret_async
from securepad.services.file_storage import FileStorageService
from securepad.services.summarizer import Summarizer

logger = logging.getLogger(__name__)


class AppContext:

    def __init__(
        self,
        settings: Settings,
        engine: AsyncEngine | None = None,
        storage: FileStorageService | None = None,
        summarizer: Summarizer | None = None,
        alerts: AlertService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self.engine = engine or create_engine(settings)
        self.session_factory: async_sessionmaker[AsyncSession] = create_session_factory(self.engine)
        self.storage = storage or FileStorageService(settings)
        self.summarizer = summarizer or Summarizer.from_settings(settings)
        self.alerts = alerts or AlertService.from_settings(settings)
        self.clock = clock
        # Digest checked when a concealed lookup misses; set by start()
        self.missing_pad_hash: str | None = None

    @property
    def attachment_lifetime(self) -> timedelta:
        return timedelta(hours=self.settings.ATTACHMENT_LIFETIME_HOURS)

    def now(self) -> datetime:
        return self.clock()

    async def start(self) -> None:
        """Create tables, the storage root and the missing-pad digest."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await self.storage.start()
        self.missing_pad_hash = await hash_secret_async(
            secrets.token_urlsafe(16), self.settings.BCRYPT_ROUNDS
        )

    async def close(self) -> None:
        await self.storage.close()
        await self.engine.dispose()


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the app's context."""
    return request.app.state.context
