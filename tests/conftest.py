from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from securepad.config import Settings
from securepad.context import AppContext
from securepad.main import create_app
from securepad.services.alerts import AlertService
from securepad.services.summarizer import Summarizer


class FakeClock:
    """Settable clock for driving attachment expiry."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class RecordingAlerts(AlertService):
    """Alert service that records instead of sending mail."""

    def __init__(self):
        super().__init__(mailer=None, app_url="http://test")
        self.sent = []

    @property
    def enabled(self) -> bool:
        return True

    async def send(self, email, pad_id, event_type, details=None):
        self.sent.append((email, pad_id, event_type, details or {}))
        return True


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'securepad.db'}",
        FILE_STORAGE_TYPE="local",
        FILE_STORAGE_PATH=str(tmp_path / "uploads"),
        BCRYPT_ROUNDS=4,
        SWEEPER_ENABLED=False,
        GEMINI_API_KEY="",
        SMTP_HOST="",
    )


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def alerts():
    return RecordingAlerts()


@pytest_asyncio.fixture
async def ctx(settings, clock, alerts):
    context = AppContext(settings, summarizer=Summarizer(None), alerts=alerts, clock=clock)
    await context.start()
    yield context
    await context.close()


@pytest_asyncio.fixture
async def db(ctx):
    async with ctx.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(ctx):
    app = create_app(context=ctx)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def upload_dir(settings):
    return Path(settings.FILE_STORAGE_PATH)
