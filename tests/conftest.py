import os
import tempfile
from typing import AsyncGenerator

# Settings are cached on first import, so the test environment goes in first.
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.gettempdir(), "marketplace-test-default.db"
)
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["EMAIL_SERVICE_URL"] = ""

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.config import get_settings

load_dotenv(".env.test", override=False)
get_settings.cache_clear()

from libs.common.emails.notifier import EmailNotifier  # noqa: E402
from libs.db.base import Base  # noqa: E402
from libs.db.config import build_engine, build_session_factory  # noqa: E402
from libs.db.session import get_async_db  # noqa: E402
from services.identity_service import models as identity_models  # noqa: E402,F401
from services.identity_service.seed import seed_roles  # noqa: E402
from services.store_service import models as store_models  # noqa: E402,F401


class RecordingNotifier(EmailNotifier):
    """Notifier that keeps messages in memory instead of sending them."""

    def __init__(self):
        super().__init__()
        self.sent: list[dict] = []

    async def _deliver(self, to_email, subject, body, **kw):
        self.sent.append({"to": to_email, "subject": subject, "body": body, **kw})
        return True

    def subjects_for(self, email: str) -> list[str]:
        return [message["subject"] for message in self.sent if message["to"] == email]


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    A fresh SQLite database per test, with every table created.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return build_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session on the per-test database with roles already seeded.
    """
    async with session_factory() as session:
        await seed_roles(session)
        yield session


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def app(notifier, db_session):
    from services.gateway_service.app.main import create_app

    application = create_app(notifier=notifier)

    async def _override_db():
        yield db_session

    application.dependency_overrides[get_async_db] = _override_db
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def services(app):
    """The service objects the app under test was built with."""
    return app.state
