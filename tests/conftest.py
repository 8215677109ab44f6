"""
Pytest Configuration and Fixtures
Shared fixtures for unit and integration tests
"""

import pytest
import pytest_asyncio

from acdocs.db.operations import DocumentStore
from acdocs.db.session import close_db, init_db
from acdocs.services.notifications import NotificationService
from acdocs.services.queries import QueryService
from acdocs.services.session import SessionService
from acdocs.services.workspace import WorkspaceService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def pytest_collection_modifyitems(config, items):
    """Add default markers based on the test file path"""
    for item in items:
        if "/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


# ============================================
# DATABASE FIXTURES
# ============================================

@pytest_asyncio.fixture
async def session_maker():
    """Fresh in-memory database with the demo dataset"""
    maker = await init_db(TEST_DATABASE_URL, seed=True)
    yield maker
    await close_db()


@pytest_asyncio.fixture
async def store(session_maker):
    return DocumentStore(session_maker)


@pytest_asyncio.fixture
async def queries(store):
    return QueryService(store=store)


# ============================================
# SESSION FIXTURES
# ============================================

@pytest.fixture
def notifications():
    return NotificationService()


@pytest.fixture
def login(queries, notifications):
    """Factory: log a seeded account in and return its workspace"""

    async def _login(email: str) -> WorkspaceService:
        session = SessionService(queries)
        assert await session.login(email, "demo")
        return WorkspaceService(queries, session, notifications)

    return _login
