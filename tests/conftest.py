import os

# Settings and the module-level engine are built at import time.
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from app.core.database import AsyncSessionLocal, build_engine, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Base  # noqa: E402


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Fixture for an isolated database session.
    Rolls back the transaction after the test to keep the DB clean.

    Each test gets its own engine, so an in-memory SQLite database starts
    empty. Tables are created inside the outer transaction and vanish with it.

    Also overrides the app's get_db dependency so that HTTP calls made
    through async_client share this same connection and transaction.
    Any commits inside the app during a test create/release savepoints
    instead of real commits, so all writes are fully rolled back at the end.
    """
    test_engine = build_engine(os.environ["DATABASE_URL"])
    connection = await test_engine.connect()
    transaction = await connection.begin()
    await connection.run_sync(Base.metadata.create_all)

    session = AsyncSessionLocal(bind=connection, join_transaction_mode="create_savepoint")

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_db] = override_get_db

    try:
        yield session
    finally:
        app.dependency_overrides.pop(get_db, None)
        await session.close()
        await transaction.rollback()
        await connection.close()
        await test_engine.dispose()


@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Fixture for an async HTTPX test client hooked to the FastAPI app.
    Depends on db_session so the get_db override is active before the
    client is created and the app handles requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def sql_statements(db_session: AsyncSession) -> AsyncGenerator[list[str], None]:
    """SQL statements sent to the database while the test runs, in order."""
    statements: list[str] = []
    sync_engine = db_session.bind.sync_engine

    def _record(conn, cursor, statement, parameters, context, executemany) -> None:
        statements.append(statement)

    event.listen(sync_engine, "before_cursor_execute", _record)
    try:
        yield statements
    finally:
        event.remove(sync_engine, "before_cursor_execute", _record)
