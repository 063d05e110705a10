import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def _install_sqlite_hooks(engine: AsyncEngine) -> None:
    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT handling.
    # Hand transaction control to SQLAlchemy and turn on FK enforcement.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, _connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs: dict = {"echo": echo}
        if url.database in (None, "", ":memory:"):
            kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
        engine = create_async_engine(database_url, **kwargs)
        _install_sqlite_hooks(engine)
        return engine
    return create_async_engine(database_url, echo=echo, future=True, pool_pre_ping=True)


resolved_database_url = settings.resolved_database_url
resolved_database_url_source = settings.resolved_database_url_source
logger.info(
    "Database URL resolved",
    extra={
        "database_url_source": resolved_database_url_source,
        "database_host": settings.postgres_host if resolved_database_url_source == "postgres_fallback" else None,
        "database_port": settings.postgres_port if resolved_database_url_source == "postgres_fallback" else None,
        "database_name": settings.postgres_db if resolved_database_url_source == "postgres_fallback" else None,
    },
)

engine = build_engine(resolved_database_url, echo=settings.database_echo)
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a block all-or-nothing, nesting as a SAVEPOINT inside an open transaction."""
    if db.in_transaction():
        async with db.begin_nested():
            yield db
    else:
        async with db.begin():
            yield db
