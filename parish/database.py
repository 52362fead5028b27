"""
Async SQLAlchemy engine and sessions for the parish content database.

Production points DATABASE_URL at the hosted PostgreSQL instance
(postgresql+asyncpg://...). Without it the app runs on SQLite through
aiosqlite, and its tables are created on startup.
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from typing import Tuple
from urllib.parse import urlparse
import logging

from parish.config import settings

logger = logging.getLogger(__name__)

SQLITE_FALLBACK_URL = "sqlite+aiosqlite:///:memory:"
SUPPORTED_SCHEMES = ("postgresql", "postgresql+asyncpg", "sqlite+aiosqlite")

Base = declarative_base()


def database_url() -> str:
    return settings.DATABASE_URL or SQLITE_FALLBACK_URL


def _build_engine(url: str) -> AsyncEngine:
    options = {"echo": False}
    if url.startswith("postgresql"):
        # Hosted Postgres drops idle connections; ping and recycle them
        options.update(
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args={"server_settings": {"application_name": "parish-site-backend"}},
        )
    return create_async_engine(url, **options)


engine = _build_engine(database_url())

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncSession:
    """
    FastAPI dependency yielding a session for one request.
    Commits when the endpoint returns, rolls back if it raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Rolled back request session: {str(e)}", exc_info=True)
            raise


def check_database_url(url: str) -> Tuple[bool, str]:
    """Return (ok, message) describing whether url can be used by the engine."""
    if not url:
        return False, "DATABASE_URL is empty"

    parsed = urlparse(url)
    if parsed.scheme not in SUPPORTED_SCHEMES:
        return False, f"Unsupported scheme {parsed.scheme!r}; expected one of {', '.join(SUPPORTED_SCHEMES)}"

    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        return False, "DATABASE_URL has no host"

    return True, f"{parsed.scheme} at {parsed.hostname or 'local file'}"


async def init_db():
    """
    Check connectivity on startup; on SQLite also create the tables.

    Raises:
        ValueError: If DATABASE_URL is set but unusable
    """
    url = database_url()
    ok, message = check_database_url(url)
    if not ok:
        raise ValueError(f"Invalid DATABASE_URL: {message}")

    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if url.startswith("sqlite"):
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Created tables on the SQLite database")

    logger.info(f"Database ready: {message}")


async def close_db():
    await engine.dispose()
    logger.info("Database engine disposed")
