import asyncio
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from parish.config import settings
from parish.database import Base, get_db
from parish.main import app
from parish.routes.slides import get_slide_fetcher
from parish.services.slides import list_active_slides
from parish.utils.auth import hash_password
from parish.utils.jwt_auth import create_access_token
from parish.utils.rate_limit import limiter

ADMIN_PASSWORD = "sao-miguel-123"


@pytest.fixture
def engine(tmp_path: Path) -> AsyncEngine:
    """
    File-backed SQLite engine. NullPool opens a fresh connection per session,
    so the TestClient loop and the pytest-asyncio loop never share one.
    """
    return create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'parish.db'}", poolclass=NullPool)


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def _create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest_asyncio.fixture
async def db_session(engine: AsyncEngine, session_factory: async_sessionmaker):
    await _create_tables(engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(session_factory: async_sessionmaker) -> Callable[..., list]:
    """Insert rows from synchronous (TestClient) tests; returns them refreshed."""
    def _seed(*rows: Any) -> list:
        async def _insert() -> list:
            async with session_factory() as session:
                session.add_all(rows)
                await session.commit()
                for row in rows:
                    await session.refresh(row)
                return list(rows)

        return asyncio.run(_insert())

    return _seed


@pytest.fixture(autouse=True)
def reset_rate_limits() -> Generator[None, None, None]:
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def admin_password(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", hash_password(ADMIN_PASSWORD, rounds=4))
    return ADMIN_PASSWORD


@pytest.fixture
def auth_headers() -> dict:
    token = create_access_token({"role": "admin", "sub": "cms_admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(engine: AsyncEngine, session_factory: async_sessionmaker) -> Generator[TestClient, None, None]:
    asyncio.run(_create_tables(engine))

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def override_slide_fetcher():
        async def fetch():
            async with session_factory() as session:
                return await list_active_slides(session)

        return fetch

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_slide_fetcher] = override_slide_fetcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_slide(**fields: Any) -> SimpleNamespace:
    """Slide-shaped stub for code that only reads attributes."""
    defaults = {
        "id": "slide-1",
        "title": "Festa de São Miguel",
        "description": "Participe conosco",
        "image_url": "https://res.cloudinary.com/demo/image/upload/v1/slides/festa.webp",
        "link_url": None,
        "link_text": None,
        "content_type": "custom",
        "related_content_id": None,
        "order_index": 0,
        "is_active": True,
    }
    defaults.update(fields)
    return SimpleNamespace(**defaults)
