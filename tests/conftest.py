import os

# Settings need a URL before the app is imported; tests build their own engines
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from dbexplorer.main import app
from dbexplorer.core.catalog import SchemaCatalog, get_catalog
from dbexplorer.core.database import SqlDatabase, get_db

SCHEMA = [
    """
    CREATE TABLE items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title VARCHAR(255) NOT NULL,
        description TEXT,
        quantity INTEGER,
        price FLOAT,
        in_stock BOOLEAN NOT NULL DEFAULT 1,
        created_at DATETIME
    )
    """,
    """
    CREATE TABLE users (
        user_id INTEGER PRIMARY KEY AUTOINCREMENT,
        login VARCHAR(255) NOT NULL,
        email VARCHAR(255) NOT NULL,
        updated VARCHAR(255)
    )
    """,
    """
    CREATE TABLE audit_log (
        message TEXT NOT NULL
    )
    """,
]

SEED = [
    """
    INSERT INTO items (title, description, quantity, price, in_stock, created_at)
    VALUES ('database/sql', 'Standard SQL interface', 5, 10.5, 1, '2024-01-01 10:00:00')
    """,
    """
    INSERT INTO items (title, description, quantity, price, in_stock, created_at)
    VALUES ('memcache', NULL, NULL, NULL, 0, NULL)
    """,
    "INSERT INTO users (login, email) VALUES ('rvasily', 'rvasily@example.com')",
    "INSERT INTO audit_log (message) VALUES ('created')",
]


# Fresh SQLite file per test, so every test sees the same seed rows
@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'explorer.db'}")
    async with engine.begin() as conn:
        for statement in SCHEMA + SEED:
            await conn.execute(text(statement))
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine):
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def catalog(db_session: AsyncSession):
    return await SchemaCatalog.build(SqlDatabase(db_session))


# Client
@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, catalog: SchemaCatalog):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog] = lambda: catalog

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
