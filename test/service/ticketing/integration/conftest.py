"""
PostgreSQL fixtures for integration tests

The test database named by POSTGRES_DB (see test/conftest.py) is created when
missing and migrated to head once per session. Tables are truncated before each
test. When no PostgreSQL server is reachable the whole module is skipped.
"""

import asyncio
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

from alembic import command
from alembic.config import Config
import asyncpg
import pytest

from src.platform.config.core_setting import settings
from src.platform.database.asyncpg_setting import close_asyncpg_pool, get_asyncpg_pool


_TABLES = ('ticket', 'booking', 'ticket_category', 'event', '"user"')


def _dsn(database: str) -> str:
    password = settings.POSTGRES_PASSWORD.get_secret_value()
    return (
        f'postgresql://{settings.POSTGRES_USER}:{password}'
        f'@{settings.POSTGRES_SERVER}:{settings.POSTGRES_PORT}/{database}'
    )


async def _create_database_if_missing() -> None:
    conn = await asyncpg.connect(_dsn('postgres'), timeout=3)
    try:
        exists = await conn.fetchval(
            'SELECT 1 FROM pg_database WHERE datname = $1', settings.POSTGRES_DB
        )
        if not exists:
            await conn.execute(f'CREATE DATABASE "{settings.POSTGRES_DB}"')
    finally:
        await conn.close()


@pytest.fixture(scope='session')
def migrated_database() -> Iterator[None]:
    try:
        asyncio.run(_create_database_if_missing())
    except (OSError, asyncio.TimeoutError, asyncpg.PostgresError) as e:
        pytest.skip(f'PostgreSQL unavailable at {settings.POSTGRES_SERVER}: {e}')

    alembic_cfg = Config(str(Path(__file__).parents[4] / 'alembic.ini'))
    command.upgrade(alembic_cfg, 'head')
    yield


@pytest.fixture(autouse=True)
async def clean_database(migrated_database: None) -> AsyncIterator[None]:
    async with (await get_asyncpg_pool()).acquire() as conn:
        await conn.execute(f'TRUNCATE {", ".join(_TABLES)} CASCADE')
    yield
    # Pools are bound to the loop of the test that created them
    await close_asyncpg_pool()
