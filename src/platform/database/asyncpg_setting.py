import asyncio
from typing import Any

import asyncpg
import orjson
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


# Global connection pools per event loop
asyncpg_pools: dict[int, asyncpg.Pool] = {}


def _uuid_decoder(value: bytes) -> UUID:
    """Decode PostgreSQL UUID binary data to uuid_utils.UUID"""
    return UUID(bytes=value)


def _uuid_encoder(value: Any) -> bytes:
    """Encode uuid_utils.UUID (or stdlib uuid / str) to binary for PostgreSQL"""
    if isinstance(value, str):
        value = UUID(value)
    return value.bytes


def _jsonb_encoder(value: Any) -> str:
    return orjson.dumps(value, default=str).decode()


async def init_connection(conn: asyncpg.Connection) -> None:
    """Initialize each connection with UUID and JSONB codecs"""
    await conn.set_type_codec(
        'uuid',
        encoder=_uuid_encoder,
        decoder=_uuid_decoder,
        schema='pg_catalog',
        format='binary',
    )
    await conn.set_type_codec(
        'jsonb',
        encoder=_jsonb_encoder,
        decoder=orjson.loads,
        schema='pg_catalog',
        format='text',
    )


async def get_asyncpg_pool() -> asyncpg.Pool:
    current_loop = asyncio.get_running_loop()
    loop_id = id(current_loop)

    if loop_id in asyncpg_pools:
        return asyncpg_pools[loop_id]

    # Slow path: create new pool (should only happen at startup)
    dsn = settings.DATABASE_URL_ASYNC.replace('postgresql+asyncpg://', 'postgresql://')
    pool = await asyncpg.create_pool(
        dsn,
        min_size=settings.ASYNCPG_POOL_MIN_SIZE,
        max_size=settings.ASYNCPG_POOL_MAX_SIZE,
        command_timeout=settings.ASYNCPG_POOL_COMMAND_TIMEOUT,
        max_inactive_connection_lifetime=settings.ASYNCPG_POOL_MAX_INACTIVE_LIFETIME,
        timeout=settings.ASYNCPG_POOL_TIMEOUT,
        max_queries=settings.ASYNCPG_POOL_MAX_QUERIES,
        init=init_connection,
    )
    asyncpg_pools[loop_id] = pool

    Logger.base.info(
        f'🐘 [POOL] asyncpg pool created (min={settings.ASYNCPG_POOL_MIN_SIZE}, '
        f'max={settings.ASYNCPG_POOL_MAX_SIZE})'
    )
    return pool


async def close_asyncpg_pool() -> None:
    """
    Close the asyncpg connection pool for the current event loop

    Note: Only closes the pool for the current event loop.
    Other event loops' pools remain active.
    """
    loop_id = id(asyncio.get_running_loop())
    if pool := asyncpg_pools.pop(loop_id, None):
        await pool.close()
        Logger.base.info('🐘 [POOL] asyncpg pool closed')
