"""
Event Ticket Engine - Main Application
Handles ticket categories, bookings, payments, cancellation and check-in.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.platform.app_factory import create_app
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.asyncpg_setting import close_asyncpg_pool, get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client


SERVICE_NAME = 'event-ticket-engine'


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Manage application lifespan: startup and shutdown"""
    # Startup
    Logger.base.info('🚀 [Ticket Engine] Starting up...')

    # Setup OpenTelemetry tracing
    tracing = TracingConfig(service_name=SERVICE_NAME)
    tracing.setup()
    Logger.base.info('📊 [Ticket Engine] OpenTelemetry tracing configured')

    # Wire dependency injection for use cases
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Ticket Engine] Dependency injection wired')

    # Auto-instrument Kvrocks and the payment gateway client
    tracing.instrument_redis()
    tracing.instrument_httpx()
    Logger.base.info('📊 [Ticket Engine] Redis/httpx instrumentation configured')

    # Initialize Kvrocks connection pool (fail-fast)
    await kvrocks_client.initialize()
    Logger.base.info('📡 [Ticket Engine] Kvrocks initialized')

    # Warm up the asyncpg pool for this event loop (fail-fast)
    await get_asyncpg_pool()
    Logger.base.info('🐘 [Ticket Engine] PostgreSQL pool warmed up')

    Logger.base.info('✅ [Ticket Engine] Startup complete')

    yield

    # Shutdown
    Logger.base.info('🛑 [Ticket Engine] Shutting down...')

    # Close the gateway HTTP client
    await container.payment_gateway().aclose()

    await close_asyncpg_pool()
    await kvrocks_client.disconnect()

    # Shutdown tracing (flush remaining spans)
    tracing.shutdown()
    Logger.base.info('📊 [Ticket Engine] Tracing shutdown complete')

    # Unwire DI
    container.unwire()
    container.reset_singletons()

    Logger.base.info('👋 [Ticket Engine] Shutdown complete')


app = create_app(lifespan=lifespan, service_name=SERVICE_NAME)
