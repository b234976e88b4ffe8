"""
Test Configuration and Fixtures

Environment setup runs before any application import so that settings and the
log directory resolve to test values. Unit tests never touch PostgreSQL or
Kvrocks: ports are replaced by the in-memory fakes in
test/service/ticketing/fakes.py. Integration tests run the asyncpg adapters
against the database named by POSTGRES_DB.
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    """Set test environment variables before any module imports."""
    os.environ['POSTGRES_DB'] = 'event_ticket_engine_test_db'

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    # Deterministic policy values regardless of a developer's .env
    os.environ['CANCELLATION_BLACKOUT_HOURS'] = '24'
    os.environ['REFUND_TIERS'] = '72:100,48:50'
    os.environ['CHECK_IN_OPENS_BEFORE_START_HOURS'] = '2'
    os.environ['DEFAULT_EVENT_DURATION_HOURS'] = '6'
    os.environ['PAYMENT_TIMEOUT_MINUTES'] = '30'
    os.environ['VERIFICATION_CODE_LENGTH'] = '6'
    os.environ['PAYMENT_GATEWAY_MERCHANT_ID'] = 'TESTMERCHANT'
    os.environ['PAYMENT_GATEWAY_SALT_KEY'] = 'test-salt-key'
    os.environ['PAYMENT_GATEWAY_SALT_INDEX'] = '1'


_early_setup_test_environment()

from collections.abc import Iterator  # noqa: E402

import pytest  # noqa: E402


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Everything under a `unit` directory is a unit test."""
    for item in items:
        if f'{os.sep}unit{os.sep}' in str(item.path):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def reset_container_overrides() -> Iterator[None]:
    yield
    from src.platform.config.di import container

    container.reset_override()
