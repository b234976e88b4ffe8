#!/usr/bin/env python3
"""
Stale Booking Expiry

One sweep of ExpireStaleBookingsUseCase, meant for an external scheduler
(cron, Kubernetes CronJob). Unpaid bookings older than PAYMENT_TIMEOUT_MINUTES
are polled at the gateway and either confirmed or cancelled.

Usage:
    python -m script.expire_stale_bookings
"""

import sys

import anyio

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.database.asyncpg_setting import close_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.ticketing.app.command.apply_payment_result_use_case import (
    ApplyPaymentResultUseCase,
)
from src.service.ticketing.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.ticketing.app.command.expire_stale_bookings_use_case import (
    ExpireStaleBookingsUseCase,
)


def build_use_case() -> ExpireStaleBookingsUseCase:
    booking_command_repo = container.booking_command_repo()
    payment_gateway = container.payment_gateway()
    notification_publisher = container.notification_publisher()

    return ExpireStaleBookingsUseCase(
        booking_command_repo=booking_command_repo,
        payment_gateway=payment_gateway,
        cancel_booking_use_case=CancelBookingUseCase(
            booking_command_repo=booking_command_repo,
            inventory_ledger=container.inventory_ledger(),
            event_directory=container.event_directory(),
            payment_gateway=payment_gateway,
            notification_publisher=notification_publisher,
            refund_policy=container.refund_policy(),
        ),
        apply_payment_result_use_case=ApplyPaymentResultUseCase(
            booking_command_repo=booking_command_repo,
            notification_publisher=notification_publisher,
        ),
        timeout_minutes=settings.PAYMENT_TIMEOUT_MINUTES,
        batch_size=settings.EXPIRY_BATCH_SIZE,
    )


async def main() -> int:
    await kvrocks_client.initialize()
    try:
        result = await build_use_case().expire()
    finally:
        await container.payment_gateway().aclose()
        await close_asyncpg_pool()
        await kvrocks_client.disconnect()

    Logger.base.info(
        f'⏰ [EXPIRY] Sweep done: cancelled={len(result.cancelled)} '
        f'reconciled={len(result.reconciled)} skipped={len(result.skipped)}'
    )
    return 0


if __name__ == '__main__':
    sys.exit(anyio.run(main))
