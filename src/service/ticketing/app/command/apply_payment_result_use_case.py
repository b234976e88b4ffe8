from datetime import datetime, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.command.notification_helper import notify_best_effort
from src.service.ticketing.app.dto.booking_dto import ReconcileResult
from src.service.ticketing.app.dto.payment_dto import PaymentResult
from src.service.ticketing.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.domain.entity.booking_entity import Booking
from src.service.ticketing.domain.enum.booking_status import (
    UNPAID_BOOKING_STATUSES,
    BookingStatus,
)
from src.service.ticketing.domain.enum.gateway_result_status import GatewayResultStatus
from src.service.ticketing.domain.enum.notification_type import NotificationType


class ApplyPaymentResultUseCase:
    """
    Payment reconciler: one reducer for gateway callbacks and status polls.

    Results are at-least-once, so every transition is a conditional write keyed by
    the booking's current status. Only the call that wins the write has side effects.
    """

    def __init__(
        self,
        *,
        booking_command_repo: IBookingCommandRepo,
        notification_publisher: INotificationPublisher,
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.notification_publisher = notification_publisher
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        booking_command_repo: IBookingCommandRepo = Depends(
            Provide[Container.booking_command_repo]
        ),
        notification_publisher: INotificationPublisher = Depends(
            Provide[Container.notification_publisher]
        ),
    ) -> Self:
        return cls(
            booking_command_repo=booking_command_repo,
            notification_publisher=notification_publisher,
        )

    @Logger.io
    async def apply(
        self, *, result: PaymentResult, source: str = 'callback', now: Optional[datetime] = None
    ) -> ReconcileResult:
        now = now or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.apply_payment_result',
            attributes={
                'payment.transaction_id': result.transaction_id,
                'payment.status': result.status.value,
                'payment.source': source,
            },
        ):
            booking = await self.booking_command_repo.get_by_transaction_id(
                transaction_id=result.transaction_id
            )
            if not booking:
                raise NotFoundError(f'No booking for transaction {result.transaction_id}')

            match result.status:
                case GatewayResultStatus.SUCCESS:
                    reconciled = await self._apply_success(booking=booking, result=result, now=now)
                case GatewayResultStatus.FAILED:
                    reconciled = await self._apply_failure(booking=booking)
                case GatewayResultStatus.REFUNDED:
                    reconciled = await self._apply_refund(booking=booking, result=result, now=now)
                case _:
                    reconciled = ReconcileResult(booking=booking, applied=False)

            metrics.record_payment_result(
                source=source,
                status=result.status.value,
                outcome=(
                    'applied'
                    if reconciled.applied
                    else 'already_processed'
                    if reconciled.already_processed
                    else 'ignored'
                ),
            )
            return reconciled

    async def _apply_success(
        self, *, booking: Booking, result: PaymentResult, now: datetime
    ) -> ReconcileResult:
        if not booking.is_unpaid:
            if booking.status in (BookingStatus.CANCELLED, BookingStatus.REFUNDED):
                Logger.base.error(
                    f'🚨 [RECONCILE] Payment {result.transaction_id} succeeded for '
                    f'{booking.status} booking {booking.id}; manual refund required'
                )
            return ReconcileResult(booking=booking, applied=False, already_processed=True)

        if result.amount is not None and result.amount != booking.total_amount:
            Logger.base.warning(
                f'⚠️ [RECONCILE] Booking {booking.id} expects {booking.total_amount}, '
                f'gateway reported {result.amount} for {result.transaction_id}'
            )

        confirmed = booking.confirm(now=now)
        if not await self.booking_command_repo.confirm_and_activate_tickets(booking=confirmed):
            # A concurrent delivery of the same result won the conditional update
            latest = await self.booking_command_repo.get_by_id(booking_id=booking.id)
            return ReconcileResult(
                booking=latest or booking, applied=False, already_processed=True
            )

        Logger.base.info(
            f'✅ [RECONCILE] Booking {booking.id} confirmed by {result.transaction_id}'
        )
        await notify_best_effort(
            self.notification_publisher,
            user_id=confirmed.buyer_id,
            notification_type=NotificationType.BOOKING_CONFIRMED,
            data={'booking_id': str(confirmed.id), 'booking_number': confirmed.booking_number},
        )
        return ReconcileResult(booking=confirmed, applied=True)

    async def _apply_failure(self, *, booking: Booking) -> ReconcileResult:
        if not booking.is_unpaid:
            return ReconcileResult(booking=booking, applied=False, already_processed=True)

        failed = booking.mark_payment_failed()
        if not await self.booking_command_repo.update_payment(
            booking=failed,
            expected_statuses=UNPAID_BOOKING_STATUSES,
            expected_transaction_id=booking.payment.gateway_transaction_id,
        ):
            latest = await self.booking_command_repo.get_by_id(booking_id=booking.id)
            return ReconcileResult(
                booking=latest or booking, applied=False, already_processed=True
            )

        Logger.base.info(f'❌ [RECONCILE] Payment failed for booking {booking.id}')
        await notify_best_effort(
            self.notification_publisher,
            user_id=failed.buyer_id,
            notification_type=NotificationType.PAYMENT_FAILED,
            data={'booking_id': str(failed.id), 'booking_number': failed.booking_number},
        )
        return ReconcileResult(booking=failed, applied=True)

    async def _apply_refund(
        self, *, booking: Booking, result: PaymentResult, now: datetime
    ) -> ReconcileResult:
        if booking.status != BookingStatus.CANCELLED or booking.refund_id is not None:
            return ReconcileResult(
                booking=booking,
                applied=False,
                already_processed=booking.status == BookingStatus.REFUNDED,
            )

        refunded = booking.mark_refunded(
            amount=result.amount if result.amount is not None else 0,
            refund_id=result.refund_id or result.transaction_id,
            now=now,
        )
        if not await self.booking_command_repo.mark_refunded(booking=refunded):
            return ReconcileResult(booking=booking, applied=False, already_processed=True)

        Logger.base.info(
            f'💸 [RECONCILE] Booking {booking.id} refunded ({refunded.refund_amount})'
        )
        await notify_best_effort(
            self.notification_publisher,
            user_id=refunded.buyer_id,
            notification_type=NotificationType.BOOKING_REFUNDED,
            data={'booking_id': str(refunded.id), 'refund_amount': refunded.refund_amount},
        )
        return ReconcileResult(booking=refunded, applied=True)
