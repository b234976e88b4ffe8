from datetime import datetime, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    ConflictError,
    DomainError,
    GatewayUnavailableError,
    NotFoundError,
    RefundFailedError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.command.notification_helper import notify_best_effort
from src.service.ticketing.app.dto.booking_dto import CancelBookingResult, RefundOutcome
from src.service.ticketing.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.ticketing.app.interface.i_event_directory import IEventDirectory
from src.service.ticketing.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway
from src.service.ticketing.domain.entity.booking_entity import Booking
from src.service.ticketing.domain.enum.notification_type import NotificationType
from src.service.ticketing.domain.refund_policy import RefundPolicy
from src.service.ticketing.domain.system_actor import SYSTEM_ACTOR_ID


class CancelBookingUseCase:
    """
    Cancel a booking, release its inventory and refund what the policy allows.

    Flow:
    1. Authorize: buyer, or the system actor for unpaid bookings only
    2. Blackout check (buyer only)
    3. Conditional write booking + tickets -> cancelled, guarded on the status we read
    4. Release every line item back to the ledger
    5. Paid through the gateway: refund by tier. A failed refund never undoes the
       cancellation; it is logged for manual follow-up.
    6. Notify (best effort)
    """

    def __init__(
        self,
        *,
        booking_command_repo: IBookingCommandRepo,
        inventory_ledger: IInventoryLedger,
        event_directory: IEventDirectory,
        payment_gateway: IPaymentGateway,
        notification_publisher: INotificationPublisher,
        refund_policy: RefundPolicy,
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.inventory_ledger = inventory_ledger
        self.event_directory = event_directory
        self.payment_gateway = payment_gateway
        self.notification_publisher = notification_publisher
        self.refund_policy = refund_policy
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        booking_command_repo: IBookingCommandRepo = Depends(
            Provide[Container.booking_command_repo]
        ),
        inventory_ledger: IInventoryLedger = Depends(Provide[Container.inventory_ledger]),
        event_directory: IEventDirectory = Depends(Provide[Container.event_directory]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        notification_publisher: INotificationPublisher = Depends(
            Provide[Container.notification_publisher]
        ),
        refund_policy: RefundPolicy = Depends(Provide[Container.refund_policy]),
    ) -> Self:
        return cls(
            booking_command_repo=booking_command_repo,
            inventory_ledger=inventory_ledger,
            event_directory=event_directory,
            payment_gateway=payment_gateway,
            notification_publisher=notification_publisher,
            refund_policy=refund_policy,
        )

    @Logger.io
    async def cancel(
        self,
        *,
        booking_id: UUID,
        actor_id: UUID,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CancelBookingResult:
        now = now or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.cancel_booking', attributes={'booking.id': str(booking_id)}
        ):
            booking = await self.booking_command_repo.get_by_id(booking_id=booking_id)
            if not booking:
                raise NotFoundError('Booking not found')

            is_system = actor_id == SYSTEM_ACTOR_ID
            if is_system:
                if not booking.is_unpaid:
                    raise DomainError(f'Expiry cannot cancel a {booking.status} booking')
            else:
                booking.validate_owned_by(actor_id)

            cancelled = booking.cancel(reason=reason, now=now)

            hours_until_start: Optional[float] = None
            if not is_system:
                event = await self.event_directory.get_event(event_id=booking.event_id)
                if not event:
                    raise NotFoundError('Event not found')
                hours_until_start = event.hours_until_start(now)
                self.refund_policy.ensure_outside_blackout(hours_until_start)

            if not await self.booking_command_repo.cancel_with_tickets(
                booking=cancelled, expected_status=booking.status
            ):
                raise ConflictError('Booking changed concurrently, please retry')

            for item in booking.line_items:
                await self.inventory_ledger.release(
                    category_id=item.category_id, quantity=item.quantity
                )
                metrics.record_release(reason='cancellation', quantity=item.quantity)

            Logger.base.info(
                f'🚫 [CANCEL] Booking {booking.id} cancelled by '
                f'{"system" if is_system else "buyer"} (was {booking.status}): {reason}'
            )

            result = CancelBookingResult(
                booking=cancelled, refund_outcome=RefundOutcome.NOT_APPLICABLE
            )
            if booking.was_paid_through_gateway and hours_until_start is not None:
                result = await self._refund(
                    cancelled=cancelled, hours_until_start=hours_until_start, now=now
                )

            await notify_best_effort(
                self.notification_publisher,
                user_id=booking.buyer_id,
                notification_type=NotificationType.BOOKING_CANCELLED,
                data={
                    'booking_id': str(booking.id),
                    'booking_number': booking.booking_number,
                    'reason': reason,
                    'refund_outcome': result.refund_outcome.value,
                    'refund_amount': result.refund_amount,
                },
            )
            return result

    async def _refund(
        self, *, cancelled: Booking, hours_until_start: float, now: datetime
    ) -> CancelBookingResult:
        amount = self.refund_policy.refund_amount(
            total_amount=cancelled.total_amount, hours_until_start=hours_until_start
        )
        if amount == 0:
            metrics.record_refund(result=RefundOutcome.NOT_ELIGIBLE.value)
            return CancelBookingResult(
                booking=cancelled, refund_outcome=RefundOutcome.NOT_ELIGIBLE
            )

        transaction_id = cancelled.payment.gateway_transaction_id or ''
        try:
            refund = await self.payment_gateway.refund(
                transaction_id=transaction_id,
                amount=amount,
                reason=cancelled.cancellation_reason or 'Booking cancelled',
            )
            if not refund.success:
                raise RefundFailedError(refund.message or 'Refund rejected by gateway')
        except (GatewayUnavailableError, RefundFailedError) as e:
            metrics.record_refund(result=RefundOutcome.FAILED.value)
            metrics.record_collaborator_failure(collaborator='payment_gateway', operation='refund')
            Logger.base.error(
                f'🚨 [REFUND] Refund of {amount} for booking {cancelled.id} '
                f'({transaction_id}) failed, manual follow-up required: {e.message}'
            )
            return CancelBookingResult(booking=cancelled, refund_outcome=RefundOutcome.FAILED)

        refunded = cancelled.mark_refunded(amount=amount, refund_id=refund.refund_id, now=now)
        if not await self.booking_command_repo.mark_refunded(booking=refunded):
            # A refund callback recorded it first
            latest = await self.booking_command_repo.get_by_id(booking_id=cancelled.id)
            refunded = latest or refunded

        metrics.record_refund(result=RefundOutcome.REFUNDED.value)
        Logger.base.info(f'💸 [REFUND] Booking {cancelled.id} refunded {amount}')
        return CancelBookingResult(
            booking=refunded, refund_outcome=RefundOutcome.REFUNDED, refund_amount=amount
        )
