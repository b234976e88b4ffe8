from datetime import datetime, timedelta, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import CustomBaseError, GatewayUnavailableError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.apply_payment_result_use_case import (
    ApplyPaymentResultUseCase,
)
from src.service.ticketing.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.ticketing.app.dto.booking_dto import ExpireStaleBookingsResult
from src.service.ticketing.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway
from src.service.ticketing.domain.entity.booking_entity import Booking
from src.service.ticketing.domain.enum.gateway_result_status import GatewayResultStatus
from src.service.ticketing.domain.system_actor import SYSTEM_ACTOR_ID


PAYMENT_TIMEOUT_REASON = 'Payment timeout'


class ExpireStaleBookingsUseCase:
    """
    Payment-timeout sweep, run by an external scheduler.

    Unpaid bookings older than the timeout are cancelled as the system actor.
    Bookings with a gateway transaction are polled first so a late success is
    confirmed instead of cancelled. One failing booking never stops the sweep.
    """

    def __init__(
        self,
        *,
        booking_command_repo: IBookingCommandRepo,
        payment_gateway: IPaymentGateway,
        cancel_booking_use_case: CancelBookingUseCase,
        apply_payment_result_use_case: ApplyPaymentResultUseCase,
        timeout_minutes: int = 30,
        batch_size: int = 100,
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.payment_gateway = payment_gateway
        self.cancel_booking_use_case = cancel_booking_use_case
        self.apply_payment_result_use_case = apply_payment_result_use_case
        self.timeout = timedelta(minutes=timeout_minutes)
        self.batch_size = batch_size
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        booking_command_repo: IBookingCommandRepo = Depends(
            Provide[Container.booking_command_repo]
        ),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        cancel_booking_use_case: CancelBookingUseCase = Depends(CancelBookingUseCase.depends),
        apply_payment_result_use_case: ApplyPaymentResultUseCase = Depends(
            ApplyPaymentResultUseCase.depends
        ),
    ) -> Self:
        return cls(
            booking_command_repo=booking_command_repo,
            payment_gateway=payment_gateway,
            cancel_booking_use_case=cancel_booking_use_case,
            apply_payment_result_use_case=apply_payment_result_use_case,
            timeout_minutes=settings.PAYMENT_TIMEOUT_MINUTES,
            batch_size=settings.EXPIRY_BATCH_SIZE,
        )

    @Logger.io
    async def expire(self, *, now: Optional[datetime] = None) -> ExpireStaleBookingsResult:
        now = now or datetime.now(timezone.utc)
        result = ExpireStaleBookingsResult()

        with self.tracer.start_as_current_span('use_case.expire_stale_bookings'):
            stale = await self.booking_command_repo.list_stale_unpaid(
                created_before=now - self.timeout, limit=self.batch_size
            )
            for booking in stale:
                try:
                    await self._expire_one(booking=booking, now=now, result=result)
                except CustomBaseError as e:
                    # Lost a race with the buyer or the reconciler; next sweep re-evaluates
                    result.skipped.append(booking.id)
                    Logger.base.warning(
                        f'⏭️ [EXPIRE] Skipped booking {booking.id}: {e.message}'
                    )

            Logger.base.info(
                f'⏰ [EXPIRE] Sweep done: cancelled={len(result.cancelled)} '
                f'reconciled={len(result.reconciled)} skipped={len(result.skipped)}'
            )
            return result

    async def _expire_one(
        self, *, booking: Booking, now: datetime, result: ExpireStaleBookingsResult
    ) -> None:
        transaction_id = booking.payment.gateway_transaction_id
        if transaction_id:
            try:
                payment = await self.payment_gateway.poll_status(transaction_id=transaction_id)
            except GatewayUnavailableError as e:
                # Cannot tell whether the buyer paid; cancelling now could strand a payment
                result.skipped.append(booking.id)
                Logger.base.warning(
                    f'⏭️ [EXPIRE] Gateway unavailable for booking {booking.id}: {e.message}'
                )
                return

            if payment.status == GatewayResultStatus.SUCCESS:
                reconciled = await self.apply_payment_result_use_case.apply(
                    result=payment, source='expiry', now=now
                )
                if reconciled.applied:
                    result.reconciled.append(booking.id)
                else:
                    result.skipped.append(booking.id)
                return

        await self.cancel_booking_use_case.cancel(
            booking_id=booking.id,
            actor_id=SYSTEM_ACTOR_ID,
            reason=PAYMENT_TIMEOUT_REASON,
            now=now,
        )
        result.cancelled.append(booking.id)
