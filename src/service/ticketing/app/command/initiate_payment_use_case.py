from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    ConflictError,
    GatewayUnavailableError,
    NotFoundError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.command.apply_payment_result_use_case import (
    ApplyPaymentResultUseCase,
)
from src.service.ticketing.app.dto.booking_dto import PaymentInitiation
from src.service.ticketing.app.dto.directory_dto import BuyerContact
from src.service.ticketing.app.dto.payment_dto import PaymentHandle
from src.service.ticketing.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.ticketing.app.interface.i_buyer_directory import IBuyerDirectory
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway
from src.service.ticketing.domain.entity.booking_entity import Booking
from src.service.ticketing.domain.enum.booking_status import (
    UNPAID_BOOKING_STATUSES,
    BookingStatus,
)
from src.service.ticketing.domain.enum.gateway_result_status import GatewayResultStatus


class InitiatePaymentUseCase:
    """
    Start (or restart) gateway payment for an unpaid booking.

    Used directly by the buyer for `pending` bookings and for retries after a
    failed initiation, and by CreateBookingUseCase when a method is chosen up front.
    A restart over a transaction that is still processing polls the gateway first:
    a final outcome is reconciled, anything else refuses the restart.
    Gateway calls happen outside any database transaction.
    """

    def __init__(
        self,
        *,
        booking_command_repo: IBookingCommandRepo,
        buyer_directory: IBuyerDirectory,
        payment_gateway: IPaymentGateway,
        apply_payment_result_use_case: ApplyPaymentResultUseCase,
        max_attempts: int = 1,
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.buyer_directory = buyer_directory
        self.payment_gateway = payment_gateway
        self.apply_payment_result_use_case = apply_payment_result_use_case
        self.max_attempts = max(max_attempts, 1)
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        booking_command_repo: IBookingCommandRepo = Depends(
            Provide[Container.booking_command_repo]
        ),
        buyer_directory: IBuyerDirectory = Depends(Provide[Container.buyer_directory]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        apply_payment_result_use_case: ApplyPaymentResultUseCase = Depends(
            ApplyPaymentResultUseCase.depends
        ),
    ) -> Self:
        return cls(
            booking_command_repo=booking_command_repo,
            buyer_directory=buyer_directory,
            payment_gateway=payment_gateway,
            apply_payment_result_use_case=apply_payment_result_use_case,
            max_attempts=settings.PAYMENT_INITIATE_MAX_ATTEMPTS,
        )

    @Logger.io
    async def initiate(
        self,
        *,
        booking_id: UUID,
        buyer_id: UUID,
        method: str,
        return_url: Optional[str] = None,
    ) -> PaymentInitiation:
        with self.tracer.start_as_current_span(
            'use_case.initiate_payment', attributes={'booking.id': str(booking_id)}
        ):
            booking = await self.booking_command_repo.get_by_id(booking_id=booking_id)
            if not booking:
                raise NotFoundError('Booking not found')
            booking.validate_owned_by(buyer_id)

            in_flight_id = booking.payment.gateway_transaction_id
            if in_flight_id and booking.payment.in_flight:
                booking = await self._settle_in_flight(booking, transaction_id=in_flight_id)

            awaiting = booking.start_payment(method=method)
            if not await self.booking_command_repo.update_payment(
                booking=awaiting,
                expected_statuses=UNPAID_BOOKING_STATUSES,
                expected_transaction_id=booking.payment.gateway_transaction_id,
            ):
                raise ConflictError('Booking is no longer awaiting payment')

            handle = await self.request_payment(booking=awaiting, return_url=return_url)
            return PaymentInitiation(booking=awaiting, payment=handle)

    @Logger.io
    async def request_payment(
        self, *, booking: Booking, return_url: Optional[str] = None
    ) -> PaymentHandle:
        """
        Call the gateway for an awaiting_payment booking and record the transaction id.

        Raises:
            GatewayUnavailableError: every attempt failed; the booking stays awaiting_payment
            PaymentRejectedError: the gateway refused the request; not retried
        """
        buyer = await self._buyer_contact(booking)

        attempt = 0
        while True:
            attempt += 1
            try:
                handle = await self.payment_gateway.initiate(
                    amount=booking.total_amount,
                    currency=booking.currency,
                    booking_id=booking.id,
                    buyer=buyer,
                    return_url=return_url,
                )
                break
            except GatewayUnavailableError as e:
                metrics.record_collaborator_failure(
                    collaborator='payment_gateway', operation='initiate'
                )
                Logger.base.warning(
                    f'⚠️ [PAYMENT] Initiation attempt {attempt}/{self.max_attempts} '
                    f'for booking {booking.id} failed: {e.message}'
                )
                if attempt >= self.max_attempts:
                    raise

        with_transaction = booking.attach_transaction(transaction_id=handle.transaction_id)
        if not await self.booking_command_repo.update_payment(
            booking=with_transaction,
            expected_statuses=(BookingStatus.AWAITING_PAYMENT,),
            expected_transaction_id=booking.payment.gateway_transaction_id,
        ):
            # Reconciled or restarted meanwhile; the gateway transaction is dropped
            raise ConflictError('Booking changed while payment was being initiated')

        Logger.base.info(
            f'💳 [PAYMENT] Booking {booking.id} initiated transaction {handle.transaction_id}'
        )
        return handle

    async def _settle_in_flight(self, booking: Booking, *, transaction_id: str) -> Booking:
        result = await self.payment_gateway.poll_status(transaction_id=transaction_id)
        if result.status not in (GatewayResultStatus.SUCCESS, GatewayResultStatus.FAILED):
            raise ConflictError(f'Payment {transaction_id} is still in progress')

        Logger.base.info(
            f'🔁 [PAYMENT] Settling {transaction_id} ({result.status}) '
            f'before restarting payment for booking {booking.id}'
        )
        await self.apply_payment_result_use_case.apply(result=result, source='poll')
        latest = await self.booking_command_repo.get_by_id(booking_id=booking.id)
        if not latest:
            raise NotFoundError('Booking not found')
        return latest

    async def _buyer_contact(self, booking: Booking) -> BuyerContact:
        if booking.contact and (booking.contact.email or booking.contact.phone):
            return BuyerContact(
                id=booking.buyer_id, email=booking.contact.email, phone=booking.contact.phone
            )
        buyer = await self.buyer_directory.get_buyer(buyer_id=booking.buyer_id)
        return buyer or BuyerContact(id=booking.buyer_id)
