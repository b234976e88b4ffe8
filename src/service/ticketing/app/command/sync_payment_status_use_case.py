from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.apply_payment_result_use_case import (
    ApplyPaymentResultUseCase,
)
from src.service.ticketing.app.dto.booking_dto import ReconcileResult
from src.service.ticketing.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway


class SyncPaymentStatusUseCase:
    """Poll the gateway for a transaction and feed the answer to the reconciler."""

    def __init__(
        self,
        *,
        booking_command_repo: IBookingCommandRepo,
        payment_gateway: IPaymentGateway,
        apply_payment_result_use_case: ApplyPaymentResultUseCase,
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.payment_gateway = payment_gateway
        self.apply_payment_result_use_case = apply_payment_result_use_case

    @classmethod
    @inject
    def depends(
        cls,
        booking_command_repo: IBookingCommandRepo = Depends(
            Provide[Container.booking_command_repo]
        ),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        apply_payment_result_use_case: ApplyPaymentResultUseCase = Depends(
            ApplyPaymentResultUseCase.depends
        ),
    ) -> Self:
        return cls(
            booking_command_repo=booking_command_repo,
            payment_gateway=payment_gateway,
            apply_payment_result_use_case=apply_payment_result_use_case,
        )

    @Logger.io
    async def sync(self, *, transaction_id: str, buyer_id: UUID) -> ReconcileResult:
        """
        Raises:
            NotFoundError: no booking carries this transaction id
            ForbiddenError: the booking belongs to another buyer
            GatewayUnavailableError: gateway unreachable, safe to retry
        """
        # Unknown ids are rejected before the gateway is bothered
        booking = await self.booking_command_repo.get_by_transaction_id(
            transaction_id=transaction_id
        )
        if not booking:
            raise NotFoundError(f'No booking for transaction {transaction_id}')
        booking.validate_owned_by(buyer_id)

        result = await self.payment_gateway.poll_status(transaction_id=transaction_id)
        return await self.apply_payment_result_use_case.apply(result=result, source='poll')
