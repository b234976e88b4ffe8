from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.apply_payment_result_use_case import (
    ApplyPaymentResultUseCase,
)
from src.service.ticketing.app.dto.booking_dto import ReconcileResult
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway


class HandlePaymentCallbackUseCase:
    """Server-to-server gateway callback: verify the checksum first, then reconcile."""

    def __init__(
        self,
        *,
        payment_gateway: IPaymentGateway,
        apply_payment_result_use_case: ApplyPaymentResultUseCase,
    ) -> None:
        self.payment_gateway = payment_gateway
        self.apply_payment_result_use_case = apply_payment_result_use_case

    @classmethod
    @inject
    def depends(
        cls,
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        apply_payment_result_use_case: ApplyPaymentResultUseCase = Depends(
            ApplyPaymentResultUseCase.depends
        ),
    ) -> Self:
        return cls(
            payment_gateway=payment_gateway,
            apply_payment_result_use_case=apply_payment_result_use_case,
        )

    @Logger.io
    async def handle(self, *, payload: str, signature: str) -> ReconcileResult:
        # Raises DomainError on a bad checksum before any state is read
        result = self.payment_gateway.parse_callback(payload=payload, signature=signature)
        return await self.apply_payment_result_use_case.apply(result=result, source='callback')
