from abc import ABC, abstractmethod
from typing import Optional

from uuid_utils import UUID

from src.service.ticketing.app.dto.directory_dto import BuyerContact
from src.service.ticketing.app.dto.payment_dto import PaymentHandle, PaymentResult, RefundResult


class IPaymentGateway(ABC):
    """
    External payment provider. Unreliable and at-least-once: results may arrive
    late, twice, or never (callers poll).
    """

    @abstractmethod
    async def initiate(
        self,
        *,
        amount: int,
        currency: str,
        booking_id: UUID,
        buyer: BuyerContact,
        return_url: Optional[str] = None,
    ) -> PaymentHandle:
        """
        Raises:
            GatewayUnavailableError: gateway unreachable (retryable)
            PaymentRejectedError: gateway refused the request
        """
        pass

    @abstractmethod
    async def poll_status(self, *, transaction_id: str) -> PaymentResult:
        """
        Raises:
            GatewayUnavailableError: gateway unreachable
        """
        pass

    @abstractmethod
    async def refund(self, *, transaction_id: str, amount: int, reason: str) -> RefundResult:
        """
        Raises:
            GatewayUnavailableError: gateway unreachable
        """
        pass

    @abstractmethod
    def parse_callback(self, *, payload: str, signature: str) -> PaymentResult:
        """
        Verify and decode a server-to-server callback.

        Raises:
            DomainError: signature mismatch or undecodable payload
        """
        pass
