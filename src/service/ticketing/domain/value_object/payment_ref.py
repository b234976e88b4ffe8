from typing import Optional

import attrs

from src.service.ticketing.domain.enum.booking_status import PaymentStatus


FREE_PAYMENT_METHOD = 'free'


@attrs.define(frozen=True)
class PaymentRef:
    method: Optional[str] = None
    gateway_transaction_id: Optional[str] = None
    status: PaymentStatus = PaymentStatus.PENDING

    @property
    def in_flight(self) -> bool:
        """A gateway transaction was started and has no final outcome yet"""
        return (
            self.gateway_transaction_id is not None and self.status == PaymentStatus.PROCESSING
        )
