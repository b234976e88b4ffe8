"""Values exchanged with the payment gateway port."""

from typing import Optional

import attrs

from src.service.ticketing.domain.enum.gateway_result_status import GatewayResultStatus


@attrs.define(frozen=True)
class PaymentHandle:
    transaction_id: str
    redirect_url: Optional[str] = None


@attrs.define(frozen=True)
class PaymentResult:
    """Outcome of a gateway transaction, from a callback or a status poll"""

    transaction_id: str
    status: GatewayResultStatus
    amount: Optional[int] = None  # minor currency units
    refund_id: Optional[str] = None
    gateway_code: Optional[str] = None


@attrs.define(frozen=True)
class RefundResult:
    success: bool
    refund_id: Optional[str] = None
    message: Optional[str] = None
