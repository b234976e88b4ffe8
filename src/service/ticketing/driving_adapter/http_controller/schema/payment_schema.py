from typing import List

from pydantic import BaseModel

from src.platform.types import UtilsUUID7
from src.service.ticketing.app.dto.booking_dto import (
    ExpireStaleBookingsResult,
    ReconcileResult,
)


class PaymentCallbackRequest(BaseModel):
    response: str  # base64 JSON, signed by the X-VERIFY header

    class Config:
        json_schema_extra = {'example': {'response': 'eyJzdWNjZXNzIjp0cnVlLCJjb2RlIjoi...'}}


class ReconcileResponse(BaseModel):
    booking_id: UtilsUUID7
    booking_status: str
    payment_status: str
    applied: bool
    already_processed: bool

    @classmethod
    def from_result(cls, result: ReconcileResult) -> 'ReconcileResponse':
        return cls(
            booking_id=result.booking.id,
            booking_status=result.booking.status.value,
            payment_status=result.booking.payment.status.value,
            applied=result.applied,
            already_processed=result.already_processed,
        )


class ExpireStaleBookingsResponse(BaseModel):
    cancelled: List[UtilsUUID7]
    reconciled: List[UtilsUUID7]
    skipped: List[UtilsUUID7]

    @classmethod
    def from_result(cls, result: ExpireStaleBookingsResult) -> 'ExpireStaleBookingsResponse':
        return cls(
            cancelled=result.cancelled,
            reconciled=result.reconciled,
            skipped=result.skipped,
        )
