"""Use case inputs and results for the booking flow."""

from enum import StrEnum
from typing import List, Optional

from uuid_utils import UUID

import attrs

from src.service.ticketing.app.dto.payment_dto import PaymentHandle
from src.service.ticketing.domain.entity.booking_entity import Booking
from src.service.ticketing.domain.entity.ticket_entity import Ticket


@attrs.define(frozen=True)
class LineItemRequest:
    category_id: UUID
    quantity: int


@attrs.define(frozen=True)
class CreateBookingResult:
    booking: Booking
    tickets: List[Ticket]
    payment: Optional[PaymentHandle] = None
    payment_error: Optional[str] = None  # set when initiation failed; buyer may retry


@attrs.define(frozen=True)
class PaymentInitiation:
    booking: Booking
    payment: PaymentHandle


@attrs.define(frozen=True)
class ReconcileResult:
    booking: Booking
    applied: bool  # this call changed booking state
    already_processed: bool = False


class RefundOutcome(StrEnum):
    REFUNDED = 'refunded'
    FAILED = 'failed'
    NOT_ELIGIBLE = 'not_eligible'  # paid, but cancelled too late for any refund tier
    NOT_APPLICABLE = 'not_applicable'  # nothing was paid


@attrs.define(frozen=True)
class CancelBookingResult:
    booking: Booking
    refund_outcome: RefundOutcome
    refund_amount: int = 0


@attrs.define(frozen=True)
class BookingDetail:
    booking: Booking
    tickets: List[Ticket]


@attrs.define(frozen=True)
class BookingListItem:
    booking: Booking
    is_upcoming: Optional[bool] = None  # None when the event is no longer published


@attrs.define
class ExpireStaleBookingsResult:
    cancelled: List[UUID] = attrs.field(factory=list)
    reconciled: List[UUID] = attrs.field(factory=list)
    skipped: List[UUID] = attrs.field(factory=list)
