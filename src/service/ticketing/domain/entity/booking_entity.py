from datetime import datetime, timezone
from typing import List, Optional
from uuid_utils import UUID

import attrs

from src.platform.exception.exceptions import ConflictError, DomainError, ForbiddenError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.domain.enum.booking_status import (
    CANCELLABLE_BOOKING_STATUSES,
    UNPAID_BOOKING_STATUSES,
    BookingStatus,
    PaymentStatus,
)
from src.service.ticketing.domain.value_object.contact_info import ContactInfo
from src.service.ticketing.domain.value_object.line_item import LineItem
from src.service.ticketing.domain.value_object.payment_ref import FREE_PAYMENT_METHOD, PaymentRef
from src.service.ticketing.domain.value_object.reference_number import generate_reference_number


@attrs.define
class Booking:
    id: UUID
    booking_number: str
    buyer_id: UUID
    event_id: UUID
    line_items: List[LineItem]
    total_amount: int  # minor currency units
    currency: str
    status: BookingStatus = BookingStatus.PENDING
    payment: PaymentRef = attrs.field(factory=PaymentRef)
    ticket_ids: List[UUID] = attrs.field(factory=list)
    is_group: bool = False
    contact: Optional[ContactInfo] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[int] = None
    refund_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    @property
    def is_unpaid(self) -> bool:
        return self.status in UNPAID_BOOKING_STATUSES

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.line_items)

    @property
    def was_paid_through_gateway(self) -> bool:
        return (
            self.status == BookingStatus.CONFIRMED
            and self.total_amount > 0
            and self.payment.gateway_transaction_id is not None
        )

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        buyer_id: UUID,
        event_id: UUID,
        line_items: List[LineItem],
        currency: str,
        ticket_ids: List[UUID],
        is_group: bool,
        payment_method: Optional[str] = None,
        contact: Optional[ContactInfo] = None,
    ) -> 'Booking':
        """
        Build a new booking in its initial state.

        - total 0: confirmed immediately (no gateway involved)
        - payment method chosen: awaiting_payment
        - otherwise: pending until the buyer starts payment
        """
        if not line_items:
            raise DomainError('At least one ticket must be selected')

        now = datetime.now(timezone.utc)
        total_amount = sum(item.subtotal for item in line_items)

        if total_amount == 0:
            status = BookingStatus.CONFIRMED
            payment = PaymentRef(method=FREE_PAYMENT_METHOD, status=PaymentStatus.COMPLETED)
            confirmed_at: Optional[datetime] = now
        elif payment_method:
            status = BookingStatus.AWAITING_PAYMENT
            payment = PaymentRef(method=payment_method, status=PaymentStatus.PENDING)
            confirmed_at = None
        else:
            status = BookingStatus.PENDING
            payment = PaymentRef()
            confirmed_at = None

        return cls(
            id=id,
            booking_number=generate_reference_number('BKG'),
            buyer_id=buyer_id,
            event_id=event_id,
            line_items=list(line_items),
            total_amount=total_amount,
            currency=currency,
            status=status,
            payment=payment,
            ticket_ids=list(ticket_ids),
            is_group=is_group,
            contact=contact,
            created_at=now,
            updated_at=now,
            confirmed_at=confirmed_at,
        )

    def validate_owned_by(self, buyer_id: UUID) -> None:
        if self.buyer_id != buyer_id:
            raise ForbiddenError('Only the buyer can access this booking')

    @Logger.io
    def start_payment(self, *, method: str) -> 'Booking':
        if self.total_amount == 0:
            raise DomainError('Free bookings do not require payment')
        if not self.is_unpaid:
            raise DomainError(f'Cannot start payment for a {self.status} booking')
        if self.payment.in_flight:
            raise ConflictError(
                f'Payment {self.payment.gateway_transaction_id} is still in progress'
            )

        return attrs.evolve(
            self,
            status=BookingStatus.AWAITING_PAYMENT,
            payment=PaymentRef(method=method, status=PaymentStatus.PENDING),
            updated_at=datetime.now(timezone.utc),
        )

    @Logger.io
    def attach_transaction(self, *, transaction_id: str) -> 'Booking':
        return attrs.evolve(
            self,
            payment=attrs.evolve(
                self.payment,
                gateway_transaction_id=transaction_id,
                status=PaymentStatus.PROCESSING,
            ),
            updated_at=datetime.now(timezone.utc),
        )

    @Logger.io
    def confirm(self, *, now: datetime) -> 'Booking':
        if not self.is_unpaid:
            raise DomainError(f'Cannot confirm a {self.status} booking')

        return attrs.evolve(
            self,
            status=BookingStatus.CONFIRMED,
            payment=attrs.evolve(self.payment, status=PaymentStatus.COMPLETED),
            confirmed_at=now,
            updated_at=now,
        )

    @Logger.io
    def mark_payment_failed(self) -> 'Booking':
        """Booking stays awaiting_payment so the buyer may retry; inventory stays held."""
        if not self.is_unpaid:
            raise DomainError(f'Cannot fail payment of a {self.status} booking')

        return attrs.evolve(
            self,
            status=BookingStatus.AWAITING_PAYMENT,
            payment=attrs.evolve(self.payment, status=PaymentStatus.FAILED),
            updated_at=datetime.now(timezone.utc),
        )

    @Logger.io
    def cancel(self, *, reason: Optional[str], now: datetime) -> 'Booking':
        if self.status in (BookingStatus.CANCELLED, BookingStatus.REFUNDED):
            raise DomainError('Booking is already cancelled')
        if self.status not in CANCELLABLE_BOOKING_STATUSES:
            raise DomainError(f'Cannot cancel a {self.status} booking')

        return attrs.evolve(
            self,
            status=BookingStatus.CANCELLED,
            cancellation_reason=reason,
            cancelled_at=now,
            updated_at=now,
        )

    @Logger.io
    def mark_refunded(self, *, amount: int, refund_id: Optional[str], now: datetime) -> 'Booking':
        if self.status != BookingStatus.CANCELLED:
            raise DomainError(f'Cannot refund a {self.status} booking')

        return attrs.evolve(
            self,
            status=BookingStatus.REFUNDED,
            payment=attrs.evolve(self.payment, status=PaymentStatus.REFUNDED),
            refund_amount=amount,
            refund_id=refund_id,
            refunded_at=now,
            updated_at=now,
        )
