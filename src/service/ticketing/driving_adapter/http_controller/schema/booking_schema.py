from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.platform.types import UtilsUUID7
from src.service.ticketing.app.dto.booking_dto import (
    BookingDetail,
    BookingListItem,
    CancelBookingResult,
    CreateBookingResult,
    PaymentInitiation,
)
from src.service.ticketing.app.dto.payment_dto import PaymentHandle
from src.service.ticketing.domain.entity.booking_entity import Booking
from src.service.ticketing.domain.enum.booking_status import BookingStatus
from src.service.ticketing.driving_adapter.http_controller.schema.ticket_schema import (
    TicketResponse,
)


class LineItemRequest(BaseModel):
    category_id: UtilsUUID7
    quantity: int


class ContactRequest(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None


class BookingCreateRequest(BaseModel):
    event_id: UtilsUUID7
    line_items: List[LineItemRequest]
    group_mode: bool = False  # one credential admitting every unit
    payment_method: Optional[str] = None  # None: pay later via /payment
    contact: Optional[ContactRequest] = None
    return_url: Optional[str] = None

    class Config:
        json_schema_extra = {
            'examples': [
                {
                    'event_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                    'line_items': [
                        {'category_id': '01936d8f-6a10-7c4e-a9c5-123456789abc', 'quantity': 2},
                        {'category_id': '01936d8f-6a11-7c4e-a9c5-123456789abc', 'quantity': 1},
                    ],
                    'group_mode': False,
                    'payment_method': 'phonepe',
                    'contact': {'email': 'buyer@example.com', 'phone': '9999999999'},
                },
            ]
        }


class LineItemResponse(BaseModel):
    category_id: UtilsUUID7
    name: str
    quantity: int
    unit_price: int
    subtotal: int


class BookingResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'booking_number': 'BKG-3F9A01C2',
                'status': 'awaiting_payment',
                'total_amount': 500000,
                'currency': 'INR',
                'payment_status': 'processing',
            }
        },
    }

    id: UtilsUUID7  # UUID7
    booking_number: str
    buyer_id: UtilsUUID7
    event_id: UtilsUUID7
    line_items: List[LineItemResponse]
    total_amount: int
    currency: str
    status: str
    is_group: bool
    payment_method: Optional[str] = None
    payment_status: str
    transaction_id: Optional[str] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[int] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, booking: Booking) -> 'BookingResponse':
        return cls(
            id=booking.id,
            booking_number=booking.booking_number,
            buyer_id=booking.buyer_id,
            event_id=booking.event_id,
            line_items=[
                LineItemResponse(
                    category_id=item.category_id,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in booking.line_items
            ],
            total_amount=booking.total_amount,
            currency=booking.currency,
            status=booking.status.value,
            is_group=booking.is_group,
            payment_method=booking.payment.method,
            payment_status=booking.payment.status.value,
            transaction_id=booking.payment.gateway_transaction_id,
            cancellation_reason=booking.cancellation_reason,
            refund_amount=booking.refund_amount,
            created_at=booking.created_at,
            confirmed_at=booking.confirmed_at,
            cancelled_at=booking.cancelled_at,
            refunded_at=booking.refunded_at,
        )


class PaymentHandleResponse(BaseModel):
    transaction_id: str
    redirect_url: Optional[str] = None

    @classmethod
    def from_handle(cls, handle: PaymentHandle) -> 'PaymentHandleResponse':
        return cls(transaction_id=handle.transaction_id, redirect_url=handle.redirect_url)


class CreateBookingResponse(BaseModel):
    booking: BookingResponse
    tickets: List[TicketResponse]
    payment: Optional[PaymentHandleResponse] = None
    payment_error: Optional[str] = None

    @classmethod
    def from_result(cls, result: CreateBookingResult) -> 'CreateBookingResponse':
        return cls(
            booking=BookingResponse.from_entity(result.booking),
            tickets=[
                TicketResponse.from_entity(ticket, include_credential=True)
                for ticket in result.tickets
            ],
            payment=PaymentHandleResponse.from_handle(result.payment) if result.payment else None,
            payment_error=result.payment_error,
        )


class BookingDetailResponse(BaseModel):
    """Booking with its tickets, for the buyer who owns it"""

    booking: BookingResponse
    tickets: List[TicketResponse]

    @classmethod
    def from_detail(cls, detail: BookingDetail) -> 'BookingDetailResponse':
        owner_id = detail.booking.buyer_id
        return cls(
            booking=BookingResponse.from_entity(detail.booking),
            tickets=[
                TicketResponse.from_entity(ticket, include_credential=ticket.owner_id == owner_id)
                for ticket in detail.tickets
            ],
        )


class BookingListItemResponse(BaseModel):
    booking: BookingResponse
    is_upcoming: Optional[bool] = None
    display_status: str  # confirmed bookings of past events read as completed
    ticket_count: int

    @classmethod
    def from_item(cls, item: BookingListItem) -> 'BookingListItemResponse':
        booking = item.booking
        display_status = booking.status.value
        if booking.status == BookingStatus.CONFIRMED and item.is_upcoming is False:
            display_status = 'completed'
        return cls(
            booking=BookingResponse.from_entity(booking),
            is_upcoming=item.is_upcoming,
            display_status=display_status,
            ticket_count=len(booking.ticket_ids),
        )


class CancelBookingRequest(BaseModel):
    reason: Optional[str] = None

    class Config:
        json_schema_extra = {'example': {'reason': 'Cannot attend'}}


class CancelBookingResponse(BaseModel):
    booking: BookingResponse
    refund_outcome: str
    refund_amount: int

    @classmethod
    def from_result(cls, result: CancelBookingResult) -> 'CancelBookingResponse':
        return cls(
            booking=BookingResponse.from_entity(result.booking),
            refund_outcome=result.refund_outcome.value,
            refund_amount=result.refund_amount,
        )


class PaymentInitiateRequest(BaseModel):
    method: str = 'phonepe'
    return_url: Optional[str] = None

    class Config:
        json_schema_extra = {
            'example': {'method': 'phonepe', 'return_url': 'https://tickets.example.com/paid'}
        }


class PaymentInitiationResponse(BaseModel):
    booking: BookingResponse
    payment: PaymentHandleResponse

    @classmethod
    def from_initiation(cls, initiation: PaymentInitiation) -> 'PaymentInitiationResponse':
        return cls(
            booking=BookingResponse.from_entity(initiation.booking),
            payment=PaymentHandleResponse.from_handle(initiation.payment),
        )
