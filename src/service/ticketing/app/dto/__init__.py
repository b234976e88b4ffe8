"""Application layer DTOs"""

from src.service.ticketing.app.dto.booking_dto import (
    BookingDetail,
    CancelBookingResult,
    CreateBookingResult,
    ExpireStaleBookingsResult,
    LineItemRequest,
    PaymentInitiation,
    ReconcileResult,
    RefundOutcome,
)
from src.service.ticketing.app.dto.directory_dto import BuyerContact
from src.service.ticketing.app.dto.payment_dto import PaymentHandle, PaymentResult, RefundResult
from src.service.ticketing.app.dto.reservation_outcome import ReservationOutcome
from src.service.ticketing.app.dto.ticket_category_dto import TicketCategoryChanges

__all__ = [
    'BookingDetail',
    'BuyerContact',
    'CancelBookingResult',
    'CreateBookingResult',
    'ExpireStaleBookingsResult',
    'LineItemRequest',
    'PaymentHandle',
    'PaymentInitiation',
    'PaymentResult',
    'ReconcileResult',
    'RefundOutcome',
    'RefundResult',
    'ReservationOutcome',
    'TicketCategoryChanges',
]
