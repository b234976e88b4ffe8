from enum import StrEnum


class BookingStatus(StrEnum):
    PENDING = 'pending'  # no payment method chosen yet
    AWAITING_PAYMENT = 'awaiting_payment'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'


UNPAID_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.AWAITING_PAYMENT)
CANCELLABLE_BOOKING_STATUSES = (*UNPAID_BOOKING_STATUSES, BookingStatus.CONFIRMED)


class PaymentStatus(StrEnum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'
