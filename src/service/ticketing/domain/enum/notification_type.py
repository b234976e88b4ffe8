from enum import StrEnum


class NotificationType(StrEnum):
    BOOKING_CONFIRMED = 'booking_confirmed'
    BOOKING_CANCELLED = 'booking_cancelled'
    BOOKING_REFUNDED = 'booking_refunded'
    PAYMENT_FAILED = 'payment_failed'
    TICKET_CHECKED_IN = 'ticket_checked_in'
    TICKET_RECEIVED = 'ticket_received'
