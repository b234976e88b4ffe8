from enum import StrEnum


class TicketStatus(StrEnum):
    PENDING = 'pending'  # issued, booking not paid yet
    ACTIVE = 'active'
    USED = 'used'
    CANCELLED = 'cancelled'
    REFUNDED = 'refunded'
    EXPIRED = 'expired'


# Tickets that still count as valid admissions for code lookup
LOOKUP_EXCLUDED_TICKET_STATUSES = (
    TicketStatus.CANCELLED,
    TicketStatus.REFUNDED,
    TicketStatus.EXPIRED,
)
