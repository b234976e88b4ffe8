"""Ticketing Domain Enums"""

from src.service.ticketing.domain.enum.booking_status import BookingStatus, PaymentStatus
from src.service.ticketing.domain.enum.gateway_result_status import GatewayResultStatus
from src.service.ticketing.domain.enum.notification_type import NotificationType
from src.service.ticketing.domain.enum.ticket_status import TicketStatus

__all__ = [
    'BookingStatus',
    'GatewayResultStatus',
    'NotificationType',
    'PaymentStatus',
    'TicketStatus',
]
