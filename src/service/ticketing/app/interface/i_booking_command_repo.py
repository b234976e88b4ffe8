"""
Booking Command Repository Interface

Every state change is a field-scoped conditional write: the update names the
statuses it expects to find and reports whether it won.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from uuid_utils import UUID

from src.service.ticketing.domain.entity.booking_entity import Booking
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.booking_status import BookingStatus


class IBookingCommandRepo(ABC):
    @abstractmethod
    async def create_with_tickets(self, *, booking: Booking, tickets: List[Ticket]) -> Booking:
        """Insert booking and its tickets in one transaction"""
        pass

    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Booking | None:
        pass

    @abstractmethod
    async def get_by_transaction_id(self, *, transaction_id: str) -> Booking | None:
        pass

    @abstractmethod
    async def update_payment(
        self,
        *,
        booking: Booking,
        expected_statuses: Sequence[BookingStatus],
        expected_transaction_id: Optional[str],
    ) -> bool:
        """
        Write status + payment fields if the stored status is one of expected_statuses
        and the stored gateway transaction id still equals expected_transaction_id.
        """
        pass

    @abstractmethod
    async def confirm_and_activate_tickets(self, *, booking: Booking) -> bool:
        """
        pending/awaiting_payment -> confirmed, tickets pending -> active.

        Returns False when another caller already moved the booking out of an unpaid status.
        """
        pass

    @abstractmethod
    async def cancel_with_tickets(
        self, *, booking: Booking, expected_status: BookingStatus
    ) -> bool:
        """Booking -> cancelled and all its tickets -> cancelled, guarded on expected_status"""
        pass

    @abstractmethod
    async def mark_refunded(self, *, booking: Booking) -> bool:
        """cancelled -> refunded with refund fields; tickets cancelled -> refunded"""
        pass

    @abstractmethod
    async def list_stale_unpaid(self, *, created_before: datetime, limit: int) -> List[Booking]:
        pass

    @abstractmethod
    async def list_by_buyer(
        self, *, buyer_id: UUID, status: Optional[BookingStatus] = None
    ) -> List[Booking]:
        """Newest first"""
        pass
