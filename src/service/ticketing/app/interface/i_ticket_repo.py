from abc import ABC, abstractmethod
from typing import List, Optional

from uuid_utils import UUID

from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.ticket_status import TicketStatus


class ITicketRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, ticket_id: UUID) -> Ticket | None:
        pass

    @abstractmethod
    async def list_by_booking(self, *, booking_id: UUID) -> List[Ticket]:
        pass

    @abstractmethod
    async def list_by_owner(
        self, *, owner_id: UUID, event_id: Optional[UUID] = None
    ) -> List[Ticket]:
        """Tickets currently owned by owner_id, received transfers included"""
        pass

    @abstractmethod
    async def list_by_event(
        self,
        *,
        event_id: UUID,
        status: Optional[TicketStatus] = None,
        checked_in: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Ticket]:
        pass

    @abstractmethod
    async def find_by_verification_code(self, *, event_id: UUID, code: str) -> List[Ticket]:
        """Tickets of the event (not cancelled/refunded/expired) whose secret starts with code"""
        pass

    @abstractmethod
    async def check_in(self, *, ticket: Ticket) -> bool:
        """Compare-and-swap active -> used. Exactly one concurrent caller gets True."""
        pass

    @abstractmethod
    async def transfer(
        self, *, ticket: Ticket, previous_owner_id: UUID, previous_secret: str
    ) -> bool:
        """Apply new owner/credential/history iff still active, owned and unrotated"""
        pass
