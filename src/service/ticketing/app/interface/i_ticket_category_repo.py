from abc import ABC, abstractmethod
from typing import List

from uuid_utils import UUID

from src.service.ticketing.domain.entity.ticket_category_entity import TicketCategory


class ITicketCategoryRepo(ABC):
    """
    Ticket category persistence.

    Never writes `reserved`; that counter belongs to the inventory ledger.
    """

    @abstractmethod
    async def get_by_id(self, *, category_id: UUID) -> TicketCategory | None:
        pass

    @abstractmethod
    async def get_by_ids(self, *, category_ids: List[UUID]) -> dict[UUID, TicketCategory]:
        pass

    @abstractmethod
    async def list_by_event(
        self, *, event_id: UUID, include_inactive: bool = False
    ) -> List[TicketCategory]:
        pass

    @abstractmethod
    async def create(self, *, category: TicketCategory) -> TicketCategory:
        pass

    @abstractmethod
    async def update(self, *, category: TicketCategory) -> TicketCategory | None:
        """
        Persist admin-editable fields.

        The write only applies while the stored capacity is <= category.capacity,
        so a concurrent revision can never shrink capacity. Returns None when the
        guard rejected the write.
        """
        pass
