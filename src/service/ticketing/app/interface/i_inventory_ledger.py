from abc import ABC, abstractmethod
from datetime import datetime

from uuid_utils import UUID

from src.service.ticketing.app.dto.reservation_outcome import ReservationOutcome


class IInventoryLedger(ABC):
    """Sole writer of TicketCategory.reserved"""

    @abstractmethod
    async def try_reserve(
        self, *, category_id: UUID, quantity: int, now: datetime
    ) -> ReservationOutcome:
        """
        Atomically increment `reserved` by quantity iff the category is active, on sale
        at `now`, and reserved + quantity <= capacity. Never leaves a partial increment.
        """
        pass

    @abstractmethod
    async def release(self, *, category_id: UUID, quantity: int) -> None:
        """Atomically decrement `reserved`, floored at 0"""
        pass
