from abc import ABC, abstractmethod

from uuid_utils import UUID

from src.service.ticketing.domain.value_object.event_schedule import EventSchedule


class IEventDirectory(ABC):
    """Read-only access to event timing owned by the event service"""

    @abstractmethod
    async def get_event(self, *, event_id: UUID) -> EventSchedule | None:
        pass
