from abc import ABC, abstractmethod
from typing import Any

from uuid_utils import UUID

from src.service.ticketing.domain.enum.notification_type import NotificationType


class INotificationPublisher(ABC):
    """Fire-and-forget user notifications; content and delivery are external"""

    @abstractmethod
    async def notify(
        self, *, user_id: UUID, notification_type: NotificationType, data: dict[str, Any]
    ) -> None:
        pass
