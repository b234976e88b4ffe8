from abc import ABC, abstractmethod

from uuid_utils import UUID

from src.service.ticketing.app.dto.directory_dto import BuyerContact


class IBuyerDirectory(ABC):
    """Read-only access to platform users"""

    @abstractmethod
    async def get_buyer(self, *, buyer_id: UUID) -> BuyerContact | None:
        pass
