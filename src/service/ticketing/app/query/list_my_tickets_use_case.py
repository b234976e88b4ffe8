from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket


class ListMyTicketsUseCase:
    def __init__(self, *, ticket_repo: ITicketRepo) -> None:
        self.ticket_repo = ticket_repo

    @classmethod
    @inject
    def depends(cls, ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo])) -> Self:
        return cls(ticket_repo=ticket_repo)

    @Logger.io
    async def list_by_owner(
        self, *, owner_id: UUID, event_id: Optional[UUID] = None
    ) -> List[Ticket]:
        tickets = await self.ticket_repo.list_by_owner(owner_id=owner_id, event_id=event_id)
        Logger.base.info(f'🎫 [TICKET] Found {len(tickets)} tickets owned by {owner_id}')
        return tickets
