from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import DomainError, ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_event_directory import IEventDirectory
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.ticket_status import TicketStatus


MAX_PAGE_SIZE = 200


class ListEventTicketsUseCase:
    """Attendee list for the event organizer. Credentials are never part of it."""

    def __init__(self, *, ticket_repo: ITicketRepo, event_directory: IEventDirectory) -> None:
        self.ticket_repo = ticket_repo
        self.event_directory = event_directory

    @classmethod
    @inject
    def depends(
        cls,
        ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo]),
        event_directory: IEventDirectory = Depends(Provide[Container.event_directory]),
    ) -> Self:
        return cls(ticket_repo=ticket_repo, event_directory=event_directory)

    @Logger.io
    async def list_by_event(
        self,
        *,
        event_id: UUID,
        actor_id: UUID,
        status: Optional[TicketStatus] = None,
        checked_in: Optional[bool] = None,
        page: int = 1,
        limit: int = 50,
    ) -> List[Ticket]:
        if page < 1 or not 1 <= limit <= MAX_PAGE_SIZE:
            raise DomainError(f'page must be >= 1 and limit between 1 and {MAX_PAGE_SIZE}')

        event = await self.event_directory.get_event(event_id=event_id)
        if not event:
            raise NotFoundError('Event not found')
        if not event.is_organized_by(actor_id):
            raise ForbiddenError('Only the event organizer can list its tickets')

        return await self.ticket_repo.list_by_event(
            event_id=event_id,
            status=status,
            checked_in=checked_in,
            limit=limit,
            offset=(page - 1) * limit,
        )
