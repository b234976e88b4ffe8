from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.entity.ticket_entity import Ticket


class GetTicketUseCase:
    def __init__(self, *, ticket_repo: ITicketRepo) -> None:
        self.ticket_repo = ticket_repo

    @classmethod
    @inject
    def depends(cls, ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo])) -> Self:
        return cls(ticket_repo=ticket_repo)

    @Logger.io
    async def get_ticket(self, *, ticket_id: UUID, owner_id: UUID) -> Ticket:
        """Visible to the current owner only; after a transfer that is the recipient"""
        ticket = await self.ticket_repo.get_by_id(ticket_id=ticket_id)
        if not ticket:
            raise NotFoundError('Ticket not found')
        if ticket.owner_id != owner_id:
            raise ForbiddenError('Only the ticket owner can view this ticket')
        return ticket
