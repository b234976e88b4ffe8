from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import ConflictError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.dto.ticket_category_dto import TicketCategoryChanges
from src.service.ticketing.app.interface.i_ticket_category_repo import ITicketCategoryRepo
from src.service.ticketing.domain.entity.ticket_category_entity import TicketCategory


class UpdateTicketCategoryUseCase:
    """Admin edit of a category. Capacity may only be raised, so it never drops below `reserved`."""

    def __init__(self, *, ticket_category_repo: ITicketCategoryRepo) -> None:
        self.ticket_category_repo = ticket_category_repo

    @classmethod
    @inject
    def depends(
        cls,
        ticket_category_repo: ITicketCategoryRepo = Depends(
            Provide[Container.ticket_category_repo]
        ),
    ) -> Self:
        return cls(ticket_category_repo=ticket_category_repo)

    @Logger.io
    async def update(
        self, *, category_id: UUID, changes: TicketCategoryChanges
    ) -> TicketCategory:
        category = await self.ticket_category_repo.get_by_id(category_id=category_id)
        if not category:
            raise NotFoundError('Ticket category not found')

        revised = category.revise(**changes.as_kwargs())

        updated = await self.ticket_category_repo.update(category=revised)
        if updated is None:
            raise ConflictError('Ticket category capacity changed concurrently, please retry')
        return updated
