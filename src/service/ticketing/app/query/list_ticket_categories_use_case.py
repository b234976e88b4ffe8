from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_event_directory import IEventDirectory
from src.service.ticketing.app.interface.i_ticket_category_repo import ITicketCategoryRepo
from src.service.ticketing.domain.entity.ticket_category_entity import TicketCategory


class ListTicketCategoriesUseCase:
    def __init__(
        self, *, ticket_category_repo: ITicketCategoryRepo, event_directory: IEventDirectory
    ) -> None:
        self.ticket_category_repo = ticket_category_repo
        self.event_directory = event_directory

    @classmethod
    @inject
    def depends(
        cls,
        ticket_category_repo: ITicketCategoryRepo = Depends(
            Provide[Container.ticket_category_repo]
        ),
        event_directory: IEventDirectory = Depends(Provide[Container.event_directory]),
    ) -> Self:
        return cls(ticket_category_repo=ticket_category_repo, event_directory=event_directory)

    @Logger.io
    async def list_by_event(
        self, *, event_id: UUID, include_inactive: bool = False
    ) -> List[TicketCategory]:
        if not await self.event_directory.get_event(event_id=event_id):
            raise NotFoundError('Event not found')

        categories = await self.ticket_category_repo.list_by_event(
            event_id=event_id, include_inactive=include_inactive
        )
        Logger.base.info(f'📋 [CATEGORY] Found {len(categories)} categories for event {event_id}')
        return categories
