from datetime import datetime
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_event_directory import IEventDirectory
from src.service.ticketing.app.interface.i_ticket_category_repo import ITicketCategoryRepo
from src.service.ticketing.domain.entity.ticket_category_entity import TicketCategory


class CreateTicketCategoryUseCase:
    def __init__(
        self,
        *,
        ticket_category_repo: ITicketCategoryRepo,
        event_directory: IEventDirectory,
        default_max_per_buyer: int,
    ) -> None:
        self.ticket_category_repo = ticket_category_repo
        self.event_directory = event_directory
        self.default_max_per_buyer = default_max_per_buyer

    @classmethod
    @inject
    def depends(
        cls,
        ticket_category_repo: ITicketCategoryRepo = Depends(
            Provide[Container.ticket_category_repo]
        ),
        event_directory: IEventDirectory = Depends(Provide[Container.event_directory]),
    ) -> Self:
        return cls(
            ticket_category_repo=ticket_category_repo,
            event_directory=event_directory,
            default_max_per_buyer=settings.DEFAULT_MAX_PER_BUYER,
        )

    @Logger.io
    async def create(
        self,
        *,
        event_id: UUID,
        name: str,
        unit_price: int,
        currency: str,
        capacity: int,
        max_per_buyer: Optional[int] = None,
        sale_start: Optional[datetime] = None,
        sale_end: Optional[datetime] = None,
        active: bool = True,
        description: str = '',
    ) -> TicketCategory:
        if not await self.event_directory.get_event(event_id=event_id):
            raise NotFoundError('Event not found')

        category = TicketCategory.create(
            event_id=event_id,
            name=name,
            unit_price=unit_price,
            currency=currency,
            capacity=capacity,
            max_per_buyer=max_per_buyer or self.default_max_per_buyer,
            sale_start=sale_start,
            sale_end=sale_end,
            active=active,
            description=description,
        )
        created = await self.ticket_category_repo.create(category=category)
        Logger.base.info(
            f'🎫 [CATEGORY] Created {created.name} ({created.capacity} units) '
            f'for event {event_id}'
        )
        return created
