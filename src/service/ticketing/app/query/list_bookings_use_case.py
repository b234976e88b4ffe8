from datetime import datetime, timezone
from typing import Dict, List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.dto.booking_dto import BookingListItem
from src.service.ticketing.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.ticketing.app.interface.i_event_directory import IEventDirectory
from src.service.ticketing.domain.enum.booking_status import BookingStatus
from src.service.ticketing.domain.value_object.event_schedule import EventSchedule


class ListBookingsUseCase:
    def __init__(
        self, *, booking_command_repo: IBookingCommandRepo, event_directory: IEventDirectory
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.event_directory = event_directory

    @classmethod
    @inject
    def depends(
        cls,
        booking_command_repo: IBookingCommandRepo = Depends(
            Provide[Container.booking_command_repo]
        ),
        event_directory: IEventDirectory = Depends(Provide[Container.event_directory]),
    ) -> Self:
        return cls(booking_command_repo=booking_command_repo, event_directory=event_directory)

    @Logger.io
    async def list_buyer_bookings(
        self,
        *,
        buyer_id: UUID,
        status: Optional[BookingStatus] = None,
        upcoming: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> List[BookingListItem]:
        """
        The buyer's bookings, newest first.

        `upcoming=True` keeps bookings whose event has not started yet, `False` the
        rest; bookings of events the directory no longer knows only match `None`.
        """
        now = now or datetime.now(timezone.utc)
        bookings = await self.booking_command_repo.list_by_buyer(buyer_id=buyer_id, status=status)

        events: Dict[UUID, Optional[EventSchedule]] = {}
        for event_id in {booking.event_id for booking in bookings}:
            events[event_id] = await self.event_directory.get_event(event_id=event_id)

        items = []
        for booking in bookings:
            event = events[booking.event_id]
            is_upcoming = event.start_time > now if event else None
            if upcoming is not None and is_upcoming is not upcoming:
                continue
            items.append(BookingListItem(booking=booking, is_upcoming=is_upcoming))

        Logger.base.info(f'📋 [BOOKING] Found {len(items)} bookings for buyer {buyer_id}')
        return items
