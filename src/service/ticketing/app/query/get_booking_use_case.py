from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.dto.booking_dto import BookingDetail
from src.service.ticketing.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo


class GetBookingUseCase:
    def __init__(
        self, *, booking_command_repo: IBookingCommandRepo, ticket_repo: ITicketRepo
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.ticket_repo = ticket_repo

    @classmethod
    @inject
    def depends(
        cls,
        booking_command_repo: IBookingCommandRepo = Depends(
            Provide[Container.booking_command_repo]
        ),
        ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo]),
    ) -> Self:
        return cls(booking_command_repo=booking_command_repo, ticket_repo=ticket_repo)

    @Logger.io
    async def get_booking(self, *, booking_id: UUID, buyer_id: UUID) -> BookingDetail:
        """Booking with its tickets, visible to the buyer only"""
        booking = await self.booking_command_repo.get_by_id(booking_id=booking_id)
        if not booking:
            raise NotFoundError('Booking not found')
        booking.validate_owned_by(buyer_id)

        tickets = await self.ticket_repo.list_by_booking(booking_id=booking_id)
        return BookingDetail(booking=booking, tickets=tickets)
