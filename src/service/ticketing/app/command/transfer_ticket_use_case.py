from datetime import datetime, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import ConflictError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.notification_helper import notify_best_effort
from src.service.ticketing.app.interface.i_buyer_directory import IBuyerDirectory
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.credential_issuer import CredentialIssuer
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.notification_type import NotificationType


class TransferTicketUseCase:
    """Hand an active ticket to another user; the rotated credential voids the old QR."""

    def __init__(
        self,
        *,
        ticket_repo: ITicketRepo,
        buyer_directory: IBuyerDirectory,
        credential_issuer: CredentialIssuer,
        notification_publisher: INotificationPublisher,
    ) -> None:
        self.ticket_repo = ticket_repo
        self.buyer_directory = buyer_directory
        self.credential_issuer = credential_issuer
        self.notification_publisher = notification_publisher

    @classmethod
    @inject
    def depends(
        cls,
        ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo]),
        buyer_directory: IBuyerDirectory = Depends(Provide[Container.buyer_directory]),
        credential_issuer: CredentialIssuer = Depends(Provide[Container.credential_issuer]),
        notification_publisher: INotificationPublisher = Depends(
            Provide[Container.notification_publisher]
        ),
    ) -> Self:
        return cls(
            ticket_repo=ticket_repo,
            buyer_directory=buyer_directory,
            credential_issuer=credential_issuer,
            notification_publisher=notification_publisher,
        )

    @Logger.io
    async def transfer(
        self,
        *,
        ticket_id: UUID,
        from_owner_id: UUID,
        recipient_id: UUID,
        message: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Ticket:
        now = now or datetime.now(timezone.utc)

        ticket = await self.ticket_repo.get_by_id(ticket_id=ticket_id)
        if not ticket:
            raise NotFoundError('Ticket not found')

        if not await self.buyer_directory.get_buyer(buyer_id=recipient_id):
            raise NotFoundError('Recipient not found')

        transferred = ticket.transfer_to(
            from_owner_id=from_owner_id,
            recipient_id=recipient_id,
            credential=self.credential_issuer.rotate(ticket),
            message=message,
            now=now,
        )
        if not await self.ticket_repo.transfer(
            ticket=transferred,
            previous_owner_id=ticket.owner_id,
            previous_secret=ticket.credential_secret,
        ):
            raise ConflictError('Ticket changed concurrently, please retry')

        Logger.base.info(
            f'🔁 [TRANSFER] Ticket {ticket.ticket_number} {from_owner_id} -> {recipient_id}'
        )
        await notify_best_effort(
            self.notification_publisher,
            user_id=recipient_id,
            notification_type=NotificationType.TICKET_RECEIVED,
            data={
                'ticket_id': str(transferred.id),
                'ticket_number': transferred.ticket_number,
                'from_user_id': str(from_owner_id),
                'message': message,
            },
        )
        return transferred
