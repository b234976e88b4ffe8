from datetime import datetime, timedelta, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    AlreadyCheckedInError,
    CustomBaseError,
    NotFoundError,
    OutOfWindowError,
    ReplayOrInvalidCredentialError,
    TicketNotActiveError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.command.notification_helper import notify_best_effort
from src.service.ticketing.app.interface.i_event_directory import IEventDirectory
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.credential_issuer import CredentialIssuer
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.notification_type import NotificationType
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.value_object.presented_credential import PresentedCredential


_CHECK_IN_ERROR_RESULTS: dict[type[CustomBaseError], str] = {
    AlreadyCheckedInError: 'already_checked_in',
    ReplayOrInvalidCredentialError: 'invalid_credential',
    OutOfWindowError: 'out_of_window',
    TicketNotActiveError: 'not_active',
}


class CheckInTicketUseCase:
    """
    Verify a presented credential at the gate and mark the ticket used.

    Exactly-once: the final write is a compare-and-swap active -> used, so of any
    number of concurrent scans of the same ticket only one succeeds.
    """

    def __init__(
        self,
        *,
        ticket_repo: ITicketRepo,
        event_directory: IEventDirectory,
        credential_issuer: CredentialIssuer,
        notification_publisher: INotificationPublisher,
        opens_before_start: timedelta = timedelta(hours=2),
        default_event_duration: timedelta = timedelta(hours=6),
    ) -> None:
        self.ticket_repo = ticket_repo
        self.event_directory = event_directory
        self.credential_issuer = credential_issuer
        self.notification_publisher = notification_publisher
        self.opens_before_start = opens_before_start
        self.default_event_duration = default_event_duration
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo]),
        event_directory: IEventDirectory = Depends(Provide[Container.event_directory]),
        credential_issuer: CredentialIssuer = Depends(Provide[Container.credential_issuer]),
        notification_publisher: INotificationPublisher = Depends(
            Provide[Container.notification_publisher]
        ),
    ) -> Self:
        return cls(
            ticket_repo=ticket_repo,
            event_directory=event_directory,
            credential_issuer=credential_issuer,
            notification_publisher=notification_publisher,
            opens_before_start=timedelta(hours=settings.CHECK_IN_OPENS_BEFORE_START_HOURS),
            default_event_duration=timedelta(hours=settings.DEFAULT_EVENT_DURATION_HOURS),
        )

    @Logger.io
    async def check_in(
        self,
        *,
        ticket_id: UUID,
        presented: PresentedCredential,
        verifier_id: UUID,
        now: Optional[datetime] = None,
    ) -> Ticket:
        now = now or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.check_in_ticket', attributes={'ticket.id': str(ticket_id)}
        ):
            try:
                checked_in = await self._check_in(
                    ticket_id=ticket_id, presented=presented, verifier_id=verifier_id, now=now
                )
            except CustomBaseError as e:
                result = _CHECK_IN_ERROR_RESULTS.get(type(e))
                if result:
                    metrics.record_check_in(result=result)
                raise

            metrics.record_check_in(result='checked_in')
            await notify_best_effort(
                self.notification_publisher,
                user_id=checked_in.owner_id,
                notification_type=NotificationType.TICKET_CHECKED_IN,
                data={
                    'ticket_id': str(checked_in.id),
                    'ticket_number': checked_in.ticket_number,
                    'checked_in_at': now.isoformat(),
                },
            )
            return checked_in

    async def _check_in(
        self,
        *,
        ticket_id: UUID,
        presented: PresentedCredential,
        verifier_id: UUID,
        now: datetime,
    ) -> Ticket:
        ticket = await self.ticket_repo.get_by_id(ticket_id=ticket_id)
        if not ticket:
            raise NotFoundError('Ticket not found')

        # Step 1: Status first, so a replayed scan reports when it was used
        ticket.ensure_can_check_in()

        # Step 2: Credential
        self.credential_issuer.verify(ticket, presented)

        # Step 3: Window
        event = await self.event_directory.get_event(event_id=ticket.event_id)
        if not event:
            raise NotFoundError('Event not found')
        event.check_in_window(
            opens_before_start=self.opens_before_start,
            default_duration=self.default_event_duration,
        ).ensure_open(now)

        # Step 4: Compare-and-swap active -> used
        checked_in = ticket.check_in(verifier_id=verifier_id, now=now)
        if not await self.ticket_repo.check_in(ticket=checked_in):
            latest = await self.ticket_repo.get_by_id(ticket_id=ticket_id)
            if latest and latest.status == TicketStatus.USED:
                raise AlreadyCheckedInError(
                    'Ticket has already been used', checked_in_at=latest.checked_in_at
                )
            status = latest.status if latest else ticket.status
            raise TicketNotActiveError(f'Ticket is {status}', ticket_status=status.value)

        Logger.base.info(
            f'🎟️ [CHECK-IN] Ticket {ticket.ticket_number} admitted '
            f'{ticket.total_admissions} by {verifier_id}'
        )
        return checked_in
