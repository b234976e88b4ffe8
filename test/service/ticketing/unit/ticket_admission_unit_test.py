"""
Unit tests for gate-side ticket operations

- CheckInTicketUseCase: status -> credential -> window -> compare-and-swap
- TransferTicketUseCase: rotation invalidates the previous QR and code
- VerifyTicketByCodeUseCase: short code lookup, ambiguity reported
"""

import asyncio
from datetime import datetime, timedelta

import pytest
import uuid_utils
from uuid_utils import UUID

from src.platform.exception.exceptions import (
    AlreadyCheckedInError,
    ConflictError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    OutOfWindowError,
    ReplayOrInvalidCredentialError,
    TicketNotActiveError,
)
from src.service.ticketing.app.command.check_in_ticket_use_case import CheckInTicketUseCase
from src.service.ticketing.app.command.transfer_ticket_use_case import TransferTicketUseCase
from src.service.ticketing.app.query.verify_ticket_by_code_use_case import (
    VerifyTicketByCodeUseCase,
)
from src.service.ticketing.domain.credential_issuer import CredentialIssuer
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.notification_type import NotificationType
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.value_object.admission import (
    GroupAdmission,
    IndividualAdmission,
)
from src.service.ticketing.domain.value_object.event_schedule import EventSchedule
from src.service.ticketing.domain.value_object.line_item import LineItem
from src.service.ticketing.domain.value_object.presented_credential import (
    PresentedCredential,
    ScanMode,
)
from test.service.ticketing.fakes import (
    FakeBuyerDirectory,
    FakeEventDirectory,
    InMemoryTicketRepo,
    RecordingNotificationPublisher,
    make_event,
)


@pytest.fixture
def live_event(event_directory: FakeEventDirectory, now: datetime) -> EventSchedule:
    """Starts in one hour: inside the two-hour check-in lead"""
    event = make_event(starts_in_hours=1, now=now)
    event_directory.events[event.event_id] = event
    return event


@pytest.fixture
def issue_ticket(
    ticket_repo: InMemoryTicketRepo, credential_issuer: CredentialIssuer, buyer_id: UUID
):
    def _issue(
        *,
        event: EventSchedule,
        group: bool = False,
        status: TicketStatus = TicketStatus.ACTIVE,
        owner_id: UUID | None = None,
    ) -> Ticket:
        category_id = uuid_utils.uuid7()
        admission = (
            GroupAdmission(
                line_items=[
                    LineItem(category_id=category_id, name='VIP', quantity=2, unit_price=10000),
                    LineItem(
                        category_id=uuid_utils.uuid7(), name='General', quantity=1, unit_price=0
                    ),
                ]
            )
            if group
            else IndividualAdmission(category_id=category_id, name='VIP', unit_price=10000)
        )
        ticket_id, ticket_number = Ticket.new_identity(admission)
        ticket = Ticket.issue(
            id=ticket_id,
            ticket_number=ticket_number,
            booking_id=uuid_utils.uuid7(),
            event_id=event.event_id,
            owner_id=owner_id or buyer_id,
            admission=admission,
            credential=credential_issuer.issue(
                ticket_id=ticket_id,
                ticket_number=ticket_number,
                event_id=event.event_id,
                admission=admission,
            ),
            status=status,
        )
        ticket_repo.put(ticket)
        return ticket

    return _issue


@pytest.fixture
def check_in_use_case(
    ticket_repo: InMemoryTicketRepo,
    event_directory: FakeEventDirectory,
    credential_issuer: CredentialIssuer,
    notification_publisher: RecordingNotificationPublisher,
    check_in_window: dict[str, timedelta],
) -> CheckInTicketUseCase:
    return CheckInTicketUseCase(
        ticket_repo=ticket_repo,
        event_directory=event_directory,
        credential_issuer=credential_issuer,
        notification_publisher=notification_publisher,
        **check_in_window,
    )


@pytest.fixture
def transfer_use_case(
    ticket_repo: InMemoryTicketRepo,
    buyer_directory: FakeBuyerDirectory,
    credential_issuer: CredentialIssuer,
    notification_publisher: RecordingNotificationPublisher,
) -> TransferTicketUseCase:
    return TransferTicketUseCase(
        ticket_repo=ticket_repo,
        buyer_directory=buyer_directory,
        credential_issuer=credential_issuer,
        notification_publisher=notification_publisher,
    )


@pytest.fixture
def verify_use_case(
    ticket_repo: InMemoryTicketRepo, credential_issuer: CredentialIssuer
) -> VerifyTicketByCodeUseCase:
    return VerifyTicketByCodeUseCase(ticket_repo=ticket_repo, credential_issuer=credential_issuer)


@pytest.fixture
def staff_id() -> UUID:
    return uuid_utils.uuid7()


@pytest.mark.unit
class TestCheckInTicketUseCase:
    @pytest.mark.asyncio
    async def test_valid_qr__ticket_used_once(
        self,
        check_in_use_case: CheckInTicketUseCase,
        ticket_repo: InMemoryTicketRepo,
        notification_publisher: RecordingNotificationPublisher,
        issue_ticket,
        live_event: EventSchedule,
        staff_id: UUID,
        now: datetime,
    ) -> None:
        # Arrange
        ticket = issue_ticket(event=live_event)

        # Act
        checked_in = await check_in_use_case.check_in(
            ticket_id=ticket.id,
            presented=PresentedCredential(qr_data=ticket.encoded_credential),
            verifier_id=staff_id,
            now=now,
        )

        # Assert
        assert checked_in.status == TicketStatus.USED
        stored = ticket_repo.tickets[ticket.id]
        assert stored.status == TicketStatus.USED
        assert stored.checked_in_by == staff_id
        assert stored.checked_in_at == now
        assert len(notification_publisher.of_type(NotificationType.TICKET_CHECKED_IN)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_scans__exactly_one_admitted(
        self,
        check_in_use_case: CheckInTicketUseCase,
        issue_ticket,
        live_event: EventSchedule,
        staff_id: UUID,
        now: datetime,
    ) -> None:
        """
        Given: one active ticket
        When: five gates scan it at the same time
        Then: exactly one admits it and the others report it as already used
        """
        # Arrange
        ticket = issue_ticket(event=live_event)
        presented = PresentedCredential(qr_data=ticket.encoded_credential)

        # Act
        outcomes = await asyncio.gather(
            *(
                check_in_use_case.check_in(
                    ticket_id=ticket.id, presented=presented, verifier_id=staff_id, now=now
                )
                for _ in range(5)
            ),
            return_exceptions=True,
        )

        # Assert
        admitted = [outcome for outcome in outcomes if isinstance(outcome, Ticket)]
        rejected = [outcome for outcome in outcomes if isinstance(outcome, Exception)]
        assert len(admitted) == 1
        assert len(rejected) == 4
        assert all(isinstance(error, AlreadyCheckedInError) for error in rejected)

    @pytest.mark.asyncio
    async def test_replayed_scan__reports_first_check_in_time(
        self,
        check_in_use_case: CheckInTicketUseCase,
        issue_ticket,
        live_event: EventSchedule,
        staff_id: UUID,
        now: datetime,
    ) -> None:
        ticket = issue_ticket(event=live_event)
        presented = PresentedCredential(qr_data=ticket.encoded_credential)
        await check_in_use_case.check_in(
            ticket_id=ticket.id, presented=presented, verifier_id=staff_id, now=now
        )

        with pytest.raises(AlreadyCheckedInError) as exc_info:
            await check_in_use_case.check_in(
                ticket_id=ticket.id,
                presented=presented,
                verifier_id=staff_id,
                now=now + timedelta(minutes=5),
            )

        assert exc_info.value.checked_in_at == now

    @pytest.mark.asyncio
    async def test_verification_code__accepted_case_insensitive(
        self,
        check_in_use_case: CheckInTicketUseCase,
        credential_issuer: CredentialIssuer,
        issue_ticket,
        live_event: EventSchedule,
        staff_id: UUID,
        now: datetime,
    ) -> None:
        ticket = issue_ticket(event=live_event)
        code = credential_issuer.verification_code(ticket.credential_secret).lower()

        checked_in = await check_in_use_case.check_in(
            ticket_id=ticket.id,
            presented=PresentedCredential(verification_code=code),
            verifier_id=staff_id,
            now=now,
        )

        assert checked_in.status == TicketStatus.USED

    @pytest.mark.asyncio
    async def test_tampered_or_missing_credential__rejected(
        self,
        check_in_use_case: CheckInTicketUseCase,
        issue_ticket,
        live_event: EventSchedule,
        staff_id: UUID,
        now: datetime,
    ) -> None:
        ticket = issue_ticket(event=live_event)
        other = issue_ticket(event=live_event)

        for presented in (
            PresentedCredential(),
            PresentedCredential(qr_data='not json'),
            PresentedCredential(qr_data=other.encoded_credential),
            PresentedCredential(verification_code='ZZZZZZ'),
            PresentedCredential(verification_code='ABC'),
        ):
            with pytest.raises(ReplayOrInvalidCredentialError):
                await check_in_use_case.check_in(
                    ticket_id=ticket.id, presented=presented, verifier_id=staff_id, now=now
                )

    @pytest.mark.asyncio
    async def test_group_and_individual_credentials__not_interchangeable(
        self,
        check_in_use_case: CheckInTicketUseCase,
        issue_ticket,
        live_event: EventSchedule,
        staff_id: UUID,
        now: datetime,
    ) -> None:
        """
        Given: a group ticket and an individual ticket
        When: each is scanned in the other's mode, or with the other's payload
        Then: every attempt is rejected and neither ticket is used
        """
        # Arrange
        group_ticket = issue_ticket(event=live_event, group=True)
        single_ticket = issue_ticket(event=live_event)

        # Act & Assert
        with pytest.raises(ReplayOrInvalidCredentialError):
            await check_in_use_case.check_in(
                ticket_id=group_ticket.id,
                presented=PresentedCredential(
                    qr_data=group_ticket.encoded_credential, scan_mode=ScanMode.INDIVIDUAL
                ),
                verifier_id=staff_id,
                now=now,
            )
        with pytest.raises(ReplayOrInvalidCredentialError):
            await check_in_use_case.check_in(
                ticket_id=single_ticket.id,
                presented=PresentedCredential(
                    qr_data=single_ticket.encoded_credential, scan_mode=ScanMode.GROUP
                ),
                verifier_id=staff_id,
                now=now,
            )
        with pytest.raises(ReplayOrInvalidCredentialError):
            await check_in_use_case.check_in(
                ticket_id=single_ticket.id,
                presented=PresentedCredential(qr_data=group_ticket.encoded_credential),
                verifier_id=staff_id,
                now=now,
            )

        admitted = await check_in_use_case.check_in(
            ticket_id=group_ticket.id,
            presented=PresentedCredential(
                qr_data=group_ticket.encoded_credential, scan_mode=ScanMode.GROUP
            ),
            verifier_id=staff_id,
            now=now,
        )
        assert admitted.total_admissions == 3

    @pytest.mark.asyncio
    async def test_outside_window__rejected(
        self,
        check_in_use_case: CheckInTicketUseCase,
        event_directory: FakeEventDirectory,
        issue_ticket,
        staff_id: UUID,
        now: datetime,
    ) -> None:
        # Arrange
        tomorrow = make_event(starts_in_hours=24, now=now)
        ended = make_event(starts_in_hours=-10, now=now, duration_hours=3)
        event_directory.events[tomorrow.event_id] = tomorrow
        event_directory.events[ended.event_id] = ended

        # Act & Assert
        for event in (tomorrow, ended):
            ticket = issue_ticket(event=event)
            with pytest.raises(OutOfWindowError):
                await check_in_use_case.check_in(
                    ticket_id=ticket.id,
                    presented=PresentedCredential(qr_data=ticket.encoded_credential),
                    verifier_id=staff_id,
                    now=now,
                )

    @pytest.mark.asyncio
    async def test_pending_ticket__not_active(
        self,
        check_in_use_case: CheckInTicketUseCase,
        issue_ticket,
        live_event: EventSchedule,
        staff_id: UUID,
        now: datetime,
    ) -> None:
        ticket = issue_ticket(event=live_event, status=TicketStatus.PENDING)

        with pytest.raises(TicketNotActiveError):
            await check_in_use_case.check_in(
                ticket_id=ticket.id,
                presented=PresentedCredential(qr_data=ticket.encoded_credential),
                verifier_id=staff_id,
                now=now,
            )


@pytest.mark.unit
class TestTransferTicketUseCase:
    @pytest.mark.asyncio
    async def test_transfer__rotates_credential_and_invalidates_old_one(
        self,
        transfer_use_case: TransferTicketUseCase,
        check_in_use_case: CheckInTicketUseCase,
        buyer_directory: FakeBuyerDirectory,
        credential_issuer: CredentialIssuer,
        notification_publisher: RecordingNotificationPublisher,
        issue_ticket,
        live_event: EventSchedule,
        buyer_id: UUID,
        staff_id: UUID,
        now: datetime,
    ) -> None:
        """
        Given: an active ticket owned by the buyer
        When: it is transferred to a friend
        Then: the old QR and old code no longer verify, the new QR does
        """
        # Arrange
        ticket = issue_ticket(event=live_event)
        friend_id = uuid_utils.uuid7()
        buyer_directory.add(friend_id, email='friend@example.com')
        old_code = credential_issuer.verification_code(ticket.credential_secret)

        # Act
        transferred = await transfer_use_case.transfer(
            ticket_id=ticket.id,
            from_owner_id=buyer_id,
            recipient_id=friend_id,
            message='Enjoy the show',
            now=now,
        )

        # Assert
        assert transferred.owner_id == friend_id
        assert transferred.credential_secret != ticket.credential_secret
        assert transferred.transfer_history[-1].from_owner_id == buyer_id
        assert len(notification_publisher.of_type(NotificationType.TICKET_RECEIVED)) == 1

        for stale in (
            PresentedCredential(qr_data=ticket.encoded_credential),
            PresentedCredential(verification_code=old_code),
        ):
            with pytest.raises(ReplayOrInvalidCredentialError):
                await check_in_use_case.check_in(
                    ticket_id=ticket.id, presented=stale, verifier_id=staff_id, now=now
                )

        admitted = await check_in_use_case.check_in(
            ticket_id=ticket.id,
            presented=PresentedCredential(qr_data=transferred.encoded_credential),
            verifier_id=staff_id,
            now=now,
        )
        assert admitted.status == TicketStatus.USED

    @pytest.mark.asyncio
    async def test_transfer_rules(
        self,
        transfer_use_case: TransferTicketUseCase,
        buyer_directory: FakeBuyerDirectory,
        issue_ticket,
        live_event: EventSchedule,
        buyer_id: UUID,
        now: datetime,
    ) -> None:
        # Arrange
        ticket = issue_ticket(event=live_event)
        used = issue_ticket(event=live_event, status=TicketStatus.USED)
        friend_id = uuid_utils.uuid7()
        buyer_directory.add(friend_id)

        # Act & Assert
        with pytest.raises(ForbiddenError):
            await transfer_use_case.transfer(
                ticket_id=ticket.id, from_owner_id=friend_id, recipient_id=buyer_id, now=now
            )
        with pytest.raises(DomainError):
            await transfer_use_case.transfer(
                ticket_id=ticket.id, from_owner_id=buyer_id, recipient_id=buyer_id, now=now
            )
        with pytest.raises(TicketNotActiveError):
            await transfer_use_case.transfer(
                ticket_id=used.id, from_owner_id=buyer_id, recipient_id=friend_id, now=now
            )
        with pytest.raises(NotFoundError):
            await transfer_use_case.transfer(
                ticket_id=ticket.id,
                from_owner_id=buyer_id,
                recipient_id=uuid_utils.uuid7(),
                now=now,
            )

    @pytest.mark.asyncio
    async def test_concurrent_transfers__one_wins(
        self,
        transfer_use_case: TransferTicketUseCase,
        ticket_repo: InMemoryTicketRepo,
        buyer_directory: FakeBuyerDirectory,
        issue_ticket,
        live_event: EventSchedule,
        buyer_id: UUID,
        now: datetime,
    ) -> None:
        # Arrange
        ticket = issue_ticket(event=live_event)
        recipients = [uuid_utils.uuid7(), uuid_utils.uuid7()]
        for recipient_id in recipients:
            buyer_directory.add(recipient_id)

        # Act
        outcomes = await asyncio.gather(
            *(
                transfer_use_case.transfer(
                    ticket_id=ticket.id, from_owner_id=buyer_id, recipient_id=recipient_id, now=now
                )
                for recipient_id in recipients
            ),
            return_exceptions=True,
        )

        # Assert
        winners = [outcome for outcome in outcomes if isinstance(outcome, Ticket)]
        assert len(winners) == 1
        assert any(isinstance(outcome, ConflictError) for outcome in outcomes)
        assert ticket_repo.tickets[ticket.id].owner_id == winners[0].owner_id


@pytest.mark.unit
class TestVerifyTicketByCodeUseCase:
    @pytest.mark.asyncio
    async def test_code__resolves_single_ticket_without_checking_in(
        self,
        verify_use_case: VerifyTicketByCodeUseCase,
        credential_issuer: CredentialIssuer,
        ticket_repo: InMemoryTicketRepo,
        issue_ticket,
        live_event: EventSchedule,
    ) -> None:
        ticket = issue_ticket(event=live_event)
        code = credential_issuer.verification_code(ticket.credential_secret)

        found = await verify_use_case.verify(event_id=live_event.event_id, code=code.lower())

        assert found.id == ticket.id
        assert ticket_repo.tickets[ticket.id].status == TicketStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_ambiguous_code__rejected(
        self,
        verify_use_case: VerifyTicketByCodeUseCase,
        ticket_repo: InMemoryTicketRepo,
        issue_ticket,
        live_event: EventSchedule,
    ) -> None:
        """Two tickets of one event sharing a code prefix must not be guessed between"""
        # Arrange
        first = issue_ticket(event=live_event)
        second = issue_ticket(event=live_event)
        shared_prefix = 'abcdef'
        for ticket in (first, second):
            stored = ticket_repo.tickets[ticket.id]
            stored.credential_secret = shared_prefix + stored.credential_secret[6:]

        # Act & Assert
        with pytest.raises(DomainError):
            await verify_use_case.verify(event_id=live_event.event_id, code='ABCDEF')

    @pytest.mark.asyncio
    async def test_code_lookup_errors(
        self,
        verify_use_case: VerifyTicketByCodeUseCase,
        credential_issuer: CredentialIssuer,
        issue_ticket,
        live_event: EventSchedule,
    ) -> None:
        cancelled = issue_ticket(event=live_event, status=TicketStatus.CANCELLED)
        cancelled_code = credential_issuer.verification_code(cancelled.credential_secret)

        with pytest.raises(DomainError):
            await verify_use_case.verify(event_id=live_event.event_id, code='ABC')
        with pytest.raises(NotFoundError):
            await verify_use_case.verify(event_id=live_event.event_id, code=cancelled_code)
        with pytest.raises(NotFoundError):
            await verify_use_case.verify(event_id=uuid_utils.uuid7(), code='ABCDEF')
