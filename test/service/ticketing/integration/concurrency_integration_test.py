"""
Integration tests for the conditional writes that guard shared state

- InventoryLedgerImpl.try_reserve: concurrent buyers never push a category past capacity
- TicketRepoImpl.check_in / CheckInTicketUseCase: concurrent scans admit a ticket once
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import uuid_utils
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.exception.exceptions import AlreadyCheckedInError
from src.service.ticketing.app.command.check_in_ticket_use_case import CheckInTicketUseCase
from src.service.ticketing.app.dto.reservation_outcome import ReservationOutcome
from src.service.ticketing.domain.credential_issuer import CredentialIssuer
from src.service.ticketing.domain.entity.booking_entity import Booking
from src.service.ticketing.domain.entity.ticket_category_entity import TicketCategory
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.value_object.admission import IndividualAdmission
from src.service.ticketing.domain.value_object.line_item import LineItem
from src.service.ticketing.domain.value_object.presented_credential import PresentedCredential
from src.service.ticketing.driven_adapter.repo.booking_command_repo_impl import (
    BookingCommandRepoImpl,
)
from src.service.ticketing.driven_adapter.repo.event_directory_impl import EventDirectoryImpl
from src.service.ticketing.driven_adapter.repo.inventory_ledger_impl import InventoryLedgerImpl
from src.service.ticketing.driven_adapter.repo.ticket_category_repo_impl import (
    TicketCategoryRepoImpl,
)
from src.service.ticketing.driven_adapter.repo.ticket_repo_impl import TicketRepoImpl
from test.service.ticketing.fakes import RecordingNotificationPublisher


@pytest.fixture
async def event_id() -> UUID:
    """Event starting within the check-in window"""
    event_id = uuid_utils.uuid7()
    async with (await get_asyncpg_pool()).acquire() as conn:
        await conn.execute(
            'INSERT INTO event (id, name, start_time) VALUES ($1, $2, $3)',
            event_id,
            'Integration Night',
            datetime.now(timezone.utc) + timedelta(minutes=30),
        )
    return event_id


async def _create_category(*, event_id: UUID, capacity: int) -> TicketCategory:
    category = TicketCategory.create(
        event_id=event_id,
        name='General',
        unit_price=0,
        currency='INR',
        capacity=capacity,
        max_per_buyer=10,
        sale_start=datetime.now(timezone.utc) - timedelta(hours=1),
    )
    return await TicketCategoryRepoImpl().create(category=category)


async def _reserved(category_id: UUID) -> int:
    async with (await get_asyncpg_pool()).acquire() as conn:
        return await conn.fetchval(
            'SELECT reserved FROM ticket_category WHERE id = $1', category_id
        )


@pytest.mark.integration
class TestInventoryLedgerConcurrency:
    @pytest.mark.asyncio
    async def test_last_unit__exactly_one_winner(self, event_id: UUID) -> None:
        """
        Given: a category with a single unit left
        When: ten buyers reserve it at the same time
        Then: one reservation lands and the rest see insufficient capacity
        """
        # Arrange
        category = await _create_category(event_id=event_id, capacity=1)
        ledger = InventoryLedgerImpl()

        # Act
        outcomes = await asyncio.gather(
            *(
                ledger.try_reserve(
                    category_id=category.id, quantity=1, now=datetime.now(timezone.utc)
                )
                for _ in range(10)
            )
        )

        # Assert
        assert outcomes.count(ReservationOutcome.RESERVED) == 1
        assert outcomes.count(ReservationOutcome.INSUFFICIENT_CAPACITY) == 9
        assert await _reserved(category.id) == 1

    @pytest.mark.asyncio
    async def test_multi_unit_requests__never_exceed_capacity(self, event_id: UUID) -> None:
        category = await _create_category(event_id=event_id, capacity=5)
        ledger = InventoryLedgerImpl()

        outcomes = await asyncio.gather(
            *(
                ledger.try_reserve(
                    category_id=category.id, quantity=2, now=datetime.now(timezone.utc)
                )
                for _ in range(12)
            )
        )

        assert outcomes.count(ReservationOutcome.RESERVED) == 2
        assert await _reserved(category.id) == 4

    @pytest.mark.asyncio
    async def test_release_returns_units_for_the_next_buyer(self, event_id: UUID) -> None:
        category = await _create_category(event_id=event_id, capacity=1)
        ledger = InventoryLedgerImpl()
        now = datetime.now(timezone.utc)

        first = await ledger.try_reserve(category_id=category.id, quantity=1, now=now)
        blocked = await ledger.try_reserve(category_id=category.id, quantity=1, now=now)
        await ledger.release(category_id=category.id, quantity=1)
        retried = await ledger.try_reserve(category_id=category.id, quantity=1, now=now)

        assert first == ReservationOutcome.RESERVED
        assert blocked == ReservationOutcome.INSUFFICIENT_CAPACITY
        assert retried == ReservationOutcome.RESERVED
        assert await _reserved(category.id) == 1


@pytest.mark.integration
class TestCheckInConcurrency:
    @pytest.fixture
    def credential_issuer(self) -> CredentialIssuer:
        return CredentialIssuer(secret_bytes=20, code_length=6)

    @pytest.fixture
    async def active_ticket(self, event_id: UUID, credential_issuer: CredentialIssuer) -> Ticket:
        """A confirmed free booking with one active ticket, persisted"""
        category = await _create_category(event_id=event_id, capacity=10)
        admission = IndividualAdmission(
            category_id=category.id, name=category.name, unit_price=0
        )
        ticket_id, ticket_number = Ticket.new_identity(admission)
        booking = Booking.create(
            id=uuid_utils.uuid7(),
            buyer_id=uuid_utils.uuid7(),
            event_id=event_id,
            line_items=[
                LineItem(category_id=category.id, name=category.name, quantity=1, unit_price=0)
            ],
            currency='INR',
            ticket_ids=[ticket_id],
            is_group=False,
        )
        ticket = Ticket.issue(
            id=ticket_id,
            ticket_number=ticket_number,
            booking_id=booking.id,
            event_id=event_id,
            owner_id=booking.buyer_id,
            admission=admission,
            credential=credential_issuer.issue(
                ticket_id=ticket_id,
                ticket_number=ticket_number,
                event_id=event_id,
                admission=admission,
            ),
            status=TicketStatus.ACTIVE,
        )
        await BookingCommandRepoImpl().create_with_tickets(booking=booking, tickets=[ticket])
        return ticket

    @pytest.mark.asyncio
    async def test_repo_compare_and_swap__one_scan_wins(self, active_ticket: Ticket) -> None:
        repo = TicketRepoImpl()
        now = datetime.now(timezone.utc)
        scans = [active_ticket.check_in(verifier_id=uuid_utils.uuid7(), now=now) for _ in range(8)]

        results = await asyncio.gather(*(repo.check_in(ticket=scan) for scan in scans))

        assert results.count(True) == 1
        winner = scans[results.index(True)]
        stored = await repo.get_by_id(ticket_id=active_ticket.id)
        assert stored is not None
        assert stored.status == TicketStatus.USED
        assert stored.checked_in_by == winner.checked_in_by

    @pytest.mark.asyncio
    async def test_concurrent_gate_scans__admitted_once(
        self, active_ticket: Ticket, credential_issuer: CredentialIssuer
    ) -> None:
        """
        Given: one active ticket and its QR payload
        When: five gates scan it at the same moment
        Then: exactly one scan admits it and every other scan reports already checked in
        """
        # Arrange
        notification_publisher = RecordingNotificationPublisher()
        use_case = CheckInTicketUseCase(
            ticket_repo=TicketRepoImpl(),
            event_directory=EventDirectoryImpl(),
            credential_issuer=credential_issuer,
            notification_publisher=notification_publisher,
        )
        presented = PresentedCredential(qr_data=active_ticket.encoded_credential)

        # Act
        results = await asyncio.gather(
            *(
                use_case.check_in(
                    ticket_id=active_ticket.id,
                    presented=presented,
                    verifier_id=uuid_utils.uuid7(),
                )
                for _ in range(5)
            ),
            return_exceptions=True,
        )

        # Assert
        admitted = [r for r in results if isinstance(r, Ticket)]
        rejected = [r for r in results if isinstance(r, AlreadyCheckedInError)]
        assert len(admitted) == 1
        assert len(rejected) == 4
        assert admitted[0].status == TicketStatus.USED
        assert len(notification_publisher.sent) == 1
