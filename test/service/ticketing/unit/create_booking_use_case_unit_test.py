"""
Unit tests for CreateBookingUseCase

Covers:
1. All-or-nothing reservation across line items
2. No overselling under concurrent bookings
3. Compensating release when persistence fails
4. Free bookings confirmed without the gateway
5. Individual vs group credentials
6. Payment initiation failure keeps the booking awaiting payment
"""

import asyncio
from datetime import datetime

import orjson
import pytest
import uuid_utils
from uuid_utils import UUID

from src.platform.exception.exceptions import (
    DomainError,
    InsufficientInventoryError,
    LimitExceededError,
    NotFoundError,
    SaleClosedError,
)
from src.service.ticketing.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.ticketing.app.dto.booking_dto import LineItemRequest
from src.service.ticketing.app.dto.reservation_outcome import ReservationOutcome
from src.service.ticketing.domain.enum.booking_status import BookingStatus, PaymentStatus
from src.service.ticketing.domain.enum.notification_type import NotificationType
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from test.service.ticketing.fakes import (
    FakeEventDirectory,
    FakePaymentGateway,
    InMemoryBookingCommandRepo,
    InMemoryInventoryLedger,
    InMemoryTicketCategoryRepo,
    RecordingNotificationPublisher,
    make_category,
    make_event,
)


@pytest.fixture
def event(event_directory: FakeEventDirectory, now: datetime):
    schedule = make_event(starts_in_hours=100, now=now)
    event_directory.events[schedule.event_id] = schedule
    return schedule


@pytest.mark.unit
class TestCreateBookingUseCase:
    @pytest.mark.asyncio
    async def test_paid_booking_with_method__awaits_payment_and_holds_inventory(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        inventory_ledger: InMemoryInventoryLedger,
        payment_gateway: FakePaymentGateway,
        booking_repo: InMemoryBookingCommandRepo,
        event,
        buyer_id: UUID,
    ) -> None:
        """
        Given: a category priced 10000 with capacity 10
        When: the buyer books 2 units and chooses phonepe
        Then: the booking awaits payment, two pending tickets exist, the gateway is asked for 20000
        """
        # Arrange
        vip = make_category(event_id=event.event_id, name='VIP', unit_price=10000, capacity=10)
        await category_repo.create(category=vip)

        # Act
        result = await create_booking_use_case.create_booking(
            buyer_id=buyer_id,
            event_id=event.event_id,
            line_items=[LineItemRequest(category_id=vip.id, quantity=2)],
            payment_method='phonepe',
        )

        # Assert
        assert result.booking.status == BookingStatus.AWAITING_PAYMENT
        assert result.booking.total_amount == 20000
        assert result.payment is not None
        assert result.payment_error is None
        assert len(result.tickets) == 2
        assert {ticket.status for ticket in result.tickets} == {TicketStatus.PENDING}
        assert inventory_ledger.reserved(vip.id) == 2
        assert payment_gateway.initiate_calls[0]['amount'] == 20000

        stored = booking_repo.bookings[result.booking.id]
        assert stored.payment.gateway_transaction_id == result.payment.transaction_id
        assert stored.payment.status == PaymentStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_booking_without_method__stays_pending_without_gateway_call(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        payment_gateway: FakePaymentGateway,
        event,
        buyer_id: UUID,
    ) -> None:
        # Arrange
        general = make_category(event_id=event.event_id, unit_price=5000)
        await category_repo.create(category=general)

        # Act
        result = await create_booking_use_case.create_booking(
            buyer_id=buyer_id,
            event_id=event.event_id,
            line_items=[LineItemRequest(category_id=general.id, quantity=1)],
        )

        # Assert
        assert result.booking.status == BookingStatus.PENDING
        assert result.payment is None
        assert payment_gateway.initiate_calls == []

    @pytest.mark.asyncio
    async def test_free_booking__confirmed_immediately_without_gateway(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        payment_gateway: FakePaymentGateway,
        notification_publisher: RecordingNotificationPublisher,
        event,
        buyer_id: UUID,
    ) -> None:
        """
        Given: a category priced 0
        When: the buyer books it, even with a payment method
        Then: the booking is confirmed with method free and the ticket is active
        """
        # Arrange
        free = make_category(event_id=event.event_id, name='Community', unit_price=0)
        await category_repo.create(category=free)

        # Act
        result = await create_booking_use_case.create_booking(
            buyer_id=buyer_id,
            event_id=event.event_id,
            line_items=[LineItemRequest(category_id=free.id, quantity=1)],
            payment_method='phonepe',
        )

        # Assert
        assert result.booking.status == BookingStatus.CONFIRMED
        assert result.booking.payment.method == 'free'
        assert result.booking.payment.status == PaymentStatus.COMPLETED
        assert result.tickets[0].status == TicketStatus.ACTIVE
        assert payment_gateway.initiate_calls == []
        assert len(notification_publisher.of_type(NotificationType.BOOKING_CONFIRMED)) == 1

    @pytest.mark.asyncio
    async def test_individual_mode__one_credential_per_unit(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        event,
        buyer_id: UUID,
    ) -> None:
        # Arrange
        vip = make_category(event_id=event.event_id, name='VIP', unit_price=10000)
        general = make_category(event_id=event.event_id, name='General', unit_price=5000)
        await category_repo.create(category=vip)
        await category_repo.create(category=general)

        # Act
        result = await create_booking_use_case.create_booking(
            buyer_id=buyer_id,
            event_id=event.event_id,
            line_items=[
                LineItemRequest(category_id=vip.id, quantity=2),
                LineItemRequest(category_id=general.id, quantity=1),
            ],
        )

        # Assert
        assert len(result.tickets) == 3
        assert len({ticket.credential_secret for ticket in result.tickets}) == 3
        assert all(not ticket.is_group for ticket in result.tickets)
        payload = orjson.loads(result.tickets[0].encoded_credential)
        assert payload['isGroupTicket'] is False
        assert payload['id'] == str(result.tickets[0].id)

    @pytest.mark.asyncio
    async def test_group_mode__single_credential_admits_every_unit(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        event,
        buyer_id: UUID,
    ) -> None:
        # Arrange
        vip = make_category(event_id=event.event_id, name='VIP', unit_price=10000)
        general = make_category(event_id=event.event_id, name='General', unit_price=5000)
        await category_repo.create(category=vip)
        await category_repo.create(category=general)

        # Act
        result = await create_booking_use_case.create_booking(
            buyer_id=buyer_id,
            event_id=event.event_id,
            line_items=[
                LineItemRequest(category_id=vip.id, quantity=2),
                LineItemRequest(category_id=general.id, quantity=1),
            ],
            group_mode=True,
        )

        # Assert
        assert len(result.tickets) == 1
        group_ticket = result.tickets[0]
        assert group_ticket.is_group
        assert group_ticket.total_admissions == 3
        assert group_ticket.ticket_number.startswith('GRP-')
        payload = orjson.loads(group_ticket.encoded_credential)
        assert payload['isGroupTicket'] is True
        assert payload['totalTickets'] == 3
        assert payload['ticketTypes'] == [
            {'name': 'VIP', 'quantity': 2},
            {'name': 'General', 'quantity': 1},
        ]

    @pytest.mark.asyncio
    async def test_second_category_rejected__first_reservation_released(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        inventory_ledger: InMemoryInventoryLedger,
        booking_repo: InMemoryBookingCommandRepo,
        event,
        buyer_id: UUID,
    ) -> None:
        """
        Given: two categories where the ledger rejects the second one
        When: a booking selects both
        Then: it fails with no booking stored and the first reservation released
        """
        # Arrange
        vip = make_category(event_id=event.event_id, name='VIP', capacity=5)
        general = make_category(event_id=event.event_id, name='General', capacity=5)
        await category_repo.create(category=vip)
        await category_repo.create(category=general)
        inventory_ledger.forced_outcomes[general.id] = ReservationOutcome.INSUFFICIENT_CAPACITY

        # Act
        with pytest.raises(InsufficientInventoryError):
            await create_booking_use_case.create_booking(
                buyer_id=buyer_id,
                event_id=event.event_id,
                line_items=[
                    LineItemRequest(category_id=vip.id, quantity=2),
                    LineItemRequest(category_id=general.id, quantity=1),
                ],
            )

        # Assert
        assert inventory_ledger.reserved(vip.id) == 0
        assert inventory_ledger.released == [(vip.id, 2)]
        assert booking_repo.bookings == {}

    @pytest.mark.asyncio
    async def test_persistence_failure__releases_every_reservation(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        inventory_ledger: InMemoryInventoryLedger,
        booking_repo: InMemoryBookingCommandRepo,
        event,
        buyer_id: UUID,
    ) -> None:
        # Arrange
        vip = make_category(event_id=event.event_id, name='VIP')
        general = make_category(event_id=event.event_id, name='General')
        await category_repo.create(category=vip)
        await category_repo.create(category=general)
        booking_repo.fail_on_create = ConnectionError('database unavailable')

        # Act
        with pytest.raises(ConnectionError):
            await create_booking_use_case.create_booking(
                buyer_id=buyer_id,
                event_id=event.event_id,
                line_items=[
                    LineItemRequest(category_id=vip.id, quantity=2),
                    LineItemRequest(category_id=general.id, quantity=1),
                ],
            )

        # Assert
        assert inventory_ledger.reserved(vip.id) == 0
        assert inventory_ledger.reserved(general.id) == 0
        assert booking_repo.bookings == {}

    @pytest.mark.asyncio
    async def test_gateway_down__booking_kept_with_payment_error(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        inventory_ledger: InMemoryInventoryLedger,
        payment_gateway: FakePaymentGateway,
        booking_repo: InMemoryBookingCommandRepo,
        event,
        buyer_id: UUID,
    ) -> None:
        """
        Given: a gateway that fails every initiation attempt
        When: the buyer books with a payment method
        Then: the booking still exists awaiting payment, inventory stays held, an error is reported
        """
        # Arrange
        vip = make_category(event_id=event.event_id, name='VIP')
        await category_repo.create(category=vip)
        payment_gateway.initiate_failures = 10

        # Act
        result = await create_booking_use_case.create_booking(
            buyer_id=buyer_id,
            event_id=event.event_id,
            line_items=[LineItemRequest(category_id=vip.id, quantity=1)],
            payment_method='phonepe',
        )

        # Assert
        assert result.payment is None
        assert result.payment_error
        assert len(payment_gateway.initiate_calls) == 3
        assert booking_repo.bookings[result.booking.id].status == BookingStatus.AWAITING_PAYMENT
        assert inventory_ledger.reserved(vip.id) == 1

    @pytest.mark.asyncio
    async def test_gateway_rejects__booking_kept_with_payment_error(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        payment_gateway: FakePaymentGateway,
        booking_repo: InMemoryBookingCommandRepo,
        event,
        buyer_id: UUID,
    ) -> None:
        vip = make_category(event_id=event.event_id, name='VIP')
        await category_repo.create(category=vip)
        payment_gateway.initiate_rejected = True

        result = await create_booking_use_case.create_booking(
            buyer_id=buyer_id,
            event_id=event.event_id,
            line_items=[LineItemRequest(category_id=vip.id, quantity=1)],
            payment_method='phonepe',
        )

        assert result.payment is None
        assert 'rejected' in result.payment_error
        assert len(payment_gateway.initiate_calls) == 1
        assert booking_repo.bookings[result.booking.id].status == BookingStatus.AWAITING_PAYMENT

    @pytest.mark.asyncio
    async def test_concurrent_bookings__never_oversell(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        inventory_ledger: InMemoryInventoryLedger,
        booking_repo: InMemoryBookingCommandRepo,
        event,
    ) -> None:
        """
        Given: capacity 10 and 12 buyers asking for 3 units each at the same time
        When: all bookings run concurrently
        Then: exactly 3 succeed and reserved never exceeds capacity
        """
        # Arrange
        category = make_category(event_id=event.event_id, capacity=10, max_per_buyer=5)
        await category_repo.create(category=category)

        async def book() -> bool:
            try:
                await create_booking_use_case.create_booking(
                    buyer_id=uuid_utils.uuid7(),
                    event_id=event.event_id,
                    line_items=[LineItemRequest(category_id=category.id, quantity=3)],
                )
                return True
            except InsufficientInventoryError:
                return False

        # Act
        outcomes = await asyncio.gather(*(book() for _ in range(12)))

        # Assert
        assert outcomes.count(True) == 3
        assert inventory_ledger.reserved(category.id) == 9
        assert len(booking_repo.bookings) == 3

    @pytest.mark.asyncio
    async def test_validation_failures__nothing_reserved(
        self,
        create_booking_use_case: CreateBookingUseCase,
        category_repo: InMemoryTicketCategoryRepo,
        inventory_ledger: InMemoryInventoryLedger,
        event,
        buyer_id: UUID,
    ) -> None:
        # Arrange
        limited = make_category(event_id=event.event_id, name='Limited', max_per_buyer=2)
        closed = make_category(event_id=event.event_id, name='Closed', active=False)
        await category_repo.create(category=limited)
        await category_repo.create(category=closed)

        async def book(*items: LineItemRequest) -> None:
            await create_booking_use_case.create_booking(
                buyer_id=buyer_id, event_id=event.event_id, line_items=list(items)
            )

        # Act & Assert
        with pytest.raises(DomainError):
            await book()
        with pytest.raises(DomainError):
            await book(LineItemRequest(category_id=limited.id, quantity=0))
        with pytest.raises(DomainError):
            await book(
                LineItemRequest(category_id=limited.id, quantity=1),
                LineItemRequest(category_id=limited.id, quantity=1),
            )
        with pytest.raises(LimitExceededError):
            await book(LineItemRequest(category_id=limited.id, quantity=3))
        with pytest.raises(SaleClosedError):
            await book(LineItemRequest(category_id=closed.id, quantity=1))
        with pytest.raises(NotFoundError):
            await book(LineItemRequest(category_id=uuid_utils.uuid7(), quantity=1))

        assert inventory_ledger.reserved(limited.id) == 0
        assert inventory_ledger.released == []

    @pytest.mark.asyncio
    async def test_unknown_event__not_found(
        self, create_booking_use_case: CreateBookingUseCase, buyer_id: UUID
    ) -> None:
        with pytest.raises(NotFoundError):
            await create_booking_use_case.create_booking(
                buyer_id=buyer_id,
                event_id=uuid_utils.uuid7(),
                line_items=[LineItemRequest(category_id=uuid_utils.uuid7(), quantity=1)],
            )
