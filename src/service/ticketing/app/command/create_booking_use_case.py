from datetime import datetime, timezone
import time
from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
from uuid_utils import UUID
import uuid_utils

from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    AuthenticationError,
    DomainError,
    GatewayUnavailableError,
    InsufficientInventoryError,
    NotFoundError,
    PaymentRejectedError,
    SaleClosedError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.command.initiate_payment_use_case import InitiatePaymentUseCase
from src.service.ticketing.app.command.notification_helper import notify_best_effort
from src.service.ticketing.app.dto.booking_dto import CreateBookingResult, LineItemRequest
from src.service.ticketing.app.dto.payment_dto import PaymentHandle
from src.service.ticketing.app.dto.reservation_outcome import ReservationOutcome
from src.service.ticketing.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.ticketing.app.interface.i_event_directory import IEventDirectory
from src.service.ticketing.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.app.interface.i_ticket_category_repo import ITicketCategoryRepo
from src.service.ticketing.domain.credential_issuer import CredentialIssuer
from src.service.ticketing.domain.entity.booking_entity import Booking
from src.service.ticketing.domain.entity.ticket_category_entity import TicketCategory
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.booking_status import BookingStatus
from src.service.ticketing.domain.enum.notification_type import NotificationType
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.value_object.admission import (
    Admission,
    GroupAdmission,
    IndividualAdmission,
)
from src.service.ticketing.domain.value_object.contact_info import ContactInfo
from src.service.ticketing.domain.value_object.line_item import LineItem


class CreateBookingUseCase:
    """
    Book one or more ticket categories of an event, all-or-nothing.

    Flow:
    1. Validate the request and every selected category (no writes yet)
    2. Reserve inventory per category through the ledger; on any failure release
       what this attempt already reserved
    3. Issue tickets + credentials and persist booking and tickets together
       (persistence failure also releases the reservations)
    4. Free bookings are confirmed on the spot; paid bookings with a chosen method
       go to the gateway. Initiation failure keeps the reservation and the booking
       stays awaiting_payment until retried or expired.
    """

    def __init__(
        self,
        *,
        ticket_category_repo: ITicketCategoryRepo,
        inventory_ledger: IInventoryLedger,
        booking_command_repo: IBookingCommandRepo,
        event_directory: IEventDirectory,
        credential_issuer: CredentialIssuer,
        notification_publisher: INotificationPublisher,
        initiate_payment_use_case: InitiatePaymentUseCase,
    ) -> None:
        self.ticket_category_repo = ticket_category_repo
        self.inventory_ledger = inventory_ledger
        self.booking_command_repo = booking_command_repo
        self.event_directory = event_directory
        self.credential_issuer = credential_issuer
        self.notification_publisher = notification_publisher
        self.initiate_payment_use_case = initiate_payment_use_case
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        ticket_category_repo: ITicketCategoryRepo = Depends(
            Provide[Container.ticket_category_repo]
        ),
        inventory_ledger: IInventoryLedger = Depends(Provide[Container.inventory_ledger]),
        booking_command_repo: IBookingCommandRepo = Depends(
            Provide[Container.booking_command_repo]
        ),
        event_directory: IEventDirectory = Depends(Provide[Container.event_directory]),
        credential_issuer: CredentialIssuer = Depends(Provide[Container.credential_issuer]),
        notification_publisher: INotificationPublisher = Depends(
            Provide[Container.notification_publisher]
        ),
        initiate_payment_use_case: InitiatePaymentUseCase = Depends(
            InitiatePaymentUseCase.depends
        ),
    ) -> Self:
        return cls(
            ticket_category_repo=ticket_category_repo,
            inventory_ledger=inventory_ledger,
            booking_command_repo=booking_command_repo,
            event_directory=event_directory,
            credential_issuer=credential_issuer,
            notification_publisher=notification_publisher,
            initiate_payment_use_case=initiate_payment_use_case,
        )

    @Logger.io
    async def create_booking(
        self,
        *,
        buyer_id: UUID,
        event_id: UUID,
        line_items: List[LineItemRequest],
        group_mode: bool = False,
        payment_method: Optional[str] = None,
        contact: Optional[ContactInfo] = None,
        return_url: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CreateBookingResult:
        started = time.perf_counter()
        now = now or datetime.now(timezone.utc)
        booking_id = uuid_utils.uuid7()

        with self.tracer.start_as_current_span(
            'use_case.create_booking',
            attributes={'booking.id': str(booking_id), 'event.id': str(event_id)},
        ):
            self._validate_request(buyer_id=buyer_id, line_items=line_items)

            if not await self.event_directory.get_event(event_id=event_id):
                raise NotFoundError('Event not found')

            # Step 1: Fail fast - every category must pass before anything is reserved
            categories = await self._load_and_validate_categories(
                event_id=event_id, line_items=line_items, now=now
            )

            # Step 2: Reserve (compensating release on any later failure)
            reserved: list[LineItemRequest] = []
            try:
                for item in line_items:
                    await self._reserve(
                        category=categories[item.category_id], quantity=item.quantity, now=now
                    )
                    reserved.append(item)

                # Step 3: Issue tickets and persist
                priced_items = [
                    LineItem(
                        category_id=item.category_id,
                        name=categories[item.category_id].name,
                        quantity=item.quantity,
                        unit_price=categories[item.category_id].unit_price,
                    )
                    for item in line_items
                ]
                is_free = sum(item.subtotal for item in priced_items) == 0
                tickets = self._issue_tickets(
                    booking_id=booking_id,
                    event_id=event_id,
                    owner_id=buyer_id,
                    line_items=priced_items,
                    group_mode=group_mode,
                    status=TicketStatus.ACTIVE if is_free else TicketStatus.PENDING,
                )
                booking = Booking.create(
                    id=booking_id,
                    buyer_id=buyer_id,
                    event_id=event_id,
                    line_items=priced_items,
                    currency=categories[line_items[0].category_id].currency,
                    ticket_ids=[ticket.id for ticket in tickets],
                    is_group=group_mode,
                    payment_method=payment_method,
                    contact=contact,
                )
                booking = await self.booking_command_repo.create_with_tickets(
                    booking=booking, tickets=tickets
                )
            except Exception:
                await self._release(reserved)
                raise

            Logger.base.info(
                f'📝 [CREATE-BOOKING] {booking.booking_number} ({booking.id}) '
                f'buyer={buyer_id} tickets={len(tickets)} total={booking.total_amount} '
                f'status={booking.status}'
            )

            # Step 4: Confirmation or payment initiation (outside the persistence step)
            payment: Optional[PaymentHandle] = None
            payment_error: Optional[str] = None
            if booking.status == BookingStatus.CONFIRMED:
                await notify_best_effort(
                    self.notification_publisher,
                    user_id=booking.buyer_id,
                    notification_type=NotificationType.BOOKING_CONFIRMED,
                    data={'booking_id': str(booking.id), 'booking_number': booking.booking_number},
                )
            elif booking.status == BookingStatus.AWAITING_PAYMENT:
                try:
                    payment = await self.initiate_payment_use_case.request_payment(
                        booking=booking, return_url=return_url
                    )
                    booking = booking.attach_transaction(transaction_id=payment.transaction_id)
                except (GatewayUnavailableError, PaymentRejectedError) as e:
                    payment_error = e.message

            metrics.record_booking_created(
                status=booking.status.value,
                group_mode=group_mode,
                duration=time.perf_counter() - started,
            )
            return CreateBookingResult(
                booking=booking, tickets=tickets, payment=payment, payment_error=payment_error
            )

    @staticmethod
    def _validate_request(*, buyer_id: UUID, line_items: List[LineItemRequest]) -> None:
        if not buyer_id:
            raise AuthenticationError('Buyer identity is required')
        if not line_items:
            raise DomainError('At least one ticket must be selected')
        if any(item.quantity < 1 for item in line_items):
            raise DomainError('Quantity must be at least 1')
        category_ids = [item.category_id for item in line_items]
        if len(set(category_ids)) != len(category_ids):
            raise DomainError('Each ticket category may appear only once per booking')

    async def _load_and_validate_categories(
        self, *, event_id: UUID, line_items: List[LineItemRequest], now: datetime
    ) -> dict[UUID, TicketCategory]:
        categories = await self.ticket_category_repo.get_by_ids(
            category_ids=[item.category_id for item in line_items]
        )
        for item in line_items:
            category = categories.get(item.category_id)
            if category is None or category.event_id != event_id:
                raise NotFoundError(f'Ticket category {item.category_id} not found for this event')
            category.validate_selection(quantity=item.quantity, now=now)

        currencies = {categories[item.category_id].currency for item in line_items}
        if len(currencies) > 1:
            raise DomainError('All selected tickets must be priced in the same currency')
        return categories

    async def _reserve(self, *, category: TicketCategory, quantity: int, now: datetime) -> None:
        outcome = await self.inventory_ledger.try_reserve(
            category_id=category.id, quantity=quantity, now=now
        )
        metrics.record_reservation(result=outcome.value)

        if outcome == ReservationOutcome.RESERVED:
            return
        if outcome == ReservationOutcome.INSUFFICIENT_CAPACITY:
            raise InsufficientInventoryError(f'Not enough tickets left for {category.name}')
        if outcome == ReservationOutcome.CATEGORY_CLOSED:
            raise SaleClosedError(f'Ticket sales are closed for {category.name}')
        raise NotFoundError(f'Ticket category {category.id} not found')

    async def _release(self, reserved: List[LineItemRequest]) -> None:
        for item in reserved:
            try:
                await self.inventory_ledger.release(
                    category_id=item.category_id, quantity=item.quantity
                )
                metrics.record_release(reason='compensation', quantity=item.quantity)
            except Exception as e:
                # Original error is re-raised by the caller; this one needs an operator
                Logger.base.error(
                    f'❌ [CREATE-BOOKING] Compensating release of {item.quantity} x '
                    f'{item.category_id} failed: {type(e).__name__}: {e}'
                )

    def _issue_tickets(
        self,
        *,
        booking_id: UUID,
        event_id: UUID,
        owner_id: UUID,
        line_items: List[LineItem],
        group_mode: bool,
        status: TicketStatus,
    ) -> List[Ticket]:
        admissions: List[Admission]
        if group_mode:
            admissions = [GroupAdmission(line_items=line_items)]
        else:
            admissions = [
                IndividualAdmission(
                    category_id=item.category_id, name=item.name, unit_price=item.unit_price
                )
                for item in line_items
                for _ in range(item.quantity)
            ]

        tickets = []
        for admission in admissions:
            ticket_id, ticket_number = Ticket.new_identity(admission)
            credential = self.credential_issuer.issue(
                ticket_id=ticket_id,
                ticket_number=ticket_number,
                event_id=event_id,
                admission=admission,
            )
            tickets.append(
                Ticket.issue(
                    id=ticket_id,
                    ticket_number=ticket_number,
                    booking_id=booking_id,
                    event_id=event_id,
                    owner_id=owner_id,
                    admission=admission,
                    credential=credential,
                    status=status,
                )
            )
        return tickets
