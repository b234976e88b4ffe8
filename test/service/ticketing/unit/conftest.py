"""
Unit test configuration for the ticketing service.

Everything here runs against the in-memory ports in `test.service.ticketing.fakes`;
no Kvrocks, PostgreSQL or payment gateway is needed.
"""

from datetime import datetime, timedelta, timezone

import pytest
import uuid_utils
from uuid_utils import UUID

from src.service.ticketing.app.command.apply_payment_result_use_case import (
    ApplyPaymentResultUseCase,
)
from src.service.ticketing.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.ticketing.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.ticketing.app.command.initiate_payment_use_case import InitiatePaymentUseCase
from src.service.ticketing.domain.credential_issuer import CredentialIssuer
from src.service.ticketing.domain.refund_policy import RefundPolicy
from test.service.ticketing.fakes import (
    FakeBuyerDirectory,
    FakeEventDirectory,
    FakePaymentGateway,
    InMemoryBookingCommandRepo,
    InMemoryInventoryLedger,
    InMemoryTicketCategoryRepo,
    InMemoryTicketRepo,
    RecordingNotificationPublisher,
)


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)


@pytest.fixture
def buyer_id(buyer_directory: FakeBuyerDirectory) -> UUID:
    buyer_id = uuid_utils.uuid7()
    buyer_directory.add(buyer_id, email='buyer@example.com')
    return buyer_id


@pytest.fixture
def category_repo() -> InMemoryTicketCategoryRepo:
    return InMemoryTicketCategoryRepo()


@pytest.fixture
def inventory_ledger(category_repo: InMemoryTicketCategoryRepo) -> InMemoryInventoryLedger:
    return InMemoryInventoryLedger(category_repo)


@pytest.fixture
def ticket_repo() -> InMemoryTicketRepo:
    return InMemoryTicketRepo()


@pytest.fixture
def booking_repo(ticket_repo: InMemoryTicketRepo) -> InMemoryBookingCommandRepo:
    return InMemoryBookingCommandRepo(ticket_repo)


@pytest.fixture
def event_directory() -> FakeEventDirectory:
    return FakeEventDirectory()


@pytest.fixture
def buyer_directory() -> FakeBuyerDirectory:
    return FakeBuyerDirectory()


@pytest.fixture
def payment_gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture
def notification_publisher() -> RecordingNotificationPublisher:
    return RecordingNotificationPublisher()


@pytest.fixture
def credential_issuer() -> CredentialIssuer:
    return CredentialIssuer(secret_bytes=20, code_length=6)


@pytest.fixture
def refund_policy() -> RefundPolicy:
    return RefundPolicy.from_table(blackout_hours=24, tiers=[(72, 100), (48, 50)])


@pytest.fixture
def initiate_payment_use_case(
    booking_repo: InMemoryBookingCommandRepo,
    buyer_directory: FakeBuyerDirectory,
    payment_gateway: FakePaymentGateway,
    apply_payment_result_use_case: ApplyPaymentResultUseCase,
) -> InitiatePaymentUseCase:
    return InitiatePaymentUseCase(
        booking_command_repo=booking_repo,
        buyer_directory=buyer_directory,
        payment_gateway=payment_gateway,
        apply_payment_result_use_case=apply_payment_result_use_case,
        max_attempts=3,
    )


@pytest.fixture
def create_booking_use_case(
    category_repo: InMemoryTicketCategoryRepo,
    inventory_ledger: InMemoryInventoryLedger,
    booking_repo: InMemoryBookingCommandRepo,
    event_directory: FakeEventDirectory,
    credential_issuer: CredentialIssuer,
    notification_publisher: RecordingNotificationPublisher,
    initiate_payment_use_case: InitiatePaymentUseCase,
) -> CreateBookingUseCase:
    return CreateBookingUseCase(
        ticket_category_repo=category_repo,
        inventory_ledger=inventory_ledger,
        booking_command_repo=booking_repo,
        event_directory=event_directory,
        credential_issuer=credential_issuer,
        notification_publisher=notification_publisher,
        initiate_payment_use_case=initiate_payment_use_case,
    )


@pytest.fixture
def apply_payment_result_use_case(
    booking_repo: InMemoryBookingCommandRepo,
    notification_publisher: RecordingNotificationPublisher,
) -> ApplyPaymentResultUseCase:
    return ApplyPaymentResultUseCase(
        booking_command_repo=booking_repo, notification_publisher=notification_publisher
    )


@pytest.fixture
def cancel_booking_use_case(
    booking_repo: InMemoryBookingCommandRepo,
    inventory_ledger: InMemoryInventoryLedger,
    event_directory: FakeEventDirectory,
    payment_gateway: FakePaymentGateway,
    notification_publisher: RecordingNotificationPublisher,
    refund_policy: RefundPolicy,
) -> CancelBookingUseCase:
    return CancelBookingUseCase(
        booking_command_repo=booking_repo,
        inventory_ledger=inventory_ledger,
        event_directory=event_directory,
        payment_gateway=payment_gateway,
        notification_publisher=notification_publisher,
        refund_policy=refund_policy,
    )


@pytest.fixture
def check_in_window() -> dict[str, timedelta]:
    return {'opens_before_start': timedelta(hours=2), 'default_event_duration': timedelta(hours=6)}
