"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings, settings
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.ticketing.domain.credential_issuer import CredentialIssuer
from src.service.ticketing.domain.refund_policy import RefundPolicy
from src.service.ticketing.driven_adapter.notification.kvrocks_notification_publisher_impl import (
    KvrocksNotificationPublisherImpl,
)
from src.service.ticketing.driven_adapter.payment.phonepe_gateway_impl import PhonePeGatewayImpl
from src.service.ticketing.driven_adapter.repo.booking_command_repo_impl import (
    BookingCommandRepoImpl,
)
from src.service.ticketing.driven_adapter.repo.buyer_directory_impl import BuyerDirectoryImpl
from src.service.ticketing.driven_adapter.repo.event_directory_impl import EventDirectoryImpl
from src.service.ticketing.driven_adapter.repo.inventory_ledger_impl import InventoryLedgerImpl
from src.service.ticketing.driven_adapter.repo.ticket_category_repo_impl import (
    TicketCategoryRepoImpl,
)
from src.service.ticketing.driven_adapter.repo.ticket_repo_impl import TicketRepoImpl


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Domain services
    credential_issuer = providers.Singleton(
        CredentialIssuer,
        secret_bytes=settings.CREDENTIAL_SECRET_BYTES,
        code_length=settings.VERIFICATION_CODE_LENGTH,
    )
    refund_policy = providers.Singleton(
        RefundPolicy.from_table,
        blackout_hours=settings.CANCELLATION_BLACKOUT_HOURS,
        tiers=settings.REFUND_TIER_TABLE,
    )

    # Repositories (stateless - acquire from the asyncpg pool per call)
    ticket_category_repo = providers.Singleton(TicketCategoryRepoImpl)
    inventory_ledger = providers.Singleton(InventoryLedgerImpl)
    booking_command_repo = providers.Singleton(BookingCommandRepoImpl)
    ticket_repo = providers.Singleton(TicketRepoImpl)

    # Read-only collaborators
    event_directory = providers.Singleton(EventDirectoryImpl)
    buyer_directory = providers.Singleton(BuyerDirectoryImpl)

    # External gateway (owns an httpx.AsyncClient; closed in the app lifespan)
    payment_gateway = providers.Singleton(PhonePeGatewayImpl)

    # Kvrocks pub/sub notifications
    notification_publisher = providers.Singleton(
        KvrocksNotificationPublisherImpl,
        redis_client=providers.Factory(kvrocks_client.get_client),
        channel_prefix=settings.NOTIFICATION_CHANNEL_PREFIX,
    )


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()
