from typing import Any

from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.domain.enum.notification_type import NotificationType


async def notify_best_effort(
    publisher: INotificationPublisher,
    *,
    user_id: UUID,
    notification_type: NotificationType,
    data: dict[str, Any],
) -> None:
    """Notifications never unwind a committed state transition; failures are logged and counted."""
    try:
        await publisher.notify(user_id=user_id, notification_type=notification_type, data=data)
    except Exception as e:
        metrics.record_collaborator_failure(
            collaborator='notification', operation=notification_type
        )
        Logger.base.warning(
            f'⚠️ [NOTIFY] {notification_type} to user {user_id} failed: {type(e).__name__}: {e}'
        )
