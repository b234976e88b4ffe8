"""
Kvrocks Notification Publisher

Publishes user notifications on `{prefix}:{user_id}` via Kvrocks pub/sub.
Delivery (email, SMS, push) belongs to whoever subscribes.
"""

import time
from typing import Any

import orjson
from redis.asyncio import Redis as AsyncRedis
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.domain.enum.notification_type import NotificationType


class KvrocksNotificationPublisherImpl(INotificationPublisher):
    def __init__(self, *, redis_client: AsyncRedis, channel_prefix: str = 'notification') -> None:
        self._redis = redis_client
        self._channel_prefix = channel_prefix

    def _channel_name(self, *, user_id: UUID) -> str:
        return f'{self._channel_prefix}:{user_id}'

    @Logger.io
    async def notify(
        self, *, user_id: UUID, notification_type: NotificationType, data: dict[str, Any]
    ) -> None:
        channel = self._channel_name(user_id=user_id)
        message = orjson.dumps(
            {
                'type': notification_type.value,
                'user_id': str(user_id),
                'data': data,
                'timestamp': time.time(),
            },
            default=str,
        )

        subscribers = await self._redis.publish(channel, message)
        Logger.base.info(
            f'📡 [NOTIFY] {notification_type} published to {channel}: subscribers={subscribers}'
        )
