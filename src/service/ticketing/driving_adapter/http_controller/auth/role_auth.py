"""
Caller identity

The service never authenticates: the upstream gateway has already done so and
forwards the caller's id in the `X-User-Id` header.
"""

from fastapi import Header
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.exception.exceptions import AuthenticationError


USER_ID_HEADER = 'X-User-Id'


async def get_current_actor_id(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
) -> UUID:
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span('auth.current_actor') as span:
        if not x_user_id:
            raise AuthenticationError(f'Missing {USER_ID_HEADER} header')
        try:
            actor_id = UUID(x_user_id.strip())
        except ValueError:
            raise AuthenticationError(f'Invalid {USER_ID_HEADER} header')
        span.set_attribute('user.id', str(actor_id))
        return actor_id
