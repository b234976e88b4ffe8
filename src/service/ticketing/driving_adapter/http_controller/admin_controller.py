from fastapi import APIRouter, Depends
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.expire_stale_bookings_use_case import (
    ExpireStaleBookingsUseCase,
)
from src.service.ticketing.driving_adapter.http_controller.auth.role_auth import (
    get_current_actor_id,
)
from src.service.ticketing.driving_adapter.http_controller.schema.payment_schema import (
    ExpireStaleBookingsResponse,
)


router = APIRouter()


@router.post('/booking/expire')
@Logger.io
async def expire_stale_bookings(
    actor_id: UUID = Depends(get_current_actor_id),
    use_case: ExpireStaleBookingsUseCase = Depends(ExpireStaleBookingsUseCase.depends),
) -> ExpireStaleBookingsResponse:
    result = await use_case.expire()
    Logger.base.info(
        f'⏰ [EXPIRY] Sweep requested by {actor_id}: cancelled={len(result.cancelled)} '
        f'reconciled={len(result.reconciled)} skipped={len(result.skipped)}'
    )
    return ExpireStaleBookingsResponse.from_result(result)
