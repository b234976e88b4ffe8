from fastapi import APIRouter, Depends, Header
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.handle_payment_callback_use_case import (
    HandlePaymentCallbackUseCase,
)
from src.service.ticketing.app.command.sync_payment_status_use_case import (
    SyncPaymentStatusUseCase,
)
from src.service.ticketing.driving_adapter.http_controller.auth.role_auth import (
    get_current_actor_id,
)
from src.service.ticketing.driving_adapter.http_controller.schema.payment_schema import (
    PaymentCallbackRequest,
    ReconcileResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('/callback')
@Logger.io
async def payment_callback(
    request: PaymentCallbackRequest,
    x_verify: str = Header(default='', alias='X-VERIFY'),
    use_case: HandlePaymentCallbackUseCase = Depends(HandlePaymentCallbackUseCase.depends),
) -> ReconcileResponse:
    """
    Gateway webhook. Called server-to-server, so no X-User-Id is expected;
    authenticity comes from the X-VERIFY checksum. Redelivery is safe.
    """
    with tracer.start_as_current_span('controller.payment_callback'):
        result = await use_case.handle(payload=request.response, signature=x_verify)
        return ReconcileResponse.from_result(result)


@router.post('/{transaction_id}/sync')
@Logger.io
async def sync_payment_status(
    transaction_id: str,
    actor_id: UUID = Depends(get_current_actor_id),
    use_case: SyncPaymentStatusUseCase = Depends(SyncPaymentStatusUseCase.depends),
) -> ReconcileResponse:
    result = await use_case.sync(transaction_id=transaction_id, buyer_id=actor_id)
    return ReconcileResponse.from_result(result)
