from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.ticketing.app.command.check_in_ticket_use_case import CheckInTicketUseCase
from src.service.ticketing.app.command.transfer_ticket_use_case import TransferTicketUseCase
from src.service.ticketing.app.query.get_ticket_use_case import GetTicketUseCase
from src.service.ticketing.app.query.list_event_tickets_use_case import ListEventTicketsUseCase
from src.service.ticketing.app.query.list_my_tickets_use_case import ListMyTicketsUseCase
from src.service.ticketing.app.query.verify_ticket_by_code_use_case import (
    VerifyTicketByCodeUseCase,
)
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.value_object.presented_credential import PresentedCredential
from src.service.ticketing.driving_adapter.http_controller.auth.role_auth import (
    get_current_actor_id,
)
from src.service.ticketing.driving_adapter.http_controller.schema.ticket_schema import (
    CheckInRequest,
    TicketResponse,
    TransferRequest,
    VerifyTicketRequest,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('/ticket/{ticket_id}/check_in')
@Logger.io
async def check_in_ticket(
    ticket_id: UtilsUUID7,
    request: CheckInRequest,
    verifier_id: UUID = Depends(get_current_actor_id),
    use_case: CheckInTicketUseCase = Depends(CheckInTicketUseCase.depends),
) -> TicketResponse:
    with tracer.start_as_current_span('controller.check_in_ticket') as span:
        span.set_attribute('ticket_id', str(ticket_id))
        span.set_attribute('verifier_id', str(verifier_id))

        ticket = await use_case.check_in(
            ticket_id=ticket_id,
            presented=PresentedCredential(
                qr_data=request.qr_data,
                verification_code=request.verification_code,
                scan_mode=request.scan_mode,
            ),
            verifier_id=verifier_id,
        )
        return TicketResponse.from_entity(ticket)


@router.post('/ticket/{ticket_id}/transfer')
@Logger.io
async def transfer_ticket(
    ticket_id: UtilsUUID7,
    request: TransferRequest,
    owner_id: UUID = Depends(get_current_actor_id),
    use_case: TransferTicketUseCase = Depends(TransferTicketUseCase.depends),
) -> TicketResponse:
    # The sender loses access to the credential once the transfer lands
    ticket = await use_case.transfer(
        ticket_id=ticket_id,
        from_owner_id=owner_id,
        recipient_id=request.recipient_id,
        message=request.message,
    )
    return TicketResponse.from_entity(ticket)


@router.post('/event/{event_id}/verify_ticket')
@Logger.io
async def verify_ticket_by_code(
    event_id: UtilsUUID7,
    request: VerifyTicketRequest,
    verifier_id: UUID = Depends(get_current_actor_id),
    use_case: VerifyTicketByCodeUseCase = Depends(VerifyTicketByCodeUseCase.depends),
) -> TicketResponse:
    ticket = await use_case.verify(event_id=event_id, code=request.code)
    return TicketResponse.from_entity(ticket)


@router.get('/ticket')
@Logger.io
async def list_my_tickets(
    event_id: Optional[UtilsUUID7] = None,
    owner_id: UUID = Depends(get_current_actor_id),
    use_case: ListMyTicketsUseCase = Depends(ListMyTicketsUseCase.depends),
) -> List[TicketResponse]:
    tickets = await use_case.list_by_owner(owner_id=owner_id, event_id=event_id)
    return [TicketResponse.from_entity(ticket, include_credential=True) for ticket in tickets]


@router.get('/ticket/{ticket_id}')
@Logger.io
async def get_ticket(
    ticket_id: UtilsUUID7,
    owner_id: UUID = Depends(get_current_actor_id),
    use_case: GetTicketUseCase = Depends(GetTicketUseCase.depends),
) -> TicketResponse:
    ticket = await use_case.get_ticket(ticket_id=ticket_id, owner_id=owner_id)
    return TicketResponse.from_entity(ticket, include_credential=True)


@router.get('/event/{event_id}/ticket')
@Logger.io
async def list_event_tickets(
    event_id: UtilsUUID7,
    ticket_status: Optional[TicketStatus] = Query(default=None, alias='status'),
    checked_in: Optional[bool] = None,
    page: int = 1,
    limit: int = 50,
    actor_id: UUID = Depends(get_current_actor_id),
    use_case: ListEventTicketsUseCase = Depends(ListEventTicketsUseCase.depends),
) -> List[TicketResponse]:
    tickets = await use_case.list_by_event(
        event_id=event_id,
        actor_id=actor_id,
        status=ticket_status,
        checked_in=checked_in,
        page=page,
        limit=limit,
    )
    return [TicketResponse.from_entity(ticket) for ticket in tickets]
