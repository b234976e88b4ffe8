from typing import List

from fastapi import APIRouter, Depends, status
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.ticketing.app.command.create_ticket_category_use_case import (
    CreateTicketCategoryUseCase,
)
from src.service.ticketing.app.command.update_ticket_category_use_case import (
    UpdateTicketCategoryUseCase,
)
from src.service.ticketing.app.dto.ticket_category_dto import TicketCategoryChanges
from src.service.ticketing.app.query.list_ticket_categories_use_case import (
    ListTicketCategoriesUseCase,
)
from src.service.ticketing.driving_adapter.http_controller.auth.role_auth import (
    get_current_actor_id,
)
from src.service.ticketing.driving_adapter.http_controller.schema.ticket_category_schema import (
    TicketCategoryCreateRequest,
    TicketCategoryResponse,
    TicketCategoryUpdateRequest,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.get('/event/{event_id}/ticket_category')
@Logger.io
async def list_ticket_categories(
    event_id: UtilsUUID7,
    include_inactive: bool = False,
    use_case: ListTicketCategoriesUseCase = Depends(ListTicketCategoriesUseCase.depends),
) -> List[TicketCategoryResponse]:
    categories = await use_case.list_by_event(
        event_id=event_id, include_inactive=include_inactive
    )
    return [TicketCategoryResponse.from_entity(category) for category in categories]


@router.post('/event/{event_id}/ticket_category', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_ticket_category(
    event_id: UtilsUUID7,
    request: TicketCategoryCreateRequest,
    actor_id: UUID = Depends(get_current_actor_id),
    use_case: CreateTicketCategoryUseCase = Depends(CreateTicketCategoryUseCase.depends),
) -> TicketCategoryResponse:
    with tracer.start_as_current_span('controller.create_ticket_category') as span:
        span.set_attribute('event_id', str(event_id))
        span.set_attribute('actor_id', str(actor_id))

        category = await use_case.create(
            event_id=event_id,
            name=request.name,
            unit_price=request.unit_price,
            currency=request.currency,
            capacity=request.capacity,
            max_per_buyer=request.max_per_buyer,
            sale_start=request.sale_start,
            sale_end=request.sale_end,
            active=request.active,
            description=request.description,
        )
        return TicketCategoryResponse.from_entity(category)


@router.patch('/ticket_category/{category_id}')
@Logger.io
async def update_ticket_category(
    category_id: UtilsUUID7,
    request: TicketCategoryUpdateRequest,
    actor_id: UUID = Depends(get_current_actor_id),
    use_case: UpdateTicketCategoryUseCase = Depends(UpdateTicketCategoryUseCase.depends),
) -> TicketCategoryResponse:
    category = await use_case.update(
        category_id=category_id,
        changes=TicketCategoryChanges(**request.model_dump(exclude_unset=True)),
    )
    return TicketCategoryResponse.from_entity(category)
