from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from opentelemetry import trace
from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.ticketing.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.ticketing.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.ticketing.app.command.initiate_payment_use_case import InitiatePaymentUseCase
from src.service.ticketing.app.dto.booking_dto import LineItemRequest
from src.service.ticketing.app.query.get_booking_use_case import GetBookingUseCase
from src.service.ticketing.app.query.list_bookings_use_case import ListBookingsUseCase
from src.service.ticketing.domain.enum.booking_status import BookingStatus
from src.service.ticketing.domain.value_object.contact_info import ContactInfo
from src.service.ticketing.driving_adapter.http_controller.auth.role_auth import (
    get_current_actor_id,
)
from src.service.ticketing.driving_adapter.http_controller.schema.booking_schema import (
    BookingCreateRequest,
    BookingDetailResponse,
    BookingListItemResponse,
    CancelBookingRequest,
    CancelBookingResponse,
    CreateBookingResponse,
    PaymentInitiateRequest,
    PaymentInitiationResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_booking(
    request: BookingCreateRequest,
    buyer_id: UUID = Depends(get_current_actor_id),
    booking_use_case: CreateBookingUseCase = Depends(CreateBookingUseCase.depends),
) -> CreateBookingResponse:
    with tracer.start_as_current_span('controller.create_booking') as span:
        span.set_attribute('event_id', str(request.event_id))
        span.set_attribute('buyer_id', str(buyer_id))
        span.set_attribute('line_items', len(request.line_items))

        result = await booking_use_case.create_booking(
            buyer_id=buyer_id,
            event_id=request.event_id,
            line_items=[
                LineItemRequest(category_id=item.category_id, quantity=item.quantity)
                for item in request.line_items
            ],
            group_mode=request.group_mode,
            payment_method=request.payment_method,
            contact=(
                ContactInfo(email=request.contact.email, phone=request.contact.phone)
                if request.contact
                else None
            ),
            return_url=request.return_url,
        )

        span.set_attribute('booking.id', str(result.booking.id))
        return CreateBookingResponse.from_result(result)


@router.get('')
@Logger.io
async def list_bookings(
    booking_status: Optional[BookingStatus] = Query(default=None, alias='status'),
    upcoming: Optional[bool] = None,
    buyer_id: UUID = Depends(get_current_actor_id),
    use_case: ListBookingsUseCase = Depends(ListBookingsUseCase.depends),
) -> List[BookingListItemResponse]:
    items = await use_case.list_buyer_bookings(
        buyer_id=buyer_id, status=booking_status, upcoming=upcoming
    )
    return [BookingListItemResponse.from_item(item) for item in items]


@router.get('/{booking_id}')
@Logger.io
async def get_booking(
    booking_id: UtilsUUID7,
    buyer_id: UUID = Depends(get_current_actor_id),
    use_case: GetBookingUseCase = Depends(GetBookingUseCase.depends),
) -> BookingDetailResponse:
    detail = await use_case.get_booking(booking_id=booking_id, buyer_id=buyer_id)
    return BookingDetailResponse.from_detail(detail)


@router.post('/{booking_id}/cancel', status_code=status.HTTP_200_OK)
@Logger.io
async def cancel_booking(
    booking_id: UtilsUUID7,
    request: CancelBookingRequest | None = None,
    actor_id: UUID = Depends(get_current_actor_id),
    use_case: CancelBookingUseCase = Depends(CancelBookingUseCase.depends),
) -> CancelBookingResponse:
    result = await use_case.cancel(
        booking_id=booking_id,
        actor_id=actor_id,
        reason=request.reason if request else None,
    )
    return CancelBookingResponse.from_result(result)


@router.post('/{booking_id}/payment', status_code=status.HTTP_200_OK)
@Logger.io
async def initiate_payment(
    booking_id: UtilsUUID7,
    request: PaymentInitiateRequest,
    buyer_id: UUID = Depends(get_current_actor_id),
    use_case: InitiatePaymentUseCase = Depends(InitiatePaymentUseCase.depends),
) -> PaymentInitiationResponse:
    initiation = await use_case.initiate(
        booking_id=booking_id,
        buyer_id=buyer_id,
        method=request.method,
        return_url=request.return_url,
    )
    return PaymentInitiationResponse.from_initiation(initiation)
