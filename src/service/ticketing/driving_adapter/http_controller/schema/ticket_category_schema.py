from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.platform.types import UtilsUUID7
from src.service.ticketing.domain.entity.ticket_category_entity import TicketCategory


class TicketCategoryCreateRequest(BaseModel):
    name: str
    unit_price: int  # minor currency units
    currency: str = 'INR'
    capacity: int
    max_per_buyer: Optional[int] = None
    sale_start: Optional[datetime] = None
    sale_end: Optional[datetime] = None
    active: bool = True
    description: str = ''

    class Config:
        json_schema_extra = {
            'example': {
                'name': 'VIP',
                'unit_price': 250000,
                'currency': 'INR',
                'capacity': 100,
                'max_per_buyer': 4,
                'sale_start': '2025-01-01T00:00:00Z',
                'sale_end': '2025-03-01T00:00:00Z',
                'description': 'Front rows with lounge access',
            }
        }


class TicketCategoryUpdateRequest(BaseModel):
    """Only the provided fields change; capacity may only grow"""

    name: Optional[str] = None
    description: Optional[str] = None
    unit_price: Optional[int] = None
    capacity: Optional[int] = None
    max_per_buyer: Optional[int] = None
    sale_start: Optional[datetime] = None
    sale_end: Optional[datetime] = None
    active: Optional[bool] = None

    class Config:
        json_schema_extra = {'example': {'capacity': 150, 'active': True}}


class TicketCategoryResponse(BaseModel):
    id: UtilsUUID7
    event_id: UtilsUUID7
    name: str
    description: str
    unit_price: int
    currency: str
    capacity: int
    reserved: int
    available: int
    max_per_buyer: int
    sale_start: Optional[datetime] = None
    sale_end: Optional[datetime] = None
    active: bool

    @classmethod
    def from_entity(cls, category: TicketCategory) -> 'TicketCategoryResponse':
        return cls(
            id=category.id,
            event_id=category.event_id,
            name=category.name,
            description=category.description,
            unit_price=category.unit_price,
            currency=category.currency,
            capacity=category.capacity,
            reserved=category.reserved,
            available=category.available,
            max_per_buyer=category.max_per_buyer,
            sale_start=category.sale_start,
            sale_end=category.sale_end,
            active=category.active,
        )
