from datetime import datetime, timezone
from typing import Optional
from uuid_utils import UUID

import attrs
import uuid_utils

from src.platform.exception.exceptions import (
    DomainError,
    InsufficientInventoryError,
    LimitExceededError,
    SaleClosedError,
)
from src.platform.logging.loguru_io import Logger


@attrs.define
class TicketCategory:
    id: UUID
    event_id: UUID
    name: str
    unit_price: int  # minor currency units
    currency: str
    capacity: int
    reserved: int = 0
    max_per_buyer: int = 10
    sale_start: Optional[datetime] = None
    sale_end: Optional[datetime] = None
    active: bool = True
    description: str = ''
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def available(self) -> int:
        return max(self.capacity - self.reserved, 0)

    def is_on_sale(self, now: datetime) -> bool:
        if not self.active:
            return False
        if self.sale_start and now < self.sale_start:
            return False
        if self.sale_end and now > self.sale_end:
            return False
        return True

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        event_id: UUID,
        name: str,
        unit_price: int,
        currency: str,
        capacity: int,
        max_per_buyer: int,
        sale_start: Optional[datetime] = None,
        sale_end: Optional[datetime] = None,
        active: bool = True,
        description: str = '',
    ) -> 'TicketCategory':
        if not name.strip():
            raise DomainError('Ticket category name is required')
        if unit_price < 0:
            raise DomainError('Price cannot be negative')
        if capacity < 1:
            raise DomainError('Capacity must be at least 1')
        _validate_sale_settings(
            max_per_buyer=max_per_buyer, sale_start=sale_start, sale_end=sale_end
        )

        now = datetime.now(timezone.utc)
        return cls(
            id=uuid_utils.uuid7(),
            event_id=event_id,
            name=name.strip(),
            unit_price=unit_price,
            currency=currency.upper(),
            capacity=capacity,
            reserved=0,
            max_per_buyer=max_per_buyer,
            sale_start=sale_start or now,
            sale_end=sale_end,
            active=active,
            description=description,
            created_at=now,
            updated_at=now,
        )

    @Logger.io
    def validate_selection(self, *, quantity: int, now: datetime) -> None:
        """
        Pre-flight check for a booking line item.

        Raises:
            SaleClosedError: category inactive or outside its sale window
            LimitExceededError: quantity above the per-buyer limit
            InsufficientInventoryError: not enough units left
        """
        if not self.is_on_sale(now):
            raise SaleClosedError(f'Ticket sales are closed for {self.name}')
        if quantity > self.max_per_buyer:
            raise LimitExceededError(
                f'Cannot book more than {self.max_per_buyer} tickets of {self.name}',
                max_per_buyer=self.max_per_buyer,
            )
        if quantity > self.available:
            raise InsufficientInventoryError(
                f'Only {self.available} tickets available for {self.name}',
                available=self.available,
            )

    @Logger.io
    def revise(
        self,
        *,
        name: Optional[str] = None,
        description: Optional[str] = None,
        unit_price: Optional[int] = None,
        capacity: Optional[int] = None,
        max_per_buyer: Optional[int] = None,
        sale_start: Optional[datetime] = None,
        sale_end: Optional[datetime] = None,
        active: Optional[bool] = None,
    ) -> 'TicketCategory':
        """Admin edit. Capacity may only grow; `reserved` is never touched here."""
        if capacity is not None and capacity < self.capacity:
            raise DomainError(
                f'Capacity can only be increased (current {self.capacity}, requested {capacity})'
            )
        if unit_price is not None and unit_price < 0:
            raise DomainError('Price cannot be negative')
        if name is not None and not name.strip():
            raise DomainError('Ticket category name is required')

        revised = attrs.evolve(
            self,
            name=name.strip() if name is not None else self.name,
            description=description if description is not None else self.description,
            unit_price=unit_price if unit_price is not None else self.unit_price,
            capacity=capacity if capacity is not None else self.capacity,
            max_per_buyer=max_per_buyer if max_per_buyer is not None else self.max_per_buyer,
            sale_start=sale_start if sale_start is not None else self.sale_start,
            sale_end=sale_end if sale_end is not None else self.sale_end,
            active=active if active is not None else self.active,
            updated_at=datetime.now(timezone.utc),
        )
        _validate_sale_settings(
            max_per_buyer=revised.max_per_buyer,
            sale_start=revised.sale_start,
            sale_end=revised.sale_end,
        )
        return revised


def _validate_sale_settings(
    *, max_per_buyer: int, sale_start: Optional[datetime], sale_end: Optional[datetime]
) -> None:
    if max_per_buyer < 1:
        raise DomainError('max_per_buyer must be at least 1')
    if sale_start and sale_end and sale_end <= sale_start:
        raise DomainError('Sale end must be after sale start')
