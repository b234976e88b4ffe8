from datetime import datetime
from typing import Optional

import attrs


@attrs.define(frozen=True)
class TicketCategoryChanges:
    """Partial admin update; None means unchanged"""

    name: Optional[str] = None
    description: Optional[str] = None
    unit_price: Optional[int] = None
    capacity: Optional[int] = None
    max_per_buyer: Optional[int] = None
    sale_start: Optional[datetime] = None
    sale_end: Optional[datetime] = None
    active: Optional[bool] = None

    def as_kwargs(self) -> dict:
        return attrs.asdict(self, recurse=False)
