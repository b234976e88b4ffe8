from typing import Optional

from uuid_utils import UUID

import attrs


@attrs.define(frozen=True)
class BuyerContact:
    id: UUID
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
