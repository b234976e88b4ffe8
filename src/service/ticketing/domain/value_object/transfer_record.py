from datetime import datetime
from typing import Optional

from uuid_utils import UUID

import attrs


@attrs.define(frozen=True)
class TransferRecord:
    from_owner_id: UUID
    to_owner_id: UUID
    transferred_at: datetime
    message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'from_owner_id': str(self.from_owner_id),
            'to_owner_id': str(self.to_owner_id),
            'transferred_at': self.transferred_at.isoformat(),
            'message': self.message,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'TransferRecord':
        return cls(
            from_owner_id=UUID(str(data['from_owner_id'])),
            to_owner_id=UUID(str(data['to_owner_id'])),
            transferred_at=datetime.fromisoformat(data['transferred_at']),
            message=data.get('message'),
        )
