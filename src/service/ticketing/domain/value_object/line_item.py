from uuid_utils import UUID

import attrs


@attrs.define(frozen=True)
class LineItem:
    """One category of a booking, priced at the moment of purchase"""

    category_id: UUID
    name: str
    quantity: int
    unit_price: int  # minor currency units

    @property
    def subtotal(self) -> int:
        return self.quantity * self.unit_price

    def to_dict(self) -> dict:
        return {
            'category_id': str(self.category_id),
            'name': self.name,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LineItem':
        return cls(
            category_id=UUID(str(data['category_id'])),
            name=data['name'],
            quantity=int(data['quantity']),
            unit_price=int(data['unit_price']),
        )
