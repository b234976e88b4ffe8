"""
Admission variants carried by a Ticket.

An individual ticket admits one person of one category; a group ticket admits
every unit of every line item of its booking under a single credential.
"""

from typing import Union

from uuid_utils import UUID

import attrs

from src.service.ticketing.domain.value_object.line_item import LineItem


@attrs.define(frozen=True)
class IndividualAdmission:
    category_id: UUID
    name: str
    unit_price: int

    is_group = False
    ticket_number_prefix = 'TIX'

    @property
    def total_admissions(self) -> int:
        return 1

    def payload_fields(self) -> dict:
        return {'isGroupTicket': False}

    def to_dict(self) -> dict:
        return {
            'kind': 'individual',
            'category_id': str(self.category_id),
            'name': self.name,
            'unit_price': self.unit_price,
        }


@attrs.define(frozen=True)
class GroupAdmission:
    line_items: tuple[LineItem, ...] = attrs.field(converter=tuple)

    is_group = True
    ticket_number_prefix = 'GRP'

    @property
    def total_admissions(self) -> int:
        return sum(item.quantity for item in self.line_items)

    def payload_fields(self) -> dict:
        return {
            'isGroupTicket': True,
            'totalTickets': self.total_admissions,
            'ticketTypes': [
                {'name': item.name, 'quantity': item.quantity} for item in self.line_items
            ],
        }

    def to_dict(self) -> dict:
        return {'kind': 'group', 'line_items': [item.to_dict() for item in self.line_items]}


Admission = Union[IndividualAdmission, GroupAdmission]


def admission_from_dict(data: dict) -> Admission:
    if data.get('kind') == 'group':
        return GroupAdmission(line_items=[LineItem.from_dict(item) for item in data['line_items']])
    return IndividualAdmission(
        category_id=UUID(str(data['category_id'])),
        name=data['name'],
        unit_price=int(data['unit_price']),
    )
