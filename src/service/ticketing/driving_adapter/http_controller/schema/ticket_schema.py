from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

from src.platform.types import UtilsUUID7
from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.value_object.presented_credential import ScanMode


class TicketResponse(BaseModel):
    """
    Ticket read model.

    `credential_secret` is never exposed; `encoded_credential` (the QR payload)
    is only filled in for the ticket owner.
    """

    id: UtilsUUID7
    ticket_number: str
    booking_id: UtilsUUID7
    event_id: UtilsUUID7
    owner_id: UtilsUUID7
    status: str
    is_group: bool
    total_admissions: int
    admission: Dict[str, Any]
    encoded_credential: Optional[str] = None
    checked_in_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, ticket: Ticket, *, include_credential: bool = False) -> 'TicketResponse':
        return cls(
            id=ticket.id,
            ticket_number=ticket.ticket_number,
            booking_id=ticket.booking_id,
            event_id=ticket.event_id,
            owner_id=ticket.owner_id,
            status=ticket.status.value,
            is_group=ticket.is_group,
            total_admissions=ticket.total_admissions,
            admission=ticket.admission.to_dict(),
            encoded_credential=ticket.encoded_credential if include_credential else None,
            checked_in_at=ticket.checked_in_at,
        )


class CheckInRequest(BaseModel):
    qr_data: Optional[str] = None
    verification_code: Optional[str] = None
    scan_mode: Optional[ScanMode] = None

    class Config:
        json_schema_extra = {
            'examples': [
                {'qr_data': '<JSON payload read from the QR code>', 'scan_mode': 'individual'},
                {'verification_code': 'A1B2C3'},
            ]
        }


class TransferRequest(BaseModel):
    recipient_id: UtilsUUID7
    message: Optional[str] = None

    class Config:
        json_schema_extra = {
            'example': {
                'recipient_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'message': 'Enjoy the show!',
            }
        }


class VerifyTicketRequest(BaseModel):
    code: str

    class Config:
        json_schema_extra = {'example': {'code': 'A1B2C3'}}
