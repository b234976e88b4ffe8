"""Ticketing Domain Value Objects"""

from src.service.ticketing.domain.value_object.admission import (
    Admission,
    GroupAdmission,
    IndividualAdmission,
)
from src.service.ticketing.domain.value_object.contact_info import ContactInfo
from src.service.ticketing.domain.value_object.event_schedule import CheckInWindow, EventSchedule
from src.service.ticketing.domain.value_object.line_item import LineItem
from src.service.ticketing.domain.value_object.payment_ref import PaymentRef
from src.service.ticketing.domain.value_object.presented_credential import (
    PresentedCredential,
    ScanMode,
)
from src.service.ticketing.domain.value_object.transfer_record import TransferRecord

__all__ = [
    'Admission',
    'CheckInWindow',
    'ContactInfo',
    'EventSchedule',
    'GroupAdmission',
    'IndividualAdmission',
    'LineItem',
    'PaymentRef',
    'PresentedCredential',
    'ScanMode',
    'TransferRecord',
]
