from datetime import datetime, timezone
from typing import List, Optional
from uuid_utils import UUID

import attrs
import uuid_utils

from src.platform.exception.exceptions import (
    AlreadyCheckedInError,
    DomainError,
    ForbiddenError,
    TicketNotActiveError,
)
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.domain.enum.ticket_status import TicketStatus
from src.service.ticketing.domain.value_object.admission import Admission
from src.service.ticketing.domain.value_object.reference_number import generate_reference_number
from src.service.ticketing.domain.value_object.transfer_record import TransferRecord


@attrs.define(frozen=True)
class Credential:
    secret: str = attrs.field(repr=False)
    encoded_payload: str = attrs.field(repr=False)


@attrs.define
class Ticket:
    id: UUID
    ticket_number: str
    booking_id: UUID
    event_id: UUID
    owner_id: UUID
    admission: Admission
    credential_secret: str = attrs.field(repr=False)
    encoded_credential: str = attrs.field(repr=False)
    status: TicketStatus = TicketStatus.PENDING
    checked_in_at: Optional[datetime] = None
    checked_in_by: Optional[UUID] = None
    transfer_history: List[TransferRecord] = attrs.field(factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_group(self) -> bool:
        return self.admission.is_group

    @property
    def total_admissions(self) -> int:
        return self.admission.total_admissions

    @staticmethod
    def new_identity(admission: Admission) -> tuple[UUID, str]:
        """Allocate id and human ticket number before the credential is issued"""
        return uuid_utils.uuid7(), generate_reference_number(admission.ticket_number_prefix)

    @classmethod
    def issue(
        cls,
        *,
        id: UUID,
        ticket_number: str,
        booking_id: UUID,
        event_id: UUID,
        owner_id: UUID,
        admission: Admission,
        credential: Credential,
        status: TicketStatus,
    ) -> 'Ticket':
        now = datetime.now(timezone.utc)
        return cls(
            id=id,
            ticket_number=ticket_number,
            booking_id=booking_id,
            event_id=event_id,
            owner_id=owner_id,
            admission=admission,
            credential_secret=credential.secret,
            encoded_credential=credential.encoded_payload,
            status=status,
            created_at=now,
            updated_at=now,
        )

    @Logger.io
    def ensure_can_check_in(self) -> None:
        if self.status == TicketStatus.USED:
            raise AlreadyCheckedInError(
                'Ticket has already been used', checked_in_at=self.checked_in_at
            )
        if self.status != TicketStatus.ACTIVE:
            raise TicketNotActiveError(
                f'Ticket is {self.status}', ticket_status=self.status.value
            )

    @Logger.io
    def check_in(self, *, verifier_id: UUID, now: datetime) -> 'Ticket':
        self.ensure_can_check_in()
        return attrs.evolve(
            self,
            status=TicketStatus.USED,
            checked_in_at=now,
            checked_in_by=verifier_id,
            updated_at=now,
        )

    @Logger.io
    def transfer_to(
        self,
        *,
        from_owner_id: UUID,
        recipient_id: UUID,
        credential: Credential,
        message: Optional[str],
        now: datetime,
    ) -> 'Ticket':
        if self.owner_id != from_owner_id:
            raise ForbiddenError('Only the ticket owner can transfer this ticket')
        if self.status != TicketStatus.ACTIVE:
            raise TicketNotActiveError(
                f'Only active tickets can be transferred (ticket is {self.status})',
                ticket_status=self.status.value,
            )
        if recipient_id == self.owner_id:
            raise DomainError('Cannot transfer a ticket to yourself')

        record = TransferRecord(
            from_owner_id=self.owner_id,
            to_owner_id=recipient_id,
            transferred_at=now,
            message=message,
        )
        return attrs.evolve(
            self,
            owner_id=recipient_id,
            credential_secret=credential.secret,
            encoded_credential=credential.encoded_payload,
            transfer_history=[*self.transfer_history, record],
            updated_at=now,
        )
