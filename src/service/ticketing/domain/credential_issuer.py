"""
Ticket credentials.

A credential is a random secret plus a compact JSON payload that an external
renderer turns into a QR image. Staff without a scanner can type the short
verification code instead (first characters of the secret).

Payload (keys sorted):
    individual: {"event", "id", "isGroupTicket": false, "secret", "ticketNumber"}
    group:      {..., "isGroupTicket": true, "ticketTypes": [{"name", "quantity"}], "totalTickets"}
"""

import hmac
import secrets
from typing import Any

from uuid_utils import UUID

import orjson

from src.platform.exception.exceptions import ReplayOrInvalidCredentialError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.domain.entity.ticket_entity import Credential, Ticket
from src.service.ticketing.domain.value_object.admission import Admission
from src.service.ticketing.domain.value_object.presented_credential import (
    PresentedCredential,
    ScanMode,
)


class CredentialIssuer:
    def __init__(self, *, secret_bytes: int = 20, code_length: int = 6) -> None:
        if secret_bytes < 16:
            raise ValueError('Credential secrets need at least 128 bits of entropy')
        self.secret_bytes = secret_bytes
        self.code_length = code_length

    def issue(
        self, *, ticket_id: UUID, ticket_number: str, event_id: UUID, admission: Admission
    ) -> Credential:
        secret = secrets.token_hex(self.secret_bytes)
        payload = {
            'id': str(ticket_id),
            'ticketNumber': ticket_number,
            'event': str(event_id),
            'secret': secret,
            **admission.payload_fields(),
        }
        encoded = orjson.dumps(payload, option=orjson.OPT_SORT_KEYS).decode()
        return Credential(secret=secret, encoded_payload=encoded)

    def rotate(self, ticket: Ticket) -> Credential:
        """Fresh secret for the same ticket; the previous payload and code stop verifying."""
        return self.issue(
            ticket_id=ticket.id,
            ticket_number=ticket.ticket_number,
            event_id=ticket.event_id,
            admission=ticket.admission,
        )

    def verification_code(self, secret: str) -> str:
        return secret[: self.code_length].upper()

    @Logger.io
    def verify(self, ticket: Ticket, presented: PresentedCredential) -> None:
        """
        Raises:
            ReplayOrInvalidCredentialError: on any mismatch, including cross-mode scans
        """
        if presented.is_empty:
            raise ReplayOrInvalidCredentialError('QR data or verification code is required')

        if presented.scan_mode is not None:
            expects_group = presented.scan_mode == ScanMode.GROUP
            if expects_group != ticket.is_group:
                raise ReplayOrInvalidCredentialError(
                    'Group ticket scanned in individual mode'
                    if ticket.is_group
                    else 'Individual ticket scanned in group mode'
                )

        if presented.qr_data:
            self._verify_payload(ticket, presented.qr_data)
        else:
            self._verify_code(ticket, presented.verification_code or '')

    def _verify_code(self, ticket: Ticket, code: str) -> None:
        expected = self.verification_code(ticket.credential_secret)
        if len(code.strip()) != self.code_length or not hmac.compare_digest(
            code.strip().upper(), expected
        ):
            raise ReplayOrInvalidCredentialError('Invalid verification code')

    def _verify_payload(self, ticket: Ticket, qr_data: str) -> None:
        payload = _parse_payload(qr_data)

        is_group_payload = payload.get('isGroupTicket') is True
        if is_group_payload != ticket.is_group:
            raise ReplayOrInvalidCredentialError(
                'Group QR code presented for an individual ticket'
                if is_group_payload
                else 'Individual QR code presented for a group ticket'
            )

        # All three must match; a partial match is a forged or stale payload
        matches = (
            payload.get('id') == str(ticket.id),
            payload.get('ticketNumber') == ticket.ticket_number,
            hmac.compare_digest(str(payload.get('secret', '')), ticket.credential_secret),
        )
        if not all(matches):
            raise ReplayOrInvalidCredentialError('Invalid QR code')


def _parse_payload(qr_data: str) -> dict[str, Any]:
    try:
        payload = orjson.loads(qr_data)
    except orjson.JSONDecodeError:
        raise ReplayOrInvalidCredentialError('Malformed QR code data')
    if not isinstance(payload, dict):
        raise ReplayOrInvalidCredentialError('Malformed QR code data')
    return payload
