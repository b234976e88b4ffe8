from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import DomainError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo
from src.service.ticketing.domain.credential_issuer import CredentialIssuer
from src.service.ticketing.domain.entity.ticket_entity import Ticket


class VerifyTicketByCodeUseCase:
    """
    Staff lookup by the short code printed under the QR.

    Read-only: resolving a code does not check the ticket in. Codes are short, so
    more than one match is reported instead of guessing.
    """

    def __init__(self, *, ticket_repo: ITicketRepo, credential_issuer: CredentialIssuer) -> None:
        self.ticket_repo = ticket_repo
        self.credential_issuer = credential_issuer

    @classmethod
    @inject
    def depends(
        cls,
        ticket_repo: ITicketRepo = Depends(Provide[Container.ticket_repo]),
        credential_issuer: CredentialIssuer = Depends(Provide[Container.credential_issuer]),
    ) -> Self:
        return cls(ticket_repo=ticket_repo, credential_issuer=credential_issuer)

    @Logger.io
    async def verify(self, *, event_id: UUID, code: str) -> Ticket:
        normalized = code.strip().upper()
        if len(normalized) != self.credential_issuer.code_length:
            raise DomainError(
                f'Verification code must be {self.credential_issuer.code_length} characters'
            )

        matches = await self.ticket_repo.find_by_verification_code(
            event_id=event_id, code=normalized
        )
        if not matches:
            raise NotFoundError('No ticket matches this verification code')
        if len(matches) > 1:
            raise DomainError('Verification code is ambiguous, please scan the QR code')
        return matches[0]
