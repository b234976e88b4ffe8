from datetime import datetime
from typing import Any


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def extra(self) -> dict[str, Any]:
        """Additional fields rendered next to `detail` in the error response"""
        return {}


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class AuthenticationError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class ForbiddenError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


# ============================ Inventory ============================


class InsufficientInventoryError(ConflictError):
    def __init__(self, message: str, *, available: int | None = None) -> None:
        self.available = available
        super().__init__(message)

    @property
    def extra(self) -> dict[str, Any]:
        return {} if self.available is None else {'available': self.available}


class SaleClosedError(DomainError):
    pass


class LimitExceededError(DomainError):
    def __init__(self, message: str, *, max_per_buyer: int) -> None:
        self.max_per_buyer = max_per_buyer
        super().__init__(message)

    @property
    def extra(self) -> dict[str, Any]:
        return {'max_per_buyer': self.max_per_buyer}


# ============================ Payment ============================


class GatewayUnavailableError(CustomBaseError):
    """Gateway could not be reached or answered with a transport-level failure (retryable)"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)


class PaymentRejectedError(CustomBaseError):
    """Gateway refused to create the transaction (not retryable)"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 402)


class RefundFailedError(CustomBaseError):
    """Gateway rejected a refund; the cancellation stands and the refund needs manual follow-up"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 502)


# ============================ Check-in ============================


class ReplayOrInvalidCredentialError(DomainError):
    pass


class TicketNotActiveError(DomainError):
    def __init__(self, message: str, *, ticket_status: str) -> None:
        self.ticket_status = ticket_status
        super().__init__(message)

    @property
    def extra(self) -> dict[str, Any]:
        return {'ticket_status': self.ticket_status}


class OutOfWindowError(DomainError):
    def __init__(self, message: str, *, opens_at: datetime, closes_at: datetime) -> None:
        self.opens_at = opens_at
        self.closes_at = closes_at
        super().__init__(message)

    @property
    def extra(self) -> dict[str, Any]:
        return {'opens_at': self.opens_at.isoformat(), 'closes_at': self.closes_at.isoformat()}


class AlreadyCheckedInError(ConflictError):
    def __init__(self, message: str, *, checked_in_at: datetime | None) -> None:
        self.checked_in_at = checked_in_at
        super().__init__(message)

    @property
    def extra(self) -> dict[str, Any]:
        return {'checked_in_at': self.checked_in_at.isoformat() if self.checked_in_at else None}
