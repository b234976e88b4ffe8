from enum import StrEnum


class GatewayResultStatus(StrEnum):
    SUCCESS = 'success'
    FAILED = 'failed'
    PENDING = 'pending'
    REFUNDED = 'refunded'
