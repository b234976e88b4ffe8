from enum import StrEnum


class ReservationOutcome(StrEnum):
    """Result of a single atomic compare-and-increment on a category counter"""

    RESERVED = 'reserved'
    INSUFFICIENT_CAPACITY = 'insufficient_capacity'
    CATEGORY_CLOSED = 'category_closed'
    NOT_FOUND = 'not_found'
