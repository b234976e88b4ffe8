from typing import Sequence

import attrs

from src.platform.exception.exceptions import DomainError


@attrs.define(frozen=True)
class RefundPolicy:
    """
    Time-tiered refund rules for buyer cancellations.

    tiers: (min_hours_before_start, percent), e.g. ((72, 100), (48, 50)).
    Less notice than every tier means no refund; less than `blackout_hours`
    means the booking cannot be cancelled at all.
    """

    blackout_hours: int
    tiers: tuple[tuple[int, int], ...] = attrs.field(
        converter=lambda tiers: tuple(sorted(tiers, reverse=True))
    )

    @classmethod
    def from_table(cls, *, blackout_hours: int, tiers: Sequence[tuple[int, int]]) -> 'RefundPolicy':
        return cls(blackout_hours=blackout_hours, tiers=tuple(tiers))

    def ensure_outside_blackout(self, hours_until_start: float) -> None:
        if hours_until_start < self.blackout_hours:
            raise DomainError(
                f'Cannot cancel booking within {self.blackout_hours} hours of event start'
            )

    def refund_percent(self, hours_until_start: float) -> int:
        for min_hours, percent in self.tiers:
            if hours_until_start >= min_hours:
                return percent
        return 0

    def refund_amount(self, *, total_amount: int, hours_until_start: float) -> int:
        return total_amount * self.refund_percent(hours_until_start) // 100
