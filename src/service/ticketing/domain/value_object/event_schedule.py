from datetime import datetime, timedelta
from typing import Optional

from uuid_utils import UUID

import attrs

from src.platform.exception.exceptions import OutOfWindowError


@attrs.define(frozen=True)
class CheckInWindow:
    opens_at: datetime
    closes_at: datetime

    def ensure_open(self, now: datetime) -> None:
        if now < self.opens_at:
            raise OutOfWindowError(
                f'Check-in opens at {self.opens_at.isoformat()}',
                opens_at=self.opens_at,
                closes_at=self.closes_at,
            )
        if now > self.closes_at:
            raise OutOfWindowError(
                'Event has ended, check-in is closed',
                opens_at=self.opens_at,
                closes_at=self.closes_at,
            )


@attrs.define(frozen=True)
class EventSchedule:
    """Timing of an event as published by the event directory"""

    event_id: UUID
    start_time: datetime
    end_time: Optional[datetime] = None
    timezone: str = 'UTC'
    organizer_id: Optional[UUID] = None

    def is_organized_by(self, actor_id: UUID) -> bool:
        return self.organizer_id is not None and self.organizer_id == actor_id

    def hours_until_start(self, now: datetime) -> float:
        return (self.start_time - now).total_seconds() / 3600

    def check_in_window(
        self, *, opens_before_start: timedelta, default_duration: timedelta
    ) -> CheckInWindow:
        closes_at = self.end_time or (self.start_time + default_duration)
        return CheckInWindow(opens_at=self.start_time - opens_before_start, closes_at=closes_at)
