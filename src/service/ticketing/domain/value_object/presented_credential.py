from enum import StrEnum
from typing import Optional

import attrs


class ScanMode(StrEnum):
    INDIVIDUAL = 'individual'
    GROUP = 'group'


@attrs.define(frozen=True)
class PresentedCredential:
    """What the scanner/staff submitted at the gate: a QR payload or a short code"""

    qr_data: Optional[str] = None
    verification_code: Optional[str] = None
    scan_mode: Optional[ScanMode] = None

    @property
    def is_empty(self) -> bool:
        return not self.qr_data and not self.verification_code
