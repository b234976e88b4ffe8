from typing import Optional

import attrs


@attrs.define(frozen=True)
class ContactInfo:
    email: Optional[str] = None
    phone: Optional[str] = None

    def to_dict(self) -> dict:
        return {'email': self.email, 'phone': self.phone}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional['ContactInfo']:
        if not data:
            return None
        return cls(email=data.get('email'), phone=data.get('phone'))
