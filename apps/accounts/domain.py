"""Identity and session value objects passed between services."""

from dataclasses import asdict, dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Identity:
    """Registered badge holder. Salt and hash are hex strings and stay out of repr."""

    user_id: str
    display_name: str
    salt: str = field(repr=False)
    pin_hash: str = field(repr=False)
    created_at: datetime

    def to_document(self) -> dict:
        return asdict(self)

    @classmethod
    def from_document(cls, document: dict) -> 'Identity':
        return cls(
            user_id=document['user_id'],
            display_name=document['display_name'],
            salt=document['salt'],
            pin_hash=document['pin_hash'],
            created_at=document['created_at'],
        )


@dataclass(frozen=True)
class ScanSession:
    """Authenticated identity for the duration of one scan workflow."""

    session_id: str
    identity: Identity
    established_at: datetime

    # DRF's IsAuthenticated reads this from request.user
    is_authenticated = True

    @property
    def user_id(self) -> str:
        return self.identity.user_id

    @property
    def display_name(self) -> str:
        return self.identity.display_name
