from dataclasses import asdict, dataclass, fields
from datetime import datetime


@dataclass(frozen=True)
class CustodyRecord:
    """Ledger entry: item_id is currently held by holder_user_id."""

    item_id: str
    item_display_name: str
    holder_user_id: str
    holder_display_name: str
    checkout_time: datetime

    def to_document(self) -> dict:
        return asdict(self)

    @classmethod
    def from_document(cls, document: dict) -> 'CustodyRecord':
        return cls(**{f.name: document[f.name] for f in fields(cls)})


@dataclass(frozen=True)
class CustodyEvent:
    """A completed checkout/checkin cycle."""

    event_id: str
    item_id: str
    item_display_name: str
    holder_user_id: str
    holder_display_name: str
    checkout_time: datetime
    checkin_time: datetime
    checked_in_by_user_id: str

    def to_document(self) -> dict:
        return asdict(self)

    @classmethod
    def from_document(cls, document: dict) -> 'CustodyEvent':
        return cls(**{f.name: document[f.name] for f in fields(cls)})
