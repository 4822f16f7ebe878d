from dataclasses import asdict, dataclass
from datetime import datetime


@dataclass(frozen=True)
class CatalogItem:
    """Resolved display metadata of a scanned item."""

    item_id: str
    display_name: str
    created_at: datetime

    def to_document(self) -> dict:
        return asdict(self)

    @classmethod
    def from_document(cls, document: dict) -> 'CatalogItem':
        return cls(
            item_id=document['item_id'],
            display_name=document['display_name'],
            created_at=document['created_at'],
        )
