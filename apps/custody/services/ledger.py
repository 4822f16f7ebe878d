"""
Custody ledger.

Per item there are two states:

    AVAILABLE   no active record
    CHECKED_OUT exactly one active record

checkout moves AVAILABLE -> CHECKED_OUT with a conditional insert keyed by
item id, so of any number of concurrent checkouts of one item exactly one
succeeds and the others see the winner's record. checkin moves back by
moving the record it inspected into the event history in one store call,
so a failed checkin leaves the item checked out and nothing archived.
"""

import logging
import uuid
from enum import Enum
from typing import List, Optional

from django.utils import timezone

from apps.core.exceptions import DocumentExistsError
from apps.core.stores import ACTIVE_CUSTODY, CUSTODY_EVENTS

from ..domain import CustodyEvent, CustodyRecord
from .exceptions import AlreadyCheckedOutError, NotCheckedOutError, NotHolderError

logger = logging.getLogger(__name__)


class CheckinPolicy(str, Enum):
    """Who may check an item in."""
    HOLDER = "holder"  # only the identity that checked it out
    ANY = "any"        # any authenticated identity


class CustodyLedger:
    """
    Args:
        store: Document store holding 'active_custody' and 'custody_events'
        checkin_policy: CheckinPolicy, defaults to HOLDER
        clock: Callable returning the current aware datetime
    """

    def __init__(self, store, checkin_policy=CheckinPolicy.HOLDER, clock=timezone.now):
        self.store = store
        self.checkin_policy = CheckinPolicy(checkin_policy)
        self.clock = clock

    async def get_active(self, item_id: str) -> Optional[CustodyRecord]:
        document = await self.store.get(ACTIVE_CUSTODY, item_id)
        return CustodyRecord.from_document(document) if document else None

    async def checkout(self, *, item_id: str, item_display_name: str, holder) -> CustodyRecord:
        """
        Check an item out to holder.

        Args:
            item_id: Normalized item code
            item_display_name: Catalog name shown in listings
            holder: Identity taking custody

        Returns:
            The new active CustodyRecord

        Raises:
            AlreadyCheckedOutError: If the item has an active record (the
                record is attached; nothing changes)
        """
        existing = await self.get_active(item_id)
        if existing is not None:
            logger.info("Checkout of %s by %s refused: held by %s",
                        item_id, holder.user_id, existing.holder_user_id)
            raise AlreadyCheckedOutError(existing)

        record = CustodyRecord(
            item_id=item_id,
            item_display_name=item_display_name,
            holder_user_id=holder.user_id,
            holder_display_name=holder.display_name,
            checkout_time=self.clock(),
        )
        try:
            await self.store.insert(ACTIVE_CUSTODY, item_id, record.to_document())
        except DocumentExistsError:
            # Lost the race to a concurrent checkout
            winner = await self.get_active(item_id)
            if winner is None:
                raise
            logger.info("Checkout of %s by %s lost race to %s",
                        item_id, holder.user_id, winner.holder_user_id)
            raise AlreadyCheckedOutError(winner)

        logger.info("Checked out %s to %s", item_id, holder.user_id)
        return record

    async def checkin(self, *, item_id: str, holder) -> CustodyEvent:
        """
        Return an item.

        Returns:
            The archived CustodyEvent

        Raises:
            NotCheckedOutError: If the item has no active record
            NotHolderError: If the policy is HOLDER and holder is not the
                identity that checked the item out
        """
        record = await self.get_active(item_id)
        if record is None:
            raise NotCheckedOutError(item_id)

        if self.checkin_policy == CheckinPolicy.HOLDER and record.holder_user_id != holder.user_id:
            logger.warning("Checkin of %s by %s refused: held by %s",
                           item_id, holder.user_id, record.holder_user_id)
            raise NotHolderError(record, holder.user_id)

        event = CustodyEvent(
            event_id=uuid.uuid4().hex,
            item_id=record.item_id,
            item_display_name=record.item_display_name,
            holder_user_id=record.holder_user_id,
            holder_display_name=record.holder_display_name,
            checkout_time=record.checkout_time,
            checkin_time=self.clock(),
            checked_in_by_user_id=holder.user_id,
        )
        # Closing the record and archiving the event happen together or not at all
        moved = await self.store.move(
            ACTIVE_CUSTODY,
            item_id,
            CUSTODY_EVENTS,
            event.event_id,
            event.to_document(),
            holder_user_id=record.holder_user_id,
            checkout_time=record.checkout_time,
        )
        if not moved:
            # Checked in (or in and out again) by a concurrent scan
            raise NotCheckedOutError(item_id)

        logger.info("Checked in %s from %s", item_id, record.holder_user_id)
        return event

    async def list_active(self, holder_user_id: Optional[str] = None) -> List[CustodyRecord]:
        """Active records, newest checkout first, optionally for one holder."""
        filters = {'holder_user_id': holder_user_id} if holder_user_id else {}
        documents = await self.store.scan(ACTIVE_CUSTODY, **filters)
        records = [CustodyRecord.from_document(d) for d in documents]
        records.sort(key=lambda r: r.item_id)
        records.sort(key=lambda r: r.checkout_time, reverse=True)
        return records

    async def history(self, item_id: Optional[str] = None) -> List[CustodyEvent]:
        """Closed checkouts, most recent checkin first, optionally for one item."""
        filters = {'item_id': item_id} if item_id else {}
        documents = await self.store.scan(CUSTODY_EVENTS, **filters)
        events = [CustodyEvent.from_document(d) for d in documents]
        events.sort(key=lambda e: e.checkin_time, reverse=True)
        return events
