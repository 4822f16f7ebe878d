"""
Custody ledger tests.

Covers the two-state item lifecycle (available, checked out), checkin
policies, listings, and the single-holder guarantee under concurrent
checkouts on both store backends.
"""

import asyncio
from unittest.mock import patch

import pytest
from asgiref.sync import async_to_sync
from django.db import OperationalError
from django.utils import timezone

from apps.accounts.domain import Identity
from apps.catalog.services import ItemCatalogResolver, LookupFailedError
from apps.catalog.tests.fakes import FakeTitleLookup
from apps.core.exceptions import InvalidScanError, StoreUnavailableError
from apps.core.stores import ACTIVE_CUSTODY, CATALOG_ITEMS, DjangoDocumentStore
from apps.custody.models import CustodyEvent as CustodyEventModel
from apps.custody.models import CustodyRecord as CustodyRecordModel
from apps.custody.services import (
    AlreadyCheckedOutError,
    CustodyLedger,
    NotCheckedOutError,
    NotHolderError,
    checkin_scanned_item,
    checkout_scanned_item,
)


def checkout(ledger, item_id, holder, name='Lion Skull'):
    return async_to_sync(ledger.checkout)(
        item_id=item_id, item_display_name=name, holder=holder,
    )


def checkin(ledger, item_id, holder):
    return async_to_sync(ledger.checkin)(item_id=item_id, holder=holder)


def make_holders(count):
    return [
        Identity(
            user_id=f'U{n}', display_name=f'Holder {n}', salt='00', pin_hash='00',
            created_at=timezone.now(),
        )
        for n in range(count)
    ]


# =============================================================================
# Checkout
# =============================================================================

class TestCheckout:
    """Tests for CustodyLedger.checkout()"""

    def test_checkout_available_item(self, ledger, ann):
        record = checkout(ledger, 'X1', ann)

        assert record.item_id == 'X1'
        assert record.item_display_name == 'Lion Skull'
        assert record.holder_user_id == 'U1'
        assert record.holder_display_name == 'Ann'
        assert async_to_sync(ledger.get_active)('X1') == record

    def test_second_checkout_reports_holder(self, ledger, ann, bob):
        """A conflicting checkout returns the existing record untouched."""
        original = checkout(ledger, 'X1', ann)

        with pytest.raises(AlreadyCheckedOutError) as exc_info:
            checkout(ledger, 'X1', bob)

        assert exc_info.value.record == original
        assert 'Ann' in str(exc_info.value)
        assert async_to_sync(ledger.get_active)('X1') == original

    def test_holder_double_scan_is_a_conflict(self, ledger, ann):
        original = checkout(ledger, 'X1', ann)

        with pytest.raises(AlreadyCheckedOutError) as exc_info:
            checkout(ledger, 'X1', ann)

        assert exc_info.value.record.checkout_time == original.checkout_time

    def test_items_are_independent(self, ledger, ann, bob):
        checkout(ledger, 'X1', ann)
        record = checkout(ledger, 'X2', bob, name='Zebra Hide')

        assert record.holder_user_id == 'U2'


# =============================================================================
# Checkin
# =============================================================================

class TestCheckin:
    """Tests for CustodyLedger.checkin()"""

    def test_checkin_archives_event(self, ledger, ann):
        record = checkout(ledger, 'X1', ann)

        event = checkin(ledger, 'X1', ann)

        assert async_to_sync(ledger.get_active)('X1') is None
        assert event.item_id == 'X1'
        assert event.holder_user_id == 'U1'
        assert event.checked_in_by_user_id == 'U1'
        assert event.checkout_time == record.checkout_time
        assert event.checkin_time > event.checkout_time
        assert async_to_sync(ledger.history)('X1') == [event]

    def test_checkin_then_checkout_again(self, ledger, ann, bob):
        checkout(ledger, 'X1', ann)
        checkin(ledger, 'X1', ann)

        record = checkout(ledger, 'X1', bob)

        assert record.holder_user_id == 'U2'

    def test_checkin_available_item(self, ledger, ann):
        with pytest.raises(NotCheckedOutError):
            checkin(ledger, 'X1', ann)

    def test_checkin_twice(self, ledger, ann):
        checkout(ledger, 'X1', ann)
        checkin(ledger, 'X1', ann)

        with pytest.raises(NotCheckedOutError):
            checkin(ledger, 'X1', ann)

    def test_non_holder_refused(self, ledger, ann, bob):
        """By default only the holder can check an item in."""
        original = checkout(ledger, 'X1', ann)

        with pytest.raises(NotHolderError) as exc_info:
            checkin(ledger, 'X1', bob)

        assert exc_info.value.record == original
        assert async_to_sync(ledger.get_active)('X1') == original

    def test_any_policy_allows_non_holder(self, open_ledger, ann, bob):
        checkout(open_ledger, 'X1', ann)

        event = checkin(open_ledger, 'X1', bob)

        assert event.holder_user_id == 'U1'
        assert event.checked_in_by_user_id == 'U2'
        assert async_to_sync(open_ledger.get_active)('X1') is None

    def test_concurrent_checkins_archive_once(self, ledger, ann):
        """Two checkins of one record close it once."""
        checkout(ledger, 'X1', ann)

        async def race():
            return await asyncio.gather(
                ledger.checkin(item_id='X1', holder=ann),
                ledger.checkin(item_id='X1', holder=ann),
                return_exceptions=True,
            )

        results = async_to_sync(race)()

        failures = [r for r in results if isinstance(r, NotCheckedOutError)]
        assert len(failures) == 1
        assert len(async_to_sync(ledger.history)('X1')) == 1


# =============================================================================
# Listings
# =============================================================================

class TestListings:
    """Tests for list_active() and history()"""

    def test_list_active_newest_first(self, ledger, ann, bob):
        checkout(ledger, 'A', ann)
        checkout(ledger, 'B', bob)
        checkout(ledger, 'C', ann)

        records = async_to_sync(ledger.list_active)()

        assert [r.item_id for r in records] == ['C', 'B', 'A']

    def test_list_active_for_holder(self, ledger, ann, bob):
        checkout(ledger, 'A', ann)
        checkout(ledger, 'B', bob)
        checkout(ledger, 'C', ann)

        records = async_to_sync(ledger.list_active)('U1')

        assert [r.item_id for r in records] == ['C', 'A']

    def test_list_active_empty(self, ledger):
        assert async_to_sync(ledger.list_active)() == []

    def test_history_most_recent_first(self, ledger, ann):
        checkout(ledger, 'A', ann)
        checkout(ledger, 'B', ann)
        checkin(ledger, 'A', ann)
        checkin(ledger, 'B', ann)

        events = async_to_sync(ledger.history)()

        assert [e.item_id for e in events] == ['B', 'A']

    def test_history_for_item(self, ledger, ann, bob):
        checkout(ledger, 'X1', ann)
        checkin(ledger, 'X1', ann)
        checkout(ledger, 'X1', bob)
        checkin(ledger, 'X1', bob)
        checkout(ledger, 'X2', ann)
        checkin(ledger, 'X2', ann)

        events = async_to_sync(ledger.history)('X1')

        assert [e.holder_user_id for e in events] == ['U2', 'U1']


# =============================================================================
# Scan handlers
# =============================================================================

class TestScanHandlers:
    """Tests for checkout_scanned_item() and checkin_scanned_item()"""

    def test_checkout_names_unknown_item(self, resolver, ledger, ann, memory_store, title_lookup):
        record = async_to_sync(checkout_scanned_item)(
            resolver=resolver, ledger=ledger,
            scanned_code='https://zoo.example.org/items/X1', holder=ann,
        )

        assert record.item_id == 'X1'
        assert record.item_display_name == 'Lion Skull'
        assert title_lookup.calls == ['X1']
        assert async_to_sync(memory_store.get)(CATALOG_ITEMS, 'X1') is not None

    def test_failed_lookup_leaves_ledger_untouched(self, memory_store, ledger, ann):
        resolver = ItemCatalogResolver(
            store=memory_store,
            title_lookup=FakeTitleLookup(error=LookupFailedError('lookup down')),
        )

        with pytest.raises(LookupFailedError):
            async_to_sync(checkout_scanned_item)(
                resolver=resolver, ledger=ledger, scanned_code='X1', holder=ann,
            )

        assert async_to_sync(memory_store.get)(ACTIVE_CUSTODY, 'X1') is None

    def test_checkin_by_scan(self, resolver, ledger, ann):
        async_to_sync(checkout_scanned_item)(
            resolver=resolver, ledger=ledger, scanned_code='X1', holder=ann,
        )

        event = async_to_sync(checkin_scanned_item)(
            ledger=ledger, scanned_code=' X1\n', holder=ann,
        )

        assert event.item_display_name == 'Lion Skull'

    def test_blank_scan(self, ledger, ann):
        with pytest.raises(InvalidScanError):
            async_to_sync(checkin_scanned_item)(ledger=ledger, scanned_code='', holder=ann)


# =============================================================================
# Concurrency (single holder)
# =============================================================================

async def checkout_all(ledger, holders, item_id='X1'):
    return await asyncio.gather(
        *(
            ledger.checkout(item_id=item_id, item_display_name='Lion Skull', holder=h)
            for h in holders
        ),
        return_exceptions=True,
    )


class TestConcurrentCheckout:
    """Of N concurrent checkouts of one item exactly one wins."""

    @pytest.mark.parametrize('count', [2, 5, 20])
    def test_single_winner_memory_store(self, ledger, memory_store, count):
        results = async_to_sync(checkout_all)(ledger, make_holders(count))

        winners = [r for r in results if not isinstance(r, Exception)]
        conflicts = [r for r in results if isinstance(r, AlreadyCheckedOutError)]
        assert len(winners) == 1
        assert len(conflicts) == count - 1
        assert all(c.record == winners[0] for c in conflicts)
        assert len(async_to_sync(memory_store.scan)(ACTIVE_CUSTODY)) == 1


@pytest.mark.django_db
class TestConcurrentCheckoutDatabase:
    """Same guarantee with the ORM store, enforced by the primary key."""

    def test_single_winner_database(self):
        ledger = CustodyLedger(store=DjangoDocumentStore())

        results = async_to_sync(checkout_all)(ledger, make_holders(10))

        winners = [r for r in results if not isinstance(r, Exception)]
        conflicts = [r for r in results if isinstance(r, AlreadyCheckedOutError)]
        assert len(winners) == 1
        assert len(conflicts) == 9
        assert CustodyRecordModel.objects.filter(item_id='X1').count() == 1
        assert CustodyRecordModel.objects.get(item_id='X1').holder_user_id == winners[0].holder_user_id

    def test_checkout_checkin_roundtrip_database(self):
        ledger = CustodyLedger(store=DjangoDocumentStore())
        ann, bob = make_holders(2)

        checkout(ledger, 'X1', ann)
        checkin(ledger, 'X1', ann)
        checkout(ledger, 'X1', bob)

        assert CustodyRecordModel.objects.get(item_id='X1').holder_user_id == bob.user_id
        assert len(async_to_sync(ledger.history)('X1')) == 1


@pytest.mark.django_db
class TestCheckinFailure:
    """A checkin that cannot archive its event changes nothing."""

    def test_failed_archive_keeps_item_checked_out(self):
        ledger = CustodyLedger(store=DjangoDocumentStore())
        ann = make_holders(1)[0]
        checkout(ledger, 'X1', ann)

        with patch.object(
            CustodyEventModel.objects, 'create',
            side_effect=OperationalError('disk I/O error'),
        ):
            with pytest.raises(StoreUnavailableError):
                checkin(ledger, 'X1', ann)

        assert CustodyRecordModel.objects.get(pk='X1').holder_user_id == 'U0'
        assert not CustodyEventModel.objects.exists()

    def test_checkin_succeeds_after_failed_archive(self):
        """The same scan can simply be repeated."""
        ledger = CustodyLedger(store=DjangoDocumentStore())
        ann = make_holders(1)[0]
        checkout(ledger, 'X1', ann)

        with patch.object(
            CustodyEventModel.objects, 'create',
            side_effect=OperationalError('disk I/O error'),
        ):
            with pytest.raises(StoreUnavailableError):
                checkin(ledger, 'X1', ann)

        event = checkin(ledger, 'X1', ann)

        assert event.item_id == 'X1'
        assert not CustodyRecordModel.objects.exists()
        assert CustodyEventModel.objects.count() == 1

    def test_failed_move_on_memory_store(self, memory_store, ledger, ann):
        original = checkout(ledger, 'X1', ann)

        with patch.object(memory_store, 'move', side_effect=StoreUnavailableError()):
            with pytest.raises(StoreUnavailableError):
                checkin(ledger, 'X1', ann)

        assert async_to_sync(ledger.get_active)('X1') == original
        assert async_to_sync(ledger.history)() == []
