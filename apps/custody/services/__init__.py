"""Services for custody business logic."""

from django.conf import settings

from apps.core.stores import get_document_store

from .exceptions import (
    CustodyServiceError,
    AlreadyCheckedOutError,
    NotCheckedOutError,
    NotHolderError,
)
from .ledger import CustodyLedger, CheckinPolicy
from .scanning import checkout_scanned_item, checkin_scanned_item


def build_custody_ledger() -> CustodyLedger:
    """CustodyLedger over the configured store and checkin policy."""
    return CustodyLedger(
        store=get_document_store(),
        checkin_policy=CheckinPolicy(settings.CUSTODY_CHECKIN_POLICY),
    )


__all__ = [
    # Exceptions
    'CustodyServiceError',
    'AlreadyCheckedOutError',
    'NotCheckedOutError',
    'NotHolderError',
    # Services
    'CustodyLedger',
    'CheckinPolicy',
    'checkout_scanned_item',
    'checkin_scanned_item',
    'build_custody_ledger',
]
