"""
Item scan handlers shared by the HTTP API and the scan station.

Checkout resolves the scanned code through the catalog first (naming
unknown items via the title lookup); a failed lookup stops before the
ledger is touched.
"""

from apps.core.codes import normalize_scanned_code


async def checkout_scanned_item(*, resolver, ledger, scanned_code: str, holder):
    """
    Returns:
        The new CustodyRecord

    Raises:
        InvalidScanError: If the payload holds no code
        LookupFailedError: If an unknown item could not be named
        AlreadyCheckedOutError: If the item is already held
    """
    item = await resolver.resolve_or_register(scanned_code)
    return await ledger.checkout(
        item_id=item.item_id,
        item_display_name=item.display_name,
        holder=holder,
    )


async def checkin_scanned_item(*, ledger, scanned_code: str, holder):
    """
    Returns:
        The archived CustodyEvent

    Raises:
        InvalidScanError: If the payload holds no code
        NotCheckedOutError: If the item is not checked out
        NotHolderError: If the checkin policy requires the original holder
    """
    return await ledger.checkin(item_id=normalize_scanned_code(scanned_code), holder=holder)
