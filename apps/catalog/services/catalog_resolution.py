"""Scanned item code to catalog item resolution."""

import logging
from dataclasses import dataclass
from typing import Optional

from django.utils import timezone

from apps.core.codes import normalize_scanned_code
from apps.core.exceptions import DocumentExistsError
from apps.core.stores import CATALOG_ITEMS

from ..domain import CatalogItem
from .exceptions import LookupFailedError

logger = logging.getLogger(__name__)

# Longest display name the catalog and custody tables hold
MAX_TITLE_LENGTH = 255


@dataclass(frozen=True)
class CatalogLookup:
    """Outcome of an item scan: known item, or a code not yet in the catalog."""

    scanned_code: str
    item: Optional[CatalogItem] = None

    @property
    def is_known(self) -> bool:
        return self.item is not None


class ItemCatalogResolver:
    """
    Resolves item scans against the catalog, naming unknown items through
    the title lookup service.

    Args:
        store: Document store holding 'catalog_items'
        title_lookup: Object with ``async fetch_titles(code) -> list[str]``
    """

    def __init__(self, store, title_lookup):
        self.store = store
        self.title_lookup = title_lookup

    async def resolve(self, scanned_code: str) -> CatalogLookup:
        code = normalize_scanned_code(scanned_code)
        document = await self.store.get(CATALOG_ITEMS, code)
        item = CatalogItem.from_document(document) if document else None
        return CatalogLookup(scanned_code=code, item=item)

    async def register_from_external_lookup(self, scanned_code: str) -> CatalogItem:
        """
        Name the item after the first title returned for its code and store it.
        Titles longer than MAX_TITLE_LENGTH are truncated.

        Returns:
            The stored CatalogItem; if another scan stored the same code
            first, that item is returned instead

        Raises:
            LookupFailedError: If no usable title came back (nothing is stored)
        """
        code = normalize_scanned_code(scanned_code)
        try:
            titles = await self.title_lookup.fetch_titles(code)
        except LookupFailedError as e:
            logger.warning("%s", e)
            raise

        title = titles[0] if titles else None
        if not isinstance(title, str) or not title.strip():
            logger.warning("Title lookup for %s returned a malformed first title", code)
            raise LookupFailedError(f"Title lookup for {code} returned a malformed title")

        display_name = title.strip()
        if len(display_name) > MAX_TITLE_LENGTH:
            logger.info("Title for %s truncated to %d characters", code, MAX_TITLE_LENGTH)
            display_name = display_name[:MAX_TITLE_LENGTH].rstrip()

        item = CatalogItem(item_id=code, display_name=display_name, created_at=timezone.now())
        try:
            await self.store.insert(CATALOG_ITEMS, code, item.to_document())
        except DocumentExistsError:
            existing = await self.store.get(CATALOG_ITEMS, code)
            if existing is not None:
                return CatalogItem.from_document(existing)
            raise

        logger.info("Catalogued %s as %r", code, item.display_name)
        return item

    async def resolve_or_register(self, scanned_code: str) -> CatalogItem:
        lookup = await self.resolve(scanned_code)
        if lookup.is_known:
            return lookup.item
        return await self.register_from_external_lookup(lookup.scanned_code)
