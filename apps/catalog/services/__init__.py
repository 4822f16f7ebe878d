"""Services for catalog business logic."""

from django.conf import settings

from apps.core.stores import get_document_store

from .exceptions import CatalogServiceError, LookupFailedError
from .title_lookup import TitleLookupClient
from .catalog_resolution import ItemCatalogResolver, CatalogLookup


def build_catalog_resolver() -> ItemCatalogResolver:
    """ItemCatalogResolver wired to the configured store and lookup service."""
    return ItemCatalogResolver(
        store=get_document_store(),
        title_lookup=TitleLookupClient(
            base_url=settings.TITLE_LOOKUP_URL,
            timeout=settings.TITLE_LOOKUP_TIMEOUT,
        ),
    )


__all__ = [
    # Exceptions
    'CatalogServiceError',
    'LookupFailedError',
    # Services
    'TitleLookupClient',
    'ItemCatalogResolver',
    'CatalogLookup',
    'build_catalog_resolver',
]
