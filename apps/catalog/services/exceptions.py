"""Domain-specific exceptions for catalog services."""


class CatalogServiceError(Exception):
    """Base exception for catalog services."""
    pass


class LookupFailedError(CatalogServiceError):
    """
    Raised when the title lookup service cannot name a scanned item.

    Covers unreachable service, timeout, error status, malformed payload
    and an empty title list. Nothing is stored when this is raised, so the
    scan can simply be retried.
    """
    pass
