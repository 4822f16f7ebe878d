"""
Exceptions shared by every app that talks to the document store.

StoreUnavailableError is an APIException so that an outage propagates
through DRF views as a 503 without each view catching it.
"""
from rest_framework.exceptions import APIException


class StoreError(Exception):
    """Base exception for document store errors."""
    pass


class DocumentExistsError(StoreError):
    """Raised when a conditional insert finds the key already present."""

    def __init__(self, collection: str, key: str):
        self.collection = collection
        self.key = key
        super().__init__(f"Document '{key}' already exists in '{collection}'")


class UnknownCollectionError(StoreError):
    """Raised when a store is asked for a collection it does not hold."""
    pass


class InvalidScanError(ValueError):
    """Raised when a scanned payload normalizes to an empty code."""
    pass


class StoreUnavailableError(APIException):
    """Backing store timed out or failed."""
    status_code = 503
    default_detail = 'The inventory store is unavailable. Please try again.'
    default_code = 'store_unavailable'
