"""
Domain-specific exceptions for custody services.

These represent custody rule violations and are converted to HTTP
responses in views. AlreadyCheckedOutError is an expected outcome of a
double scan, not a failure, and carries the record that blocks it.
"""


class CustodyServiceError(Exception):
    """Base exception for all custody service errors."""
    pass


class AlreadyCheckedOutError(CustodyServiceError):
    """Raised when checking out an item that has an active record."""

    def __init__(self, record):
        self.record = record
        super().__init__(
            f"{record.item_display_name} is already checked out by "
            f"{record.holder_display_name}"
        )


class NotCheckedOutError(CustodyServiceError):
    """Raised when checking in an item that has no active record."""

    def __init__(self, item_id):
        self.item_id = item_id
        super().__init__(f"Item {item_id} is not checked out")


class NotHolderError(CustodyServiceError):
    """Raised when someone other than the holder checks an item in."""

    def __init__(self, record, user_id):
        self.record = record
        self.user_id = user_id
        super().__init__(
            f"{record.item_display_name} is held by {record.holder_display_name}, "
            f"only they can check it in"
        )
