"""Domain-specific exceptions for accounts services."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""
    pass


class IdentityNotFoundError(AccountsServiceError):
    """Raised when no identity is registered for a badge code."""
    pass


class DuplicateIdentityError(AccountsServiceError):
    """Raised when registering a badge code that already has an identity."""
    pass


class InvalidPinError(AccountsServiceError):
    """Raised when a PIN is not exactly four digits."""
    pass


class InvalidDisplayNameError(AccountsServiceError):
    """Raised when a display name is blank or too long."""
    pass


class InvalidWorkflowTransitionError(AccountsServiceError):
    """Raised when a scan workflow step is not allowed in the current state."""
    pass
