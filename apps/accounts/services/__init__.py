"""Services for accounts business logic."""

from apps.core.stores import get_document_store

from .exceptions import (
    AccountsServiceError,
    IdentityNotFoundError,
    DuplicateIdentityError,
    InvalidPinError,
    InvalidDisplayNameError,
    InvalidWorkflowTransitionError,
)
from .credential_store import CredentialStore, hash_pin, generate_salt
from .identity_resolution import IdentityResolver, IdentityLookup
from .sessions import SessionHolder, SessionRegistry, session_registry
from .scan_workflow import ScanWorkflow, WorkflowStage


def build_credential_store() -> CredentialStore:
    """CredentialStore over the configured document store."""
    return CredentialStore(store=get_document_store())


def build_identity_resolver() -> IdentityResolver:
    return IdentityResolver(credentials=build_credential_store())


__all__ = [
    # Exceptions
    'AccountsServiceError',
    'IdentityNotFoundError',
    'DuplicateIdentityError',
    'InvalidPinError',
    'InvalidDisplayNameError',
    'InvalidWorkflowTransitionError',
    # Services
    'CredentialStore',
    'IdentityResolver',
    'IdentityLookup',
    'SessionHolder',
    'SessionRegistry',
    'session_registry',
    'ScanWorkflow',
    'WorkflowStage',
    'hash_pin',
    'generate_salt',
    'build_credential_store',
    'build_identity_resolver',
]
