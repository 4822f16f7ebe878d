import pytest
from asgiref.sync import async_to_sync
from rest_framework.test import APIClient

from apps.accounts.authentication import issue_token
from apps.accounts.services import (
    CredentialStore,
    IdentityResolver,
    SessionHolder,
    ScanWorkflow,
    session_registry,
)
from apps.core.stores import DjangoDocumentStore, InMemoryDocumentStore


@pytest.fixture(autouse=True)
def clear_sessions():
    """Every test starts and ends with nobody signed in."""
    session_registry.clear_all()
    yield
    session_registry.clear_all()


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore()


@pytest.fixture
def credentials(memory_store):
    """CredentialStore over an in-memory store."""
    return CredentialStore(store=memory_store)


@pytest.fixture
def resolver(credentials):
    return IdentityResolver(credentials=credentials)


@pytest.fixture
def ann(credentials):
    """Identity U1 'Ann' with PIN 4821 in the in-memory store."""
    return async_to_sync(credentials.register)('U1', 'Ann', '4821')


@pytest.fixture
def workflow(credentials, resolver):
    return ScanWorkflow(
        credentials=credentials,
        resolver=resolver,
        sessions=SessionHolder(),
    )


@pytest.fixture
def registered_identity(db):
    """Identity U1 'Ann' with PIN 4821 in the database."""
    return async_to_sync(CredentialStore(store=DjangoDocumentStore()).register)(
        'U1', 'Ann', '4821'
    )


@pytest.fixture
def session(registered_identity):
    """Registered scan session for U1."""
    return session_registry.establish(registered_identity)


@pytest.fixture
def authenticated_client(api_client, session):
    """API client carrying a bearer token for U1's session."""
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(session)}')
    return api_client
