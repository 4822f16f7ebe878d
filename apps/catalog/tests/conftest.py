import pytest
from asgiref.sync import async_to_sync
from rest_framework.test import APIClient

from apps.accounts.authentication import issue_token
from apps.accounts.services import CredentialStore, session_registry
from apps.catalog.services import ItemCatalogResolver, LookupFailedError
from apps.core.stores import DjangoDocumentStore, InMemoryDocumentStore

from .fakes import FakeTitleLookup


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore()


@pytest.fixture
def title_lookup():
    return FakeTitleLookup()


@pytest.fixture
def failing_lookup():
    return FakeTitleLookup(error=LookupFailedError('Title lookup for X1 failed: 503'))


@pytest.fixture
def resolver(memory_store, title_lookup):
    return ItemCatalogResolver(store=memory_store, title_lookup=title_lookup)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client(db, api_client):
    """API client signed in as U1 'Ann'."""
    identity = async_to_sync(CredentialStore(store=DjangoDocumentStore()).register)(
        'U1', 'Ann', '4821'
    )
    session = session_registry.establish(identity)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(session)}')
    yield api_client
    session_registry.clear(session.session_id)
