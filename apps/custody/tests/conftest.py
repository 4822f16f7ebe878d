from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from asgiref.sync import async_to_sync
from rest_framework.test import APIClient

from apps.accounts.authentication import issue_token
from apps.accounts.services import CredentialStore, session_registry
from apps.catalog.services import ItemCatalogResolver
from apps.catalog.tests.fakes import FakeTitleLookup
from apps.core.stores import DjangoDocumentStore, InMemoryDocumentStore
from apps.custody.services import CheckinPolicy, CustodyLedger


class SteppingClock:
    """Returns a time one minute later on every call."""

    def __init__(self, start=datetime(2024, 5, 1, 9, 0, tzinfo=dt_timezone.utc)):
        self.now = start

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture(autouse=True)
def clear_sessions():
    session_registry.clear_all()
    yield
    session_registry.clear_all()


@pytest.fixture
def memory_store():
    return InMemoryDocumentStore()


@pytest.fixture
def credentials(memory_store):
    return CredentialStore(store=memory_store)


@pytest.fixture
def ann(credentials):
    """Identity U1 'Ann'."""
    return async_to_sync(credentials.register)('U1', 'Ann', '4821')


@pytest.fixture
def bob(credentials):
    """Identity U2 'Bob'."""
    return async_to_sync(credentials.register)('U2', 'Bob', '1357')


@pytest.fixture
def ledger(memory_store):
    """Holder-only ledger over the in-memory store with a stepping clock."""
    return CustodyLedger(store=memory_store, clock=SteppingClock())


@pytest.fixture
def open_ledger(memory_store):
    """Ledger that lets anyone check items in."""
    return CustodyLedger(
        store=memory_store,
        checkin_policy=CheckinPolicy.ANY,
        clock=SteppingClock(),
    )


@pytest.fixture
def title_lookup():
    return FakeTitleLookup(titles=['Lion Skull'])


@pytest.fixture
def resolver(memory_store, title_lookup):
    return ItemCatalogResolver(store=memory_store, title_lookup=title_lookup)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


def _client_for(user_id, display_name, pin):
    identity = async_to_sync(CredentialStore(store=DjangoDocumentStore()).register)(
        user_id, display_name, pin
    )
    client = APIClient()
    session = session_registry.establish(identity)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(session)}')
    return client


@pytest.fixture
def ann_client(db):
    """API client signed in as U1 'Ann'."""
    return _client_for('U1', 'Ann', '4821')


@pytest.fixture
def bob_client(db):
    """API client signed in as U2 'Bob'."""
    return _client_for('U2', 'Bob', '1357')
