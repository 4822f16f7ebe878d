"""
Document store backends.

Every service in this project receives its store through the constructor.
A store holds a few named collections of flat documents keyed by the
normalized scanned code, and offers these operations:

    get(collection, key)                -> document or None
    insert(collection, key, document)   -> conditional insert
    delete(collection, key, **match)    -> conditional delete
    scan(collection, **filters)         -> documents matching all filters
    move(source, key, target, target_key, document, **match)
                                        -> conditional delete from source and
                                           insert into target, all or nothing

Two backends are provided:

    DjangoDocumentStore     one Django model per collection
    InMemoryDocumentStore   dicts behind a lock, for tests and demos

Example::

    store = InMemoryDocumentStore()
    await store.insert(IDENTITIES, 'U1', {'user_id': 'U1', ...})
    await store.get(IDENTITIES, 'U1')
"""

import asyncio
import copy
import logging
import threading
from functools import lru_cache
from typing import Dict, List, Optional

from asgiref.sync import sync_to_async
from django.apps import apps as django_apps
from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils.module_loading import import_string

from .exceptions import (
    DocumentExistsError,
    StoreUnavailableError,
    UnknownCollectionError,
)

logger = logging.getLogger(__name__)

IDENTITIES = 'identities'
CATALOG_ITEMS = 'catalog_items'
ACTIVE_CUSTODY = 'active_custody'
CUSTODY_EVENTS = 'custody_events'

COLLECTIONS = (IDENTITIES, CATALOG_ITEMS, ACTIVE_CUSTODY, CUSTODY_EVENTS)

DEFAULT_MODELS = {
    IDENTITIES: 'accounts.Identity',
    CATALOG_ITEMS: 'catalog.CatalogItem',
    ACTIVE_CUSTODY: 'custody.CustodyRecord',
    CUSTODY_EVENTS: 'custody.CustodyEvent',
}


class DjangoDocumentStore:
    """
    Store backed by the Django ORM.

    The model's primary key is the document key, so the conditional insert
    is enforced by the database constraint rather than a read-then-write.
    ORM calls run through sync_to_async and every round trip is bounded by
    ``timeout`` seconds.
    """

    def __init__(self, timeout: Optional[float] = None, models: Optional[Dict[str, str]] = None):
        self.timeout = timeout
        self._labels = dict(models or DEFAULT_MODELS)

    def _model(self, collection):
        try:
            label = self._labels[collection]
        except KeyError:
            raise UnknownCollectionError(f"Unknown collection '{collection}'")
        return django_apps.get_model(label)

    async def _run(self, func, *args, **kwargs):
        try:
            return await asyncio.wait_for(
                sync_to_async(func)(*args, **kwargs),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Store call %s timed out after %ss", func.__name__, self.timeout)
            raise StoreUnavailableError()
        except DatabaseError as e:
            logger.error("Store call %s failed: %s", func.__name__, e)
            raise StoreUnavailableError()

    # -- synchronous ORM work -------------------------------------------------

    def _get(self, collection, key):
        return self._model(collection).objects.filter(pk=key).values().first()

    def _insert(self, collection, key, document):
        model = self._model(collection)
        fields = dict(document)
        fields[model._meta.pk.attname] = key
        try:
            with transaction.atomic():
                model.objects.create(**fields)
        except IntegrityError:
            raise DocumentExistsError(collection, key)

    def _delete(self, collection, key, match):
        deleted, _ = self._model(collection).objects.filter(pk=key, **match).delete()
        return deleted > 0

    def _scan(self, collection, filters):
        return list(self._model(collection).objects.filter(**filters).values())

    def _move(self, source, key, target, target_key, document, match):
        source_model = self._model(source)
        target_model = self._model(target)
        fields = dict(document)
        fields[target_model._meta.pk.attname] = target_key
        try:
            with transaction.atomic():
                deleted, _ = source_model.objects.filter(pk=key, **match).delete()
                if not deleted:
                    return False
                target_model.objects.create(**fields)
        except IntegrityError:
            raise DocumentExistsError(target, target_key)
        return True

    # -- async interface ------------------------------------------------------

    async def get(self, collection: str, key: str) -> Optional[dict]:
        return await self._run(self._get, collection, key)

    async def insert(self, collection: str, key: str, document: dict) -> None:
        await self._run(self._insert, collection, key, document)

    async def delete(self, collection: str, key: str, **match) -> bool:
        return await self._run(self._delete, collection, key, match)

    async def scan(self, collection: str, **filters) -> List[dict]:
        return await self._run(self._scan, collection, filters)

    async def move(self, source: str, key: str, target: str, target_key: str,
                   document: dict, **match) -> bool:
        """
        Delete source[key] if it matches and insert document as target[target_key],
        in one transaction.

        Returns:
            False if source[key] was missing or did not match (nothing written)

        Raises:
            DocumentExistsError: If target_key is taken (source left intact)
        """
        return await self._run(self._move, source, key, target, target_key, document, match)


class InMemoryDocumentStore:
    """
    Store held in process memory.

    Each call yields to the event loop once before touching the data, the
    way a network round trip would, so concurrent tasks genuinely interleave
    between a lookup and the following write.
    """

    def __init__(self, timeout: Optional[float] = None, collections=COLLECTIONS):
        self.timeout = timeout
        self._data: Dict[str, Dict[str, dict]] = {name: {} for name in collections}
        self._lock = threading.Lock()

    def _collection(self, collection):
        try:
            return self._data[collection]
        except KeyError:
            raise UnknownCollectionError(f"Unknown collection '{collection}'")

    async def get(self, collection: str, key: str) -> Optional[dict]:
        await asyncio.sleep(0)
        with self._lock:
            document = self._collection(collection).get(key)
            return copy.deepcopy(document)

    async def insert(self, collection: str, key: str, document: dict) -> None:
        await asyncio.sleep(0)
        with self._lock:
            documents = self._collection(collection)
            if key in documents:
                raise DocumentExistsError(collection, key)
            documents[key] = copy.deepcopy(document)

    async def delete(self, collection: str, key: str, **match) -> bool:
        await asyncio.sleep(0)
        with self._lock:
            documents = self._collection(collection)
            document = documents.get(key)
            if document is None:
                return False
            if any(document.get(field) != value for field, value in match.items()):
                return False
            del documents[key]
            return True

    async def scan(self, collection: str, **filters) -> List[dict]:
        await asyncio.sleep(0)
        with self._lock:
            return [
                copy.deepcopy(document)
                for document in self._collection(collection).values()
                if all(document.get(field) == value for field, value in filters.items())
            ]

    async def move(self, source: str, key: str, target: str, target_key: str,
                   document: dict, **match) -> bool:
        await asyncio.sleep(0)
        with self._lock:
            sources = self._collection(source)
            targets = self._collection(target)
            current = sources.get(key)
            if current is None:
                return False
            if any(current.get(field) != value for field, value in match.items()):
                return False
            if target_key in targets:
                raise DocumentExistsError(target, target_key)
            del sources[key]
            targets[target_key] = copy.deepcopy(document)
            return True


@lru_cache(maxsize=None)
def get_document_store():
    """Return the process-wide store configured by SCAN_STORE_BACKEND."""
    backend = import_string(settings.SCAN_STORE_BACKEND)
    logger.info("Using document store %s", settings.SCAN_STORE_BACKEND)
    return backend(timeout=settings.SCAN_STORE_TIMEOUT)
