"""
    Live View Synchronizer module

    Keeps an in-memory taxonomy tree equal to the store's last written value.
    Every change notification (or poll) yields the full collection, which a
    pure reducer turns into the new sorted state; the old state is replaced
    wholesale, never patched.
"""

import time
import logging
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar
from pydantic import ValidationError
from config import setup_logging
from providers.provider_interfaces import DocumentStore, StoreError
from taxonomy_schemas import Category, LocationCountry, category_sort_key, country_sort_key


setup_logging()
logger = logging.getLogger(__name__)

T = TypeVar('T')
Reducer = Callable[[List[Dict[str, Any]]], List[T]]


def _parse_documents(documents: List[Dict[str, Any]], model) -> list:
    parsed = []
    for document in documents:
        try:
            parsed.append(model.model_validate(document))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {model.__name__} document {document.get('id')}: {e}")
    return parsed


def reduce_categories(documents: List[Dict[str, Any]]) -> List[Category]:
    return sorted(_parse_documents(documents, Category), key=category_sort_key)


def reduce_countries(documents: List[Dict[str, Any]]) -> List[LocationCountry]:
    return sorted(_parse_documents(documents, LocationCountry), key=country_sort_key)


class LiveViewSynchronizer(Generic[T]):
    """Subscription to one collection feeding a reducer"""

    def __init__(self, store: DocumentStore, collection: str, reducer: Reducer,
                 on_error: Optional[Callable[[Exception], None]] = None):
        self.store = store
        self.collection = collection
        self.reducer = reducer
        self.on_error = on_error
        self.state: List[T] = []
        self._listeners: List[Callable[[List[T]], None]] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    def add_listener(self, listener: Callable[[List[T]], None]) -> None:
        self._listeners.append(listener)

    def start(self) -> 'LiveViewSynchronizer[T]':
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.collection, self._apply,
                                                     self._handle_notification_error)
            logger.info(f"Subscribed to '{self.collection}'")

        try:
            self.refresh()
        except Exception:
            self.stop()
            raise
        return self

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.info(f"Unsubscribed from '{self.collection}'")

    def __enter__(self) -> 'LiveViewSynchronizer[T]':
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def refresh(self) -> List[T]:
        """Pull the whole collection once and replace the state"""
        try:
            self._apply(self.store.list_documents(self.collection))
        except StoreError as e:
            self._handle_error(e)
        return self.state

    def snapshots(self, poll_interval: float = 2.0, max_snapshots: Optional[int] = None,
                  max_polls: Optional[int] = None) -> Iterator[List[T]]:
        """Lazily poll the store, yielding each distinct reduced state

        Each call starts a fresh sequence; the first poll always yields.
        """
        yielded = 0
        polls = 0
        previous: Optional[List[T]] = None

        while (max_snapshots is None or yielded < max_snapshots) and (max_polls is None or polls < max_polls):
            if polls:
                time.sleep(poll_interval)
            polls += 1

            try:
                documents = self.store.list_documents(self.collection)
            except StoreError as e:
                self._handle_error(e)
                continue

            self._apply(documents)
            if previous is None or self.state != previous:
                previous = list(self.state)
                yielded += 1
                yield previous

    def _apply(self, documents: List[Dict[str, Any]]) -> None:
        self.state = self.reducer(documents)
        for listener in self._listeners:
            listener(self.state)

    def _handle_error(self, error: Exception) -> None:
        logger.error(f"Live view of '{self.collection}' could not refresh: {error}")
        if self.on_error:
            self.on_error(error)

    def _handle_notification_error(self, error: Exception) -> None:
        """A failed re-read after a write keeps the previous state"""
        logger.warning(f"Live view of '{self.collection}' missed a change notification: {error}")
