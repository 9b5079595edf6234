"""
    Provider Interfaces for various service providers
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Callable, Iterable, Tuple
from dataclasses import dataclass
from config import setup_logging


setup_logging()
logger = logging.getLogger(__name__)

ChangeCallback = Callable[[List[Dict[str, Any]]], None]
ErrorCallback = Callable[[Exception], None]


@dataclass
class LLMResponse:
    content: str
    usage_tokens: Optional[int] = None


class StoreError(Exception):
    """Raised by document store providers on any read/write failure"""


class LLMProvider(ABC):
    @abstractmethod
    def generate_text(self, prompt: str, max_tokens: int = 1000) -> Optional[LLMResponse]:
        pass

    @abstractmethod
    def analyze_image(self, image_data: bytes, prompt: str, max_tokens: int = 2000) -> Optional[LLMResponse]:
        pass


class ImageStorage(ABC):
    """Interface for storing and retrieving images"""

    @abstractmethod
    def store(self, key: str, image_data: bytes, metadata: Optional[Dict] = None) -> Optional[str]:
        """Store image and return URL/path"""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete image"""
        pass


class ChangeNotifier:
    """Per-collection change listeners shared by document store providers

    After every write the store calls `_notify(collection)`, which hands each
    listener the full, freshly listed collection.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Tuple[ChangeCallback, Optional[ErrorCallback]]]] = {}

    def subscribe(self, collection: str, on_change: ChangeCallback,
                  on_error: Optional[ErrorCallback] = None) -> Callable[[], None]:
        entry = (on_change, on_error)
        self._listeners.setdefault(collection, []).append(entry)

        def unsubscribe() -> None:
            listeners = self._listeners.get(collection, [])
            if entry in listeners:
                listeners.remove(entry)

        return unsubscribe

    def has_listeners(self, collection: str) -> bool:
        return bool(self._listeners.get(collection))

    def _notify(self, collection: str) -> None:
        """Re-list `collection` for its listeners; a no-op when nobody listens"""
        if not self.has_listeners(collection):
            return
        listeners = list(self._listeners[collection])

        try:
            documents = self.list_documents(collection)

        except StoreError as e:
            logger.error(f"Change notification for '{collection}' failed: {e}")
            for _, on_error in listeners:
                if on_error:
                    on_error(e)
            return

        for on_change, _ in listeners:
            on_change(documents)


class DocumentStore(ChangeNotifier, ABC):
    """Interface for a hosted document database

    Documents are dicts whose key is returned under "id". Array primitives
    only operate on top-level array fields.
    """

    @abstractmethod
    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def create_document(self, collection: str, data: Dict[str, Any]) -> str:
        """Create with a store-assigned id and return it"""
        pass

    @abstractmethod
    def set_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Create or silently overwrite the document at an explicit key"""
        pass

    @abstractmethod
    def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Replace the given top-level fields of an existing document"""
        pass

    @abstractmethod
    def delete_document(self, collection: str, doc_id: str) -> None:
        pass

    @abstractmethod
    def array_union(self, collection: str, doc_id: str, field: str, values: Iterable[Dict[str, Any]]) -> None:
        """Append each value not already present (structural equality)"""
        pass

    @abstractmethod
    def array_remove(self, collection: str, doc_id: str, field: str, values: Iterable[Dict[str, Any]]) -> None:
        """Remove every element structurally equal to one of values"""
        pass

    @abstractmethod
    def batch_update(self, collection: str, updates: List[Tuple[str, Dict[str, Any]]]) -> None:
        """Apply several (doc_id, fields) updates all-or-nothing"""
        pass

    @abstractmethod
    def query_in(self, collection: str, field_path: str, values: Iterable[str],
                 limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Documents whose dotted field_path value is one of values"""
        pass
