"""
    In-memory Document Store Provider module
"""

import copy
import uuid
import logging
from typing import Optional, Dict, List, Any, Iterable, Tuple
from config import setup_logging
from providers.provider_interfaces import DocumentStore, StoreError
from utils.helpers import get_path


setup_logging()
logger = logging.getLogger(__name__)

class MemoryDocumentStore(DocumentStore):
    """Process-local DocumentStore used for tests and local runs

    `fail_next(operation)` makes the next call of that operation raise
    StoreError, mimicking a network or service failure.
    """

    def __init__(self):
        super().__init__()
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._failures: Dict[str, int] = {}
        self.write_count = 0

    def fail_next(self, operation: str, times: int = 1) -> None:
        self._failures[operation] = self._failures.get(operation, 0) + times

    def _check_failure(self, operation: str) -> None:
        if self._failures.get(operation):
            self._failures[operation] -= 1
            raise StoreError(f"Simulated failure in {operation}")

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def _existing(self, collection: str, doc_id: str) -> Dict[str, Any]:
        document = self._collection(collection).get(doc_id)
        if document is None:
            raise StoreError(f"Document '{doc_id}' not found in '{collection}'")
        return document

    def _written(self, collection: str) -> None:
        self.write_count += 1
        self._notify(collection)

    # ----------------------------- reads -----------------------------

    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        self._check_failure('list_documents')
        return [dict(copy.deepcopy(data), id=doc_id) for doc_id, data in self._collection(collection).items()]

    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        self._check_failure('get_document')
        data = self._collection(collection).get(doc_id)
        return dict(copy.deepcopy(data), id=doc_id) if data is not None else None

    def query_in(self, collection: str, field_path: str, values: Iterable[str],
                 limit: Optional[int] = None) -> List[Dict[str, Any]]:
        self._check_failure('query_in')
        wanted = set(values)
        matches = []

        for doc_id, data in self._collection(collection).items():
            if get_path(data, field_path) in wanted:
                matches.append(dict(copy.deepcopy(data), id=doc_id))
                if limit and len(matches) >= limit:
                    break

        return matches

    # ----------------------------- writes ----------------------------

    def create_document(self, collection: str, data: Dict[str, Any]) -> str:
        self._check_failure('create_document')
        doc_id = uuid.uuid4().hex
        self._collection(collection)[doc_id] = copy.deepcopy({k: v for k, v in data.items() if k != 'id'})
        logger.info(f"Document {doc_id} created in: {collection}")
        self._written(collection)
        return doc_id

    def set_document(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._check_failure('set_document')
        self._collection(collection)[doc_id] = copy.deepcopy({k: v for k, v in data.items() if k != 'id'})
        logger.info(f"Document {doc_id} set in: {collection}")
        self._written(collection)

    def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self._check_failure('update_document')
        self._existing(collection, doc_id).update(copy.deepcopy(fields))
        self._written(collection)

    def delete_document(self, collection: str, doc_id: str) -> None:
        self._check_failure('delete_document')
        self._collection(collection).pop(doc_id, None)
        logger.info(f"Document {doc_id} deleted from: {collection}")
        self._written(collection)

    def array_union(self, collection: str, doc_id: str, field: str, values: Iterable[Dict[str, Any]]) -> None:
        self._check_failure('array_union')
        document = self._existing(collection, doc_id)
        current = document.setdefault(field, [])
        for value in values:
            if value not in current:
                current.append(copy.deepcopy(value))
        self._written(collection)

    def array_remove(self, collection: str, doc_id: str, field: str, values: Iterable[Dict[str, Any]]) -> None:
        self._check_failure('array_remove')
        document = self._existing(collection, doc_id)
        removed = list(values)
        document[field] = [item for item in document.get(field, []) if item not in removed]
        self._written(collection)

    def batch_update(self, collection: str, updates: List[Tuple[str, Dict[str, Any]]]) -> None:
        self._check_failure('batch_update')
        # Validate every target first so nothing is applied on failure
        for doc_id, _ in updates:
            self._existing(collection, doc_id)

        for doc_id, fields in updates:
            self._collection(collection)[doc_id].update(copy.deepcopy(fields))

        logger.info(f"Batch updated {len(updates)} documents in: {collection}")
        self._written(collection)
