"""
    Referential Guard module
"""

import logging
from typing import Iterable, Union
from config import setup_logging, LISTINGS_COLLECTION
from providers.provider_interfaces import DocumentStore, StoreError
from taxonomy_errors import OperationFailed
from taxonomy_schemas import TaxonomyField


setup_logging()
logger = logging.getLogger(__name__)

class ReferentialGuard:
    """Read-only check that no listing still references a taxonomy node"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def is_associated(self, ids: Iterable[str], field: Union[TaxonomyField, str]) -> bool:
        """True if any listing's `field` value is one of ids

        Store failures are raised as OperationFailed so callers never
        delete on an unanswered check.
        """
        id_set = {node_id for node_id in ids if node_id}
        if not id_set:
            return False

        field_path = field.value if isinstance(field, TaxonomyField) else field

        try:
            matches = self.store.query_in(LISTINGS_COLLECTION, field_path, sorted(id_set), limit=1)

        except StoreError as e:
            logger.error(f"Association check on {field_path} failed: {e}", exc_info=True)
            raise OperationFailed("Could not verify whether listings use this item.") from e

        if matches:
            logger.info(f"Listing {matches[0].get('id')} references {field_path} in {sorted(id_set)}")

        return bool(matches)
