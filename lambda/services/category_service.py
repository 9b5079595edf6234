"""
    Category Tree Editor module

    Top-level categories are documents with a store-assigned id; their
    subcategories live in the embedded `subcategories` array, keyed by the
    slug of the name at creation time.
"""

import logging
from enum import Enum
from typing import List, Optional, Union
from pydantic import ValidationError as PydanticValidationError
from config import setup_logging, CATEGORIES_COLLECTION
from services.live_view import reduce_categories
from services.taxonomy_editor import TaxonomyEditor
from taxonomy_errors import DeletionBlocked, NotFound, OperationFailed, ValidationError
from taxonomy_schemas import Category, Subcategory, TaxonomyField
from utils.helpers import slugify


setup_logging()
logger = logging.getLogger(__name__)

class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class CategoryTreeEditor(TaxonomyEditor):
    """Add, reorder and guarded delete over the `categories` collection"""

    collection = CATEGORIES_COLLECTION
    reducer = staticmethod(reduce_categories)

    @property
    def categories(self) -> List[Category]:
        """Display-ordered live view"""
        return self.live_view.state

    def get_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self.categories if c.id == category_id), None)

    def _require_category(self, category_id: str) -> Category:
        category = self.get_category(category_id)
        if category is None:
            raise NotFound(f"Category '{category_id}' not found.")
        return category

    def find_subcategory(self, parent_id: str, subcategory_id: str) -> Subcategory:
        parent = self._require_category(parent_id)
        subcategory = next((s for s in parent.subcategories if s.id == subcategory_id), None)
        if subcategory is None:
            raise NotFound(f"Subcategory '{subcategory_id}' not found in '{parent.name}'.")
        return subcategory

    def next_order(self) -> int:
        orders = [c.order for c in self.categories if c.order is not None]
        return max(orders) + 1 if orders else 0

    # ------------------------------ add ------------------------------

    def add_category(self, name: str, icon_name: Optional[str] = None) -> str:
        """Create a category after every ordered one; returns its id"""
        cleaned = self._require_name(name, "Category")
        icon = self._optional_text(icon_name)

        with self._submitting():
            document = {'name': cleaned, 'order': self.next_order(), 'subcategories': []}
            if icon:
                document['iconName'] = icon

            category_id = self._store_call("add category", self.store.create_document,
                                           self.collection, document)

        logger.info(f"Category '{cleaned}' added with id {category_id} and order {document['order']}")
        return category_id

    def add_subcategory(self, parent_id: str, name: str, icon_name: Optional[str] = None) -> Subcategory:
        cleaned = self._require_name(name, "Subcategory")
        parent = self._require_category(parent_id)
        subcategory = Subcategory(id=slugify(cleaned), name=cleaned, icon_name=self._optional_text(icon_name))

        if any(existing.id == subcategory.id for existing in parent.subcategories):
            logger.warning(f"Subcategory id '{subcategory.id}' already used in category '{parent.name}'")

        with self._submitting():
            self._store_call("add subcategory", self.store.array_union,
                             self.collection, parent.id, 'subcategories', [subcategory.to_document()])

        logger.info(f"Subcategory '{cleaned}' added to '{parent.name}'")
        return subcategory

    # ----------------------------- order -----------------------------

    def move_category(self, index: int, direction: Union[MoveDirection, str]) -> bool:
        """Swap `order` with the display neighbour; False when nothing moves"""
        try:
            direction = MoveDirection(direction)
        except ValueError:
            raise ValidationError(f"Direction must be 'up' or 'down', got '{direction}'.")

        categories = self.categories
        neighbour = index - 1 if direction is MoveDirection.UP else index + 1
        if not (0 <= index < len(categories) and 0 <= neighbour < len(categories)):
            return False

        with self._submitting():
            current, other = categories[index], categories[neighbour]

            # Unordered categories display last; pin them after the highest order
            # so the swap below compares real positions.
            orders = {}
            unordered = 0
            base = self.next_order()
            for category in categories:
                if category.order is None:
                    orders[category.id] = base + unordered
                    unordered += 1
                else:
                    orders[category.id] = category.order
            orders[current.id], orders[other.id] = orders[other.id], orders[current.id]

            changed = [c for c in categories if c.order != orders[c.id]]
            previous = {c.id: c.order for c in changed}
            for category in changed:
                category.order = orders[category.id]

            if changed:
                try:
                    self._store_call("update category order", self.store.batch_update, self.collection,
                                     [(c.id, {'order': c.order}) for c in changed])
                except OperationFailed:
                    for category in changed:
                        category.order = previous[category.id]
                    raise

        logger.info(f"Category '{current.name}' moved {direction.value}")
        return True

    # ----------------------------- delete ----------------------------

    def delete_category(self, category_id: str) -> None:
        """Delete a category and its embedded subcategories if no listing uses them"""
        category = self._require_category(category_id)

        with self._submitting():
            if self.guard.is_associated(category.descendant_ids(), TaxonomyField.CATEGORY):
                logger.warning(f"Deletion of category '{category.name}' blocked by listings")
                raise DeletionBlocked(
                    "category", category.name,
                    f"Cannot delete category \"{category.name}\" as it or its subcategories "
                    f"are associated with existing listings."
                )

            self._store_call("delete category", self.store.delete_document, self.collection, category.id)

        logger.info(f"Category '{category.name}' deleted")

    def _stored_subcategories(self, parent: Category, subcategory: Subcategory) -> List[dict]:
        """Raw array entries that parse to `subcategory`, unknown keys included"""
        document = self._store_call("load category", self.store.get_document, self.collection, parent.id)
        if document is None:
            raise NotFound(f"Category '{parent.id}' not found.")

        matches = []
        for entry in document.get('subcategories') or []:
            if not isinstance(entry, dict) or entry.get('id') != subcategory.id:
                continue
            try:
                if Subcategory.model_validate(entry) == subcategory:
                    matches.append(entry)
            except PydanticValidationError:
                logger.warning(f"Skipping malformed subcategory entry in '{parent.name}': {entry}")
        return matches

    def delete_subcategory(self, parent_id: str, subcategory: Subcategory) -> None:
        """Remove the exact subcategory record from its parent"""
        parent = self._require_category(parent_id)

        with self._submitting():
            if self.guard.is_associated([subcategory.id], TaxonomyField.SUBCATEGORY):
                logger.warning(f"Deletion of subcategory '{subcategory.name}' blocked by listings")
                raise DeletionBlocked("subcategory", subcategory.name)

            stored = self._stored_subcategories(parent, subcategory)
            if not stored:
                raise NotFound(f"Subcategory '{subcategory.id}' not found in '{parent.name}'.")

            self._store_call("delete subcategory", self.store.array_remove,
                             self.collection, parent.id, 'subcategories', stored)

        logger.info(f"Subcategory '{subcategory.name}' removed from '{parent.name}'")
