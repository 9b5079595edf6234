"""
    Hero Banner Settings Service module

    The home page banner is one settings document holding an `images` array
    of {id, src, alt, uploadedAt} records.
"""

import time
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import ValidationError as SchemaValidationError
from config import setup_logging, SETTINGS_COLLECTION, HERO_BANNER_DOCUMENT, MAX_HERO_IMAGES
from providers.provider_interfaces import DocumentStore, StoreError
from taxonomy_errors import NotFound, OperationFailed, ValidationError
from taxonomy_schemas import HeroBannerImage


setup_logging()
logger = logging.getLogger(__name__)

class HeroSettingsService:
    def __init__(self, store: DocumentStore, max_images: int = MAX_HERO_IMAGES):
        self.store = store
        self.max_images = max_images

    def _load(self) -> Optional[Dict[str, Any]]:
        try:
            return self.store.get_document(SETTINGS_COLLECTION, HERO_BANNER_DOCUMENT)

        except StoreError as e:
            logger.error(f"Error fetching hero banner images: {e}", exc_info=True)
            raise OperationFailed("Could not load hero banner images.") from e

    @staticmethod
    def _stored_images(document: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [entry for entry in (document or {}).get('images') or [] if isinstance(entry, dict)]

    def list_images(self) -> List[HeroBannerImage]:
        images = []
        for entry in self._stored_images(self._load()):
            try:
                images.append(HeroBannerImage.model_validate(entry))
            except SchemaValidationError as e:
                logger.warning(f"Skipping malformed hero image {entry.get('id')}: {e}")
        return images

    def add_image(self, src: Optional[str], alt: Optional[str]) -> HeroBannerImage:
        """Append an image by URL, creating the settings document on first use"""
        src = (src or '').strip()
        alt = (alt or '').strip()
        if not src:
            raise ValidationError("Image URL cannot be empty.")
        if not alt:
            raise ValidationError("Alt text cannot be empty.")

        document = self._load()
        if len(self._stored_images(document)) >= self.max_images:
            raise ValidationError(
                f"Maximum of {self.max_images} hero banner images reached. Delete one to add another."
            )

        image = HeroBannerImage(
            id=str(time.time_ns() // 1_000_000),
            src=src,
            alt=alt,
            uploaded_at=datetime.now(timezone.utc).isoformat(),
        )

        try:
            if document is None:
                self.store.set_document(SETTINGS_COLLECTION, HERO_BANNER_DOCUMENT, {'images': [image.to_document()]})
            else:
                self.store.array_union(SETTINGS_COLLECTION, HERO_BANNER_DOCUMENT, 'images', [image.to_document()])

        except StoreError as e:
            logger.error(f"Error adding hero image {src}: {e}", exc_info=True)
            raise OperationFailed("Could not add image. Make sure the URL is valid.") from e

        logger.info(f"Hero image {image.id} added: {src}")
        return image

    def remove_image(self, image_id: str) -> None:
        """Remove the stored record with this id, exactly as stored"""
        stored = [entry for entry in self._stored_images(self._load()) if entry.get('id') == image_id]
        if not stored:
            raise NotFound(f"Hero image '{image_id}' not found.")

        try:
            self.store.array_remove(SETTINGS_COLLECTION, HERO_BANNER_DOCUMENT, 'images', stored)

        except StoreError as e:
            logger.error(f"Error deleting hero image {image_id}: {e}", exc_info=True)
            raise OperationFailed("Could not delete image.") from e

        logger.info(f"Hero image {image_id} removed")
