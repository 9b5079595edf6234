"""
    Storage Service module
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from config import setup_logging, IMAGE_STORAGE_PROVIDER
from providers.provider_factory import ProviderFactory
from providers.provider_interfaces import ImageStorage


setup_logging()
logger = logging.getLogger(__name__)

class ListingImageService:
    """Business logic layer for listing photo storage"""

    def __init__(self, image_storage: Optional[ImageStorage] = None):
        self.image_storage = image_storage or ProviderFactory.create_image_storage(IMAGE_STORAGE_PROVIDER)

    def store_listing_image(self, listing_id: str, image_data: bytes) -> Optional[str]:
        """Store a listing photo and return its storage URL"""
        key = f"listings/{listing_id}/{uuid.uuid4().hex}.jpg"

        metadata = {
            'listing_id': listing_id,
            'uploaded_at': datetime.now(timezone.utc).isoformat()
        }

        url = self.image_storage.store(key, image_data, metadata)
        if url:
            logger.info(f"Stored image for listing {listing_id} at {url}")
        else:
            logger.error(f"Image storage failed for listing {listing_id}")

        return url

    def delete_listing_image(self, image_url: str) -> bool:
        """Delete a listing photo given its key or s3:// URL"""
        if not image_url:
            return False

        storage_key = self._extract_storage_key(image_url)
        if not storage_key:
            logger.warning(f"Not a deletable storage reference: {image_url}")
            return False

        return self.image_storage.delete(storage_key)

    @staticmethod
    def _extract_storage_key(storage_url: str) -> Optional[str]:
        """Extract storage key from URL"""
        if storage_url.startswith('s3://'):
            parts = storage_url[5:].split('/', 1)
            return parts[1] if len(parts) == 2 and parts[1] else None

        # External images (placeholders, CDN links) are not ours to delete
        if storage_url.startswith(('http://', 'https://', 'data:')):
            return None

        return storage_url
