"""
    Listing Moderation Service module
"""

import logging
from typing import List, Optional, Union
from pydantic import ValidationError as SchemaValidationError
from config import setup_logging, LISTINGS_COLLECTION
from providers.provider_interfaces import DocumentStore, ImageStorage, StoreError
from services.storage_service import ListingImageService
from taxonomy_errors import NotFound, OperationFailed, ValidationError
from taxonomy_schemas import Listing, ListingStatus


setup_logging()
logger = logging.getLogger(__name__)

class ListingModerationService:
    """Admin moderation of listings: browse by status, change status, delete"""

    def __init__(self, store: DocumentStore, image_storage: Optional[ImageStorage] = None):
        self.store = store
        self.images = ListingImageService(image_storage)

    def list_listings(self, status: Optional[Union[ListingStatus, str]] = None) -> List[Listing]:
        """Newest first; optionally only listings in one status"""
        wanted = self._parse_status(status) if status else None

        try:
            documents = self.store.list_documents(LISTINGS_COLLECTION)

        except StoreError as e:
            logger.error(f"Error fetching listings: {e}", exc_info=True)
            raise OperationFailed("Could not fetch listings.") from e

        listings = []
        for document in documents:
            try:
                listings.append(Listing.model_validate(document))
            except SchemaValidationError as e:
                logger.warning(f"Skipping malformed listing {document.get('id')}: {e}")

        if wanted is not None:
            listings = [listing for listing in listings if listing.status is wanted]

        listings.sort(key=lambda listing: listing.posted_date or '', reverse=True)
        return listings

    def update_status(self, listing_id: str, status: Union[ListingStatus, str]) -> Listing:
        new_status = self._parse_status(status)
        listing = self._require_listing(listing_id)

        try:
            self.store.update_document(LISTINGS_COLLECTION, listing_id, {'status': new_status.value})

        except StoreError as e:
            logger.error(f"Error updating status of listing {listing_id}: {e}", exc_info=True)
            raise OperationFailed("Could not update listing status.") from e

        logger.info(f"Listing {listing_id} status changed from {listing.status.value} to {new_status.value}")
        return listing.model_copy(update={'status': new_status})

    def delete_listing(self, listing_id: str) -> int:
        """Delete the listing, then its stored photos; returns photos removed"""
        listing = self._require_listing(listing_id)

        try:
            self.store.delete_document(LISTINGS_COLLECTION, listing_id)

        except StoreError as e:
            logger.error(f"Error deleting listing {listing_id}: {e}", exc_info=True)
            raise OperationFailed("Could not delete listing.") from e

        removed = sum(1 for image_url in listing.images if self.images.delete_listing_image(image_url))

        logger.info(f"Listing {listing_id} deleted with {removed}/{len(listing.images)} images")
        return removed

    def _require_listing(self, listing_id: str) -> Listing:
        try:
            document = self.store.get_document(LISTINGS_COLLECTION, listing_id)

        except StoreError as e:
            logger.error(f"Error fetching listing {listing_id}: {e}", exc_info=True)
            raise OperationFailed("Could not fetch listing.") from e

        if document is None:
            raise NotFound(f"Listing '{listing_id}' not found.")

        return Listing.model_validate(document)

    @staticmethod
    def _parse_status(status: Union[ListingStatus, str]) -> ListingStatus:
        try:
            return ListingStatus(status)
        except ValueError:
            allowed = ', '.join(s.value for s in ListingStatus)
            raise ValidationError(f"Status must be one of: {allowed}.")
