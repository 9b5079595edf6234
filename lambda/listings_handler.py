"""
    Listing Moderation Lambda
"""

import logging
from typing import Optional
from config import setup_logging, DOCUMENT_STORE_PROVIDER
from providers.provider_factory import ProviderFactory
from services.listing_service import ListingModerationService
from taxonomy_errors import TaxonomyError, ValidationError
from utils.helpers import create_response, error_response, parse_json_body


setup_logging()
logger = logging.getLogger(__name__)

_moderation_service: Optional[ListingModerationService] = None

def get_moderation_service() -> ListingModerationService:
    """Service shared across warm invocations"""
    global _moderation_service
    if _moderation_service is None:
        store = ProviderFactory.create_document_store(DOCUMENT_STORE_PROVIDER)
        _moderation_service = ListingModerationService(store)
    return _moderation_service


def lambda_handler(event: dict, context) -> dict:
    """List, re-status and delete listings"""

    route_key = event.get('routeKey', '')
    params = event.get('pathParameters') or {}
    logger.info(f"Listings request: {route_key}")

    try:
        service = get_moderation_service()

        if route_key == 'GET /listings':
            status = (event.get('queryStringParameters') or {}).get('status')
            listings = service.list_listings(None if status in (None, '', 'all') else status)
            return create_response(200, {"listings": [listing.to_document() for listing in listings]})

        if route_key == 'PATCH /listings/{listingId}/status':
            try:
                body = parse_json_body(event)
            except ValueError as e:
                raise ValidationError(f"Invalid request body: {e}") from e

            listing = service.update_status(params['listingId'], body.get('status'))
            return create_response(200, listing.to_document())

        if route_key == 'DELETE /listings/{listingId}':
            removed = service.delete_listing(params['listingId'])
            return create_response(200, {"deleted": params['listingId'], "imagesDeleted": removed})

        return create_response(404, {"error": "NotFound", "message": f"No route for '{route_key}'"})

    except TaxonomyError as e:
        logger.info(f"{route_key} rejected: {type(e).__name__}: {e.message}")
        return error_response(e)

    except Exception as e:
        logger.error(f"Unexpected error handling {route_key}: {e}", exc_info=True)
        return error_response(e)
