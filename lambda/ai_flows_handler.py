"""
    AI Flows Lambda - listing image analysis and recommendations
"""

import logging
from typing import Optional
from config import setup_logging, LLM_PROVIDER
from services.llm_service import ListingAIService
from taxonomy_errors import TaxonomyError, ValidationError
from utils.helpers import create_response, error_response, parse_json_body


setup_logging()
logger = logging.getLogger(__name__)

_ai_service: Optional[ListingAIService] = None

def get_ai_service() -> ListingAIService:
    global _ai_service
    if _ai_service is None:
        _ai_service = ListingAIService(LLM_PROVIDER)
    return _ai_service


def lambda_handler(event: dict, context) -> dict:
    route_key = event.get('routeKey', '')
    logger.info(f"AI flow request: {route_key}")

    try:
        try:
            body = parse_json_body(event)
        except ValueError as e:
            raise ValidationError(f"Invalid request body: {e}") from e

        if route_key == 'POST /ai/analyze-listing-image':
            result = get_ai_service().analyze_listing_image(body.get('photoDataUri'))
            return create_response(200, result.to_response())

        if route_key == 'POST /ai/listing-recommendations':
            result = get_ai_service().get_listing_recommendations(
                body.get('viewingHistory') or [], body.get('currentListing')
            )
            return create_response(200, result.to_response())

        return create_response(404, {"error": "NotFound", "message": f"No route for '{route_key}'"})

    except TaxonomyError as e:
        logger.info(f"{route_key} rejected: {type(e).__name__}: {e.message}")
        return error_response(e)

    except Exception as e:
        logger.error(f"Unexpected error handling {route_key}: {e}", exc_info=True)
        return error_response(e)
