"""
    Site Admin Lambda - users, dashboard and hero banner settings
"""

import logging
from typing import Optional
from config import setup_logging, DOCUMENT_STORE_PROVIDER
from providers.provider_factory import ProviderFactory
from providers.provider_interfaces import DocumentStore
from services.dashboard_service import DashboardService
from services.hero_settings_service import HeroSettingsService
from services.user_service import UserAdminService
from taxonomy_errors import TaxonomyError, ValidationError
from utils.helpers import create_response, error_response, parse_json_body


setup_logging()
logger = logging.getLogger(__name__)

_document_store: Optional[DocumentStore] = None

def get_document_store() -> DocumentStore:
    """Store shared across warm invocations"""
    global _document_store
    if _document_store is None:
        _document_store = ProviderFactory.create_document_store(DOCUMENT_STORE_PROVIDER)
    return _document_store


def _body(event: dict) -> dict:
    try:
        return parse_json_body(event)
    except ValueError as e:
        raise ValidationError(f"Invalid request body: {e}") from e


def lambda_handler(event: dict, context) -> dict:
    """Users, dashboard counts and the home page banner"""

    route_key = event.get('routeKey', '')
    params = event.get('pathParameters') or {}
    query = event.get('queryStringParameters') or {}
    logger.info(f"Site admin request: {route_key}")

    try:
        store = get_document_store()

        if route_key == 'GET /users':
            users = UserAdminService(store).list_users(query.get('search'))
            return create_response(200, {"users": [user.to_document() for user in users]})

        if route_key == 'PATCH /users/{userId}/admin':
            user = UserAdminService(store).set_admin(params['userId'], _body(event).get('isAdmin'))
            return create_response(200, user.to_document())

        if route_key == 'DELETE /users/{userId}':
            user = UserAdminService(store).delete_user(params['userId'])
            return create_response(200, {"deleted": user.id})

        if route_key == 'GET /dashboard/stats':
            return create_response(200, DashboardService(store).get_stats().to_document())

        if route_key == 'GET /settings/hero':
            images = HeroSettingsService(store).list_images()
            return create_response(200, {"images": [image.to_document() for image in images]})

        if route_key == 'POST /settings/hero/images':
            body = _body(event)
            image = HeroSettingsService(store).add_image(body.get('src'), body.get('alt'))
            return create_response(201, image.to_document())

        if route_key == 'DELETE /settings/hero/images/{imageId}':
            HeroSettingsService(store).remove_image(params['imageId'])
            return create_response(200, {"deleted": params['imageId']})

        return create_response(404, {"error": "NotFound", "message": f"No route for '{route_key}'"})

    except TaxonomyError as e:
        logger.info(f"{route_key} rejected: {type(e).__name__}: {e.message}")
        return error_response(e)

    except Exception as e:
        logger.error(f"Unexpected error handling {route_key}: {e}", exc_info=True)
        return error_response(e)
