"""
    Taxonomy Admin Lambda - categories and locations
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple
from config import setup_logging, DOCUMENT_STORE_PROVIDER
from providers.provider_factory import ProviderFactory
from providers.provider_interfaces import DocumentStore
from services.category_service import CategoryTreeEditor
from services.location_service import LocationTreeEditor
from taxonomy_errors import OperationFailed, TaxonomyError, ValidationError
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


Result = Tuple[int, Any]


def _raise_load_failure(error: Exception) -> None:
    raise OperationFailed("Could not load the taxonomy.") from error

# -------------------------------- categories --------------------------------

def list_categories(editor: CategoryTreeEditor, params: Dict, body: Dict) -> Result:
    return 200, {"categories": [c.to_document() for c in editor.categories]}


def add_category(editor: CategoryTreeEditor, params: Dict, body: Dict) -> Result:
    category_id = editor.add_category(body.get('name'), body.get('iconName'))
    return 201, {"id": category_id}


def add_subcategory(editor: CategoryTreeEditor, params: Dict, body: Dict) -> Result:
    subcategory = editor.add_subcategory(params['categoryId'], body.get('name'), body.get('iconName'))
    return 201, subcategory.to_document()


def move_category(editor: CategoryTreeEditor, params: Dict, body: Dict) -> Result:
    index = body.get('index')
    if not isinstance(index, int) or isinstance(index, bool):
        raise ValidationError("Index must be an integer.")

    moved = editor.move_category(index, body.get('direction'))
    return 200, {"moved": moved, "categories": [c.to_document() for c in editor.categories]}


def delete_category(editor: CategoryTreeEditor, params: Dict, body: Dict) -> Result:
    editor.delete_category(params['categoryId'])
    return 200, {"deleted": params['categoryId']}


def delete_subcategory(editor: CategoryTreeEditor, params: Dict, body: Dict) -> Result:
    subcategory = editor.find_subcategory(params['categoryId'], params['subcategoryId'])
    editor.delete_subcategory(params['categoryId'], subcategory)
    return 200, {"deleted": subcategory.id}

# -------------------------------- locations ---------------------------------

def list_locations(editor: LocationTreeEditor, params: Dict, body: Dict) -> Result:
    return 200, {"countries": [c.to_document() for c in editor.countries]}


def add_country(editor: LocationTreeEditor, params: Dict, body: Dict) -> Result:
    country_id = editor.add_country(body.get('name'))
    return 201, {"id": country_id}


def add_governorate(editor: LocationTreeEditor, params: Dict, body: Dict) -> Result:
    governorate = editor.add_governorate(params['countryId'], body.get('name'))
    return 201, governorate.to_document()


def add_district(editor: LocationTreeEditor, params: Dict, body: Dict) -> Result:
    district = editor.add_district(params['countryId'], params['governorateId'], body.get('name'))
    return 201, district.to_document()


def delete_country(editor: LocationTreeEditor, params: Dict, body: Dict) -> Result:
    editor.delete_country(params['countryId'])
    return 200, {"deleted": params['countryId']}


def delete_governorate(editor: LocationTreeEditor, params: Dict, body: Dict) -> Result:
    governorate = editor.find_governorate(params['countryId'], params['governorateId'])
    editor.delete_governorate(params['countryId'], governorate)
    return 200, {"deleted": governorate.id}


def delete_district(editor: LocationTreeEditor, params: Dict, body: Dict) -> Result:
    district = editor.find_district(params['countryId'], params['governorateId'], params['districtId'])
    editor.delete_district(params['countryId'], params['governorateId'], district)
    return 200, {"deleted": district.id}


ROUTES: Dict[str, Tuple[type, Callable[..., Result]]] = {
    'GET /categories': (CategoryTreeEditor, list_categories),
    'POST /categories': (CategoryTreeEditor, add_category),
    'POST /categories/move': (CategoryTreeEditor, move_category),
    'POST /categories/{categoryId}/subcategories': (CategoryTreeEditor, add_subcategory),
    'DELETE /categories/{categoryId}': (CategoryTreeEditor, delete_category),
    'DELETE /categories/{categoryId}/subcategories/{subcategoryId}': (CategoryTreeEditor, delete_subcategory),
    'GET /locations': (LocationTreeEditor, list_locations),
    'POST /locations': (LocationTreeEditor, add_country),
    'POST /locations/{countryId}/governorates': (LocationTreeEditor, add_governorate),
    'POST /locations/{countryId}/governorates/{governorateId}/districts': (LocationTreeEditor, add_district),
    'DELETE /locations/{countryId}': (LocationTreeEditor, delete_country),
    'DELETE /locations/{countryId}/governorates/{governorateId}': (LocationTreeEditor, delete_governorate),
    'DELETE /locations/{countryId}/governorates/{governorateId}/districts/{districtId}':
        (LocationTreeEditor, delete_district),
}


def lambda_handler(event: dict, context) -> dict:
    """Dispatch an HTTP API request to the category or location editor"""

    route_key = event.get('routeKey', '')
    logger.info(f"Taxonomy request: {route_key}")

    route = ROUTES.get(route_key)
    if route is None:
        return create_response(404, {"error": "NotFound", "message": f"No route for '{route_key}'"})

    editor_class, operation = route
    params = event.get('pathParameters') or {}

    try:
        body = parse_json_body(event)

    except ValueError as e:
        logger.warning(f"Bad request body for {route_key}: {e}")
        return error_response(ValidationError(f"Invalid request body: {e}"))

    try:
        with editor_class(get_document_store(), on_error=_raise_load_failure) as editor:
            status_code, payload = operation(editor, params, body)

        return create_response(status_code, payload)

    except TaxonomyError as e:
        logger.info(f"{route_key} rejected: {type(e).__name__}: {e.message}")
        return error_response(e)

    except Exception as e:
        logger.error(f"Unexpected error handling {route_key}: {e}", exc_info=True)
        return error_response(e)
