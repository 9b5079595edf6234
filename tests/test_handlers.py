import json
from unittest.mock import MagicMock

import pytest

import ai_flows_handler
import listings_handler
import site_admin_handler
import taxonomy_handler
from ai_schemas import AnalyzeListingImageOutput, ListingRecommendationsOutput
from config import CATEGORIES_COLLECTION, USERS_COLLECTION
from services.listing_service import ListingModerationService
from taxonomy_errors import OperationFailed


def request(route_key, body=None, **path_parameters):
    event = {"routeKey": route_key, "pathParameters": path_parameters or None}
    if body is not None:
        event["body"] = json.dumps(body)
    return event


def call(handler, event):
    response = handler.lambda_handler(event, None)
    return response["statusCode"], json.loads(response["body"])


@pytest.fixture()
def taxonomy(store, monkeypatch):
    monkeypatch.setattr(taxonomy_handler, "get_document_store", lambda: store)
    return taxonomy_handler


def test_category_routes(taxonomy, add_listing):
    status, created = call(taxonomy, request("POST /categories", {"name": "Electronics", "iconName": "Laptop"}))
    assert status == 201
    category_id = created["id"]

    status, _ = call(taxonomy, request("POST /categories", {"name": "Vehicles"}))
    assert status == 201

    status, subcategory = call(taxonomy, request(
        "POST /categories/{categoryId}/subcategories", {"name": "Mobile Phones"}, categoryId=category_id
    ))
    assert (status, subcategory) == (201, {"id": "mobile-phones", "name": "Mobile Phones"})

    status, moved = call(taxonomy, request("POST /categories/move", {"index": 1, "direction": "up"}))
    assert status == 200
    assert moved["moved"] is True
    assert [c["name"] for c in moved["categories"]] == ["Vehicles", "Electronics"]

    add_listing("listing-1", category=category_id, subcategory="mobile-phones")
    status, error = call(taxonomy, request("DELETE /categories/{categoryId}", categoryId=category_id))
    assert status == 409
    assert error["error"] == "DeletionBlocked"

    status, listed = call(taxonomy, request("GET /categories"))
    assert status == 200
    assert listed["categories"][1]["subcategories"] == [{"id": "mobile-phones", "name": "Mobile Phones"}]


def test_delete_subcategory_route(taxonomy):
    _, created = call(taxonomy, request("POST /categories", {"name": "Electronics"}))
    call(taxonomy, request("POST /categories/{categoryId}/subcategories", {"name": "Tablets"}, categoryId=created["id"]))

    status, body = call(taxonomy, request(
        "DELETE /categories/{categoryId}/subcategories/{subcategoryId}",
        categoryId=created["id"], subcategoryId="tablets"
    ))

    assert (status, body) == (200, {"deleted": "tablets"})


def test_location_routes(taxonomy, add_listing):
    assert call(taxonomy, request("POST /locations", {"name": "Egypt"})) == (201, {"id": "egypt"})
    call(taxonomy, request("POST /locations/{countryId}/governorates", {"name": "Cairo"}, countryId="egypt"))

    status, district = call(taxonomy, request(
        "POST /locations/{countryId}/governorates/{governorateId}/districts", {"name": "Zamalek"},
        countryId="egypt", governorateId="cairo"
    ))
    assert (status, district) == (201, {"id": "zamalek", "name": "Zamalek"})

    add_listing("listing-1", locationDistrict="zamalek")
    status, error = call(taxonomy, request("DELETE /locations/{countryId}", countryId="egypt"))
    assert status == 409
    assert error["message"] == 'Cannot delete country "Egypt" as it is associated with existing listings.'

    status, listed = call(taxonomy, request("GET /locations"))
    assert listed["countries"][0]["governorates"][0]["districts"] == [{"id": "zamalek", "name": "Zamalek"}]


@pytest.mark.parametrize(
    "event, status_code, error",
    [
        (request("POST /locations", {"name": "القاهرة"}), 400, "InvalidSlug"),
        (request("POST /locations", {"name": ""}), 400, "ValidationError"),
        (request("POST /categories/move", {"index": "1", "direction": "up"}), 400, "ValidationError"),
        (request("POST /locations/{countryId}/governorates", {"name": "Cairo"}, countryId="atlantis"), 404, "NotFound"),
        (request("DELETE /locations/{countryId}/governorates/{governorateId}", countryId="egypt", governorateId="x"),
         404, "NotFound"),
        ({"routeKey": "PUT /categories"}, 404, "NotFound"),
    ],
)
def test_taxonomy_errors(taxonomy, event, status_code, error):
    status, body = call(taxonomy, event)

    assert status == status_code
    assert body["error"] == error


def test_taxonomy_malformed_body(taxonomy):
    status, body = call(taxonomy, {"routeKey": "POST /categories", "body": "{not json"})

    assert status == 400
    assert body["error"] == "ValidationError"


def test_taxonomy_store_unavailable(taxonomy, store):
    store.fail_next("list_documents")

    status, body = call(taxonomy, request("GET /categories"))

    assert status == 502
    assert body["error"] == "OperationFailed"


def test_taxonomy_write_reported_when_refresh_after_write_fails(taxonomy, store, monkeypatch):
    create_document = store.create_document

    def create_then_break_listing(collection, data):
        store.fail_next("list_documents")
        return create_document(collection, data)

    monkeypatch.setattr(store, "create_document", create_then_break_listing)

    status, body = call(taxonomy, request("POST /categories", {"name": "Electronics"}))

    assert status == 201
    assert store.get_document(CATEGORIES_COLLECTION, body["id"])["name"] == "Electronics"


@pytest.fixture()
def listings(store, monkeypatch):
    image_storage = MagicMock()
    image_storage.delete.return_value = True
    service = ListingModerationService(store, image_storage)
    monkeypatch.setattr(listings_handler, "get_moderation_service", lambda: service)
    return listings_handler


def test_listing_routes(listings, add_listing):
    add_listing("a", status="pending", posted_date="2024-02-01T00:00:00Z")
    add_listing("b", status="approved", posted_date="2024-03-01T00:00:00Z", images=["listings/b/1.jpg"])

    status, body = call(listings, {"routeKey": "GET /listings", "queryStringParameters": {"status": "all"}})
    assert [listing["id"] for listing in body["listings"]] == ["b", "a"]

    status, body = call(listings, {"routeKey": "GET /listings", "queryStringParameters": {"status": "pending"}})
    assert [listing["id"] for listing in body["listings"]] == ["a"]

    status, body = call(listings, request("PATCH /listings/{listingId}/status", {"status": "rejected"}, listingId="a"))
    assert (status, body["status"]) == (200, "rejected")

    status, body = call(listings, request("DELETE /listings/{listingId}", listingId="b"))
    assert (status, body) == (200, {"deleted": "b", "imagesDeleted": 1})


def test_listing_status_validation(listings, add_listing):
    add_listing("a")

    status, body = call(listings, request("PATCH /listings/{listingId}/status", {"status": "archived"}, listingId="a"))

    assert status == 400
    assert body["error"] == "ValidationError"


@pytest.fixture()
def site_admin(store, monkeypatch):
    monkeypatch.setattr(site_admin_handler, "get_document_store", lambda: store)
    return site_admin_handler


def test_user_routes(site_admin, store):
    store.set_document(USERS_COLLECTION, "u1", {"name": "Alice", "email": "alice@example.com"})
    store.set_document(USERS_COLLECTION, "u2", {"name": "Bob", "email": "bob@example.com"})

    status, body = call(site_admin, {"routeKey": "GET /users", "queryStringParameters": {"search": "bob"}})
    assert (status, [user["id"] for user in body["users"]]) == (200, ["u2"])

    status, body = call(site_admin, request("PATCH /users/{userId}/admin", {"isAdmin": True}, userId="u1"))
    assert (status, body["isAdmin"]) == (200, True)

    assert call(site_admin, request("DELETE /users/{userId}", userId="u2")) == (200, {"deleted": "u2"})

    status, body = call(site_admin, request("DELETE /users/{userId}", userId="u2"))
    assert (status, body["error"]) == (404, "NotFound")


def test_dashboard_route(site_admin, add_listing):
    add_listing("a", status="rejected")

    status, body = call(site_admin, request("GET /dashboard/stats"))

    assert status == 200
    assert (body["totalListings"], body["rejectedListings"], body["totalUsers"]) == (1, 1, 0)


def test_hero_settings_routes(site_admin):
    status, image = call(site_admin, request(
        "POST /settings/hero/images", {"src": "https://cdn.example.com/1.jpg", "alt": "Sale"}
    ))
    assert status == 201

    status, body = call(site_admin, request("GET /settings/hero"))
    assert (status, body["images"]) == (200, [image])

    status, body = call(site_admin, request("DELETE /settings/hero/images/{imageId}", imageId=image["id"]))
    assert (status, body) == (200, {"deleted": image["id"]})

    status, body = call(site_admin, request("POST /settings/hero/images", {"src": "", "alt": "Sale"}))
    assert (status, body["error"]) == (400, "ValidationError")


@pytest.fixture()
def ai_service(monkeypatch):
    service = MagicMock()
    monkeypatch.setattr(ai_flows_handler, "get_ai_service", lambda: service)
    return service


def test_analyze_listing_image_route(ai_service):
    ai_service.analyze_listing_image.return_value = AnalyzeListingImageOutput(is_authentic=True, issues=[])

    status, body = call(ai_flows_handler, request("POST /ai/analyze-listing-image", {"photoDataUri": "data:..."}))

    assert (status, body) == (200, {"isAuthentic": True, "issues": []})
    ai_service.analyze_listing_image.assert_called_once_with("data:...")


def test_listing_recommendations_route(ai_service):
    ai_service.get_listing_recommendations.return_value = ListingRecommendationsOutput(recommended_listings=["l2"])

    status, body = call(ai_flows_handler, request(
        "POST /ai/listing-recommendations", {"viewingHistory": ["l1"], "currentListing": "l0"}
    ))

    assert (status, body) == (200, {"recommendedListings": ["l2"]})
    ai_service.get_listing_recommendations.assert_called_once_with(["l1"], "l0")


def test_ai_provider_failure(ai_service):
    ai_service.get_listing_recommendations.side_effect = OperationFailed("Could not generate listing recommendations.")

    status, body = call(ai_flows_handler, request("POST /ai/listing-recommendations", {"currentListing": "l0"}))

    assert status == 502
    assert body["message"] == "Could not generate listing recommendations."
