import pytest

from config import LISTINGS_COLLECTION
from providers.storage.memory_document_store import MemoryDocumentStore
from services.category_service import CategoryTreeEditor
from services.location_service import LocationTreeEditor
from services.referential_guard import ReferentialGuard


@pytest.fixture()
def store():
    return MemoryDocumentStore()


@pytest.fixture()
def guard(store):
    return ReferentialGuard(store)


@pytest.fixture()
def category_editor(store, guard):
    """A started CategoryTreeEditor over an empty store."""
    editor = CategoryTreeEditor(store, guard).start()
    yield editor
    editor.stop()


@pytest.fixture()
def location_editor(store, guard):
    """A started LocationTreeEditor over an empty store."""
    editor = LocationTreeEditor(store, guard).start()
    yield editor
    editor.stop()


@pytest.fixture()
def add_listing(store):
    """Return a helper that writes a listing document referencing taxonomy
    nodes, e.g. add_listing("l1", category="c1", locationDistrict="zamalek")."""

    def _add_listing(listing_id, status="approved", posted_date="2024-05-01T10:00:00Z", images=None, **refs):
        document = {
            "title": f"Listing {listing_id}",
            "status": status,
            "postedDate": posted_date,
            "images": images or [],
        }
        for field, node_id in refs.items():
            document[field] = {"id": node_id, "name": node_id.title()}

        store.set_document(LISTINGS_COLLECTION, listing_id, document)
        return listing_id

    return _add_listing
