import pytest

from config import CATEGORIES_COLLECTION
from services.category_service import CategoryTreeEditor, MoveDirection
from taxonomy_errors import DeletionBlocked, EditorBusy, NotFound, OperationFailed, ValidationError
from taxonomy_schemas import Subcategory


def names(editor):
    return [category.name for category in editor.categories]


def test_add_category_appends_with_next_order(category_editor, store):
    electronics_id = category_editor.add_category("Electronics", "Laptop")
    vehicles_id = category_editor.add_category("  Vehicles  ")

    assert names(category_editor) == ["Electronics", "Vehicles"]

    electronics = store.get_document(CATEGORIES_COLLECTION, electronics_id)
    assert electronics == {
        "id": electronics_id,
        "name": "Electronics",
        "iconName": "Laptop",
        "order": 0,
        "subcategories": [],
    }
    assert store.get_document(CATEGORIES_COLLECTION, vehicles_id)["order"] == 1


def test_next_order_follows_highest_existing_order(store, category_editor):
    store.set_document(CATEGORIES_COLLECTION, "legacy", {"name": "Legacy", "order": 7, "subcategories": []})

    new_id = category_editor.add_category("Jobs")

    assert store.get_document(CATEGORIES_COLLECTION, new_id)["order"] == 8


@pytest.mark.parametrize("name", ["", "   ", None])
def test_add_category_rejects_blank_names(category_editor, store, name):
    with pytest.raises(ValidationError, match="Category name cannot be empty"):
        category_editor.add_category(name)

    assert store.write_count == 0
    assert category_editor.is_submitting is False


def test_add_category_store_failure(category_editor, store):
    store.fail_next("create_document")

    with pytest.raises(OperationFailed, match="Could not add category"):
        category_editor.add_category("Electronics")

    assert category_editor.categories == []
    assert category_editor.is_submitting is False


def test_categories_sorted_by_order_then_name(store, category_editor):
    store.set_document(CATEGORIES_COLLECTION, "b", {"name": "beta", "subcategories": []})
    store.set_document(CATEGORIES_COLLECTION, "a", {"name": "Alpha", "subcategories": []})
    store.set_document(CATEGORIES_COLLECTION, "z", {"name": "Zeta", "order": 0, "subcategories": []})

    assert names(category_editor) == ["Zeta", "Alpha", "beta"]


def test_add_subcategory(category_editor, store):
    parent_id = category_editor.add_category("Electronics")

    subcategory = category_editor.add_subcategory(parent_id, "Mobile Phones", "Smartphone")

    assert subcategory.id == "mobile-phones"
    stored = store.get_document(CATEGORIES_COLLECTION, parent_id)["subcategories"]
    assert stored == [{"id": "mobile-phones", "name": "Mobile Phones", "iconName": "Smartphone"}]
    assert category_editor.get_category(parent_id).subcategories[0].name == "Mobile Phones"


def test_add_subcategory_identical_record_is_not_duplicated(category_editor, store):
    parent_id = category_editor.add_category("Electronics")

    category_editor.add_subcategory(parent_id, "Tablets")
    category_editor.add_subcategory(parent_id, "Tablets")

    assert len(store.get_document(CATEGORIES_COLLECTION, parent_id)["subcategories"]) == 1


def test_add_subcategory_colliding_slug_is_kept(category_editor):
    parent_id = category_editor.add_category("Electronics")

    category_editor.add_subcategory(parent_id, "TV")
    category_editor.add_subcategory(parent_id, "tv")

    ids = [sub.id for sub in category_editor.get_category(parent_id).subcategories]
    assert ids == ["tv", "tv"]


def test_add_subcategory_unknown_parent(category_editor):
    with pytest.raises(NotFound):
        category_editor.add_subcategory("missing", "Tablets")


def test_move_category_up_swaps_orders(category_editor, store):
    electronics_id = category_editor.add_category("Electronics")
    vehicles_id = category_editor.add_category("Vehicles")

    assert category_editor.move_category(1, "up") is True

    assert names(category_editor) == ["Vehicles", "Electronics"]
    assert store.get_document(CATEGORIES_COLLECTION, vehicles_id)["order"] == 0
    assert store.get_document(CATEGORIES_COLLECTION, electronics_id)["order"] == 1


def test_move_category_down(category_editor):
    category_editor.add_category("Electronics")
    category_editor.add_category("Vehicles")
    category_editor.add_category("Jobs")

    assert category_editor.move_category(0, MoveDirection.DOWN) is True
    assert names(category_editor) == ["Vehicles", "Electronics", "Jobs"]


@pytest.mark.parametrize("index, direction", [(0, "up"), (1, "down"), (5, "up"), (-1, "down")])
def test_move_category_at_boundary_is_noop(category_editor, store, index, direction):
    category_editor.add_category("Electronics")
    category_editor.add_category("Vehicles")
    writes = store.write_count

    assert category_editor.move_category(index, direction) is False
    assert store.write_count == writes
    assert names(category_editor) == ["Electronics", "Vehicles"]


def test_move_category_invalid_direction(category_editor):
    category_editor.add_category("Electronics")

    with pytest.raises(ValidationError):
        category_editor.move_category(0, "sideways")


def test_move_category_assigns_display_index_to_unordered(store, category_editor):
    store.set_document(CATEGORIES_COLLECTION, "a", {"name": "Alpha", "subcategories": []})
    store.set_document(CATEGORIES_COLLECTION, "b", {"name": "Beta", "subcategories": []})

    assert category_editor.move_category(1, "up") is True

    assert store.get_document(CATEGORIES_COLLECTION, "b")["order"] == 0
    assert store.get_document(CATEGORIES_COLLECTION, "a")["order"] == 1
    assert names(category_editor) == ["Beta", "Alpha"]


@pytest.fixture
def mixed_orders(store):
    store.set_document(CATEGORIES_COLLECTION, "a", {"name": "Alpha", "order": 0, "subcategories": []})
    store.set_document(CATEGORIES_COLLECTION, "b", {"name": "Beta", "order": 5, "subcategories": []})
    store.set_document(CATEGORIES_COLLECTION, "g", {"name": "Gamma", "subcategories": []})


def test_move_unordered_category_above_ordered_one(mixed_orders, category_editor, store):
    assert category_editor.move_category(2, "up") is True

    assert names(category_editor) == ["Alpha", "Gamma", "Beta"]
    assert store.get_document(CATEGORIES_COLLECTION, "g")["order"] == 5
    assert store.get_document(CATEGORIES_COLLECTION, "b")["order"] == 6
    assert store.get_document(CATEGORIES_COLLECTION, "a")["order"] == 0


def test_move_ordered_category_below_unordered_one(mixed_orders, category_editor, store):
    assert category_editor.move_category(1, MoveDirection.DOWN) is True

    assert names(category_editor) == ["Alpha", "Gamma", "Beta"]
    assert [c.order for c in category_editor.categories] == [0, 5, 6]


def test_move_pins_every_unordered_category(store, category_editor):
    store.set_document(CATEGORIES_COLLECTION, "a", {"name": "Alpha", "order": 3, "subcategories": []})
    store.set_document(CATEGORIES_COLLECTION, "d", {"name": "Delta", "subcategories": []})
    store.set_document(CATEGORIES_COLLECTION, "e", {"name": "Epsilon", "subcategories": []})
    writes = store.write_count

    assert category_editor.move_category(0, "down") is True

    assert names(category_editor) == ["Delta", "Alpha", "Epsilon"]
    assert store.get_document(CATEGORIES_COLLECTION, "e")["order"] == 5
    assert store.write_count == writes + 1


def test_move_category_failure_restores_local_orders(category_editor, store):
    category_editor.add_category("Electronics")
    category_editor.add_category("Vehicles")
    store.fail_next("batch_update")

    with pytest.raises(OperationFailed, match="Could not update category order"):
        category_editor.move_category(1, "up")

    assert [(c.name, c.order) for c in category_editor.categories] == [("Electronics", 0), ("Vehicles", 1)]
    assert [d["order"] for d in sorted(store.list_documents(CATEGORIES_COLLECTION), key=lambda d: d["name"])] == [0, 1]


def test_write_succeeds_when_change_notification_fails(store, guard):
    def raise_error(error):
        raise OperationFailed("Could not load the taxonomy.") from error

    with CategoryTreeEditor(store, guard, on_error=raise_error) as editor:
        store.fail_next("list_documents")

        category_id = editor.add_category("Electronics")

    assert store.get_document(CATEGORIES_COLLECTION, category_id)["name"] == "Electronics"


def test_delete_category_without_listings(category_editor, store):
    category_id = category_editor.add_category("Electronics")

    category_editor.delete_category(category_id)

    assert store.get_document(CATEGORIES_COLLECTION, category_id) is None
    assert category_editor.categories == []


def test_delete_category_blocked_by_listing(category_editor, store, add_listing):
    category_id = category_editor.add_category("Electronics")
    add_listing("listing-1", category=category_id)

    with pytest.raises(DeletionBlocked) as excinfo:
        category_editor.delete_category(category_id)

    assert "Electronics" in excinfo.value.message
    assert store.get_document(CATEGORIES_COLLECTION, category_id) is not None


def test_delete_category_blocked_when_listing_category_is_a_subcategory_id(category_editor, add_listing):
    category_id = category_editor.add_category("Electronics")
    category_editor.add_subcategory(category_id, "Tablets")
    add_listing("listing-1", category="tablets")

    with pytest.raises(DeletionBlocked, match="or its subcategories"):
        category_editor.delete_category(category_id)


def test_delete_category_ignores_other_listings(category_editor, store, add_listing):
    category_id = category_editor.add_category("Electronics")
    add_listing("listing-1", category="vehicles")

    category_editor.delete_category(category_id)

    assert store.get_document(CATEGORIES_COLLECTION, category_id) is None


def test_delete_category_guard_failure_does_not_delete(category_editor, store):
    category_id = category_editor.add_category("Electronics")
    store.fail_next("query_in")

    with pytest.raises(OperationFailed):
        category_editor.delete_category(category_id)

    assert store.get_document(CATEGORIES_COLLECTION, category_id) is not None


def test_delete_subcategory(category_editor, store):
    parent_id = category_editor.add_category("Electronics")
    category_editor.add_subcategory(parent_id, "Mobile Phones")
    tablets = category_editor.add_subcategory(parent_id, "Tablets")

    category_editor.delete_subcategory(parent_id, tablets)

    stored = store.get_document(CATEGORIES_COLLECTION, parent_id)["subcategories"]
    assert [sub["id"] for sub in stored] == ["mobile-phones"]


def test_delete_subcategory_removes_stored_record_with_extra_keys(category_editor, store):
    store.set_document(CATEGORIES_COLLECTION, "electronics", {
        "name": "Electronics",
        "order": 0,
        "subcategories": [
            {"id": "phones", "name": "Phones", "iconName": "Phone", "slug": "phones"},
            {"id": "tablets", "name": "Tablets"},
        ],
    })
    phones = category_editor.find_subcategory("electronics", "phones")

    category_editor.delete_subcategory("electronics", phones)

    stored = store.get_document(CATEGORIES_COLLECTION, "electronics")["subcategories"]
    assert stored == [{"id": "tablets", "name": "Tablets"}]
    assert [s.id for s in category_editor.get_category("electronics").subcategories] == ["tablets"]


def test_delete_subcategory_not_stored_raises_not_found(category_editor, store):
    parent_id = category_editor.add_category("Electronics")
    category_editor.add_subcategory(parent_id, "Tablets")
    writes = store.write_count

    with pytest.raises(NotFound, match="Subcategory 'phones' not found"):
        category_editor.delete_subcategory(parent_id, Subcategory(id="phones", name="Phones"))

    assert store.write_count == writes
    assert len(store.get_document(CATEGORIES_COLLECTION, parent_id)["subcategories"]) == 1


def test_delete_subcategory_blocked(category_editor, store, add_listing):
    parent_id = category_editor.add_category("Electronics")
    tablets = category_editor.add_subcategory(parent_id, "Tablets")
    add_listing("listing-1", category=parent_id, subcategory="tablets")

    with pytest.raises(DeletionBlocked, match='subcategory "Tablets"'):
        category_editor.delete_subcategory(parent_id, tablets)

    assert len(store.get_document(CATEGORIES_COLLECTION, parent_id)["subcategories"]) == 1


def test_find_subcategory_missing(category_editor):
    parent_id = category_editor.add_category("Electronics")

    with pytest.raises(NotFound):
        category_editor.find_subcategory(parent_id, "tablets")


def test_second_mutation_while_submitting_is_rejected(category_editor, store):
    category_editor.add_category("Electronics")

    rejected = []

    def reenter(documents):
        try:
            category_editor.add_category("Nested")
        except EditorBusy as e:
            rejected.append(e)

    store.subscribe(CATEGORIES_COLLECTION, reenter)
    category_editor.add_category("Vehicles")

    assert len(rejected) == 1
    assert names(category_editor) == ["Electronics", "Vehicles"]
    assert category_editor.is_submitting is False


def test_editors_share_store_state(store, guard):
    with CategoryTreeEditor(store, guard) as first, CategoryTreeEditor(store, guard) as second:
        first.add_category("Electronics")

        assert names(second) == ["Electronics"]
