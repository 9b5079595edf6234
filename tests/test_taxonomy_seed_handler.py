from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

import taxonomy_seed_handler
from config import CATEGORIES_COLLECTION


EVENT = {
    "StackId": "stack",
    "RequestId": "request",
    "LogicalResourceId": "TaxonomySeed",
    "ResponseURL": "https://cloudformation.example/response",
}


@pytest.fixture()
def responses(monkeypatch):
    sent = MagicMock()
    monkeypatch.setattr(taxonomy_seed_handler, "send_response", sent)
    return sent


def test_seed_categories_on_empty_store(store):
    assert taxonomy_seed_handler.seed_categories(store) == 1

    [category] = store.list_documents(CATEGORIES_COLLECTION)
    assert category["name"] == "Electronics"
    assert category["order"] == 0
    assert [sub["id"] for sub in category["subcategories"]] == ["mobile-phones", "tablets"]


def test_seed_categories_leaves_existing_taxonomy(store):
    store.set_document(CATEGORIES_COLLECTION, "vehicles", {"name": "Vehicles", "order": 0, "subcategories": []})

    assert taxonomy_seed_handler.seed_categories(store) == 0
    assert len(store.list_documents(CATEGORIES_COLLECTION)) == 1


def test_create_seeds_and_reports_success(store, responses, monkeypatch):
    monkeypatch.setattr(taxonomy_seed_handler.ProviderFactory, "create_document_store", lambda name: store)

    taxonomy_seed_handler.lambda_handler({**EVENT, "RequestType": "Create"}, None)

    status, data = responses.call_args.args[2:]
    assert status == "SUCCESS"
    assert data == {"Message": "Seeded 1 categories"}


def test_create_reports_store_failure(store, responses, monkeypatch):
    monkeypatch.setattr(taxonomy_seed_handler.ProviderFactory, "create_document_store", lambda name: store)
    store.fail_next("create_document")

    taxonomy_seed_handler.lambda_handler({**EVENT, "RequestType": "Create"}, None)

    assert responses.call_args.args[2] == "FAILED"


def test_create_reports_unexpected_failure(responses, monkeypatch):
    def unavailable(name):
        raise RuntimeError("Unsupported document store provider: firestore")

    monkeypatch.setattr(taxonomy_seed_handler.ProviderFactory, "create_document_store", unavailable)

    taxonomy_seed_handler.lambda_handler({**EVENT, "RequestType": "Create"}, None)

    assert responses.call_args.args[2:] == (
        "FAILED", {"Error": "Unsupported document store provider: firestore"}
    )


@pytest.mark.parametrize("request_type", ["Update", "Delete"])
def test_other_requests_are_acknowledged(responses, request_type):
    taxonomy_seed_handler.lambda_handler({**EVENT, "RequestType": request_type}, None)

    assert responses.call_args.args[2:] == ("SUCCESS", {"Message": "No action required"})


def test_send_response_puts_to_presigned_url(monkeypatch):
    pool = MagicMock()
    monkeypatch.setattr(taxonomy_seed_handler.urllib3, "PoolManager", lambda: pool)

    taxonomy_seed_handler.send_response(
        EVENT, SimpleNamespace(log_stream_name="log-stream"), "SUCCESS", {"Message": "ok"}
    )

    method, url = pool.request.call_args.args
    assert (method, url) == ("PUT", EVENT["ResponseURL"])
    assert '"PhysicalResourceId": "log-stream"' in pool.request.call_args.kwargs["body"]
