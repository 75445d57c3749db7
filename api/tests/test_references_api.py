# api/tests/test_references_api.py
"""
Tests for the /api/references endpoints.
"""

import pytest

from routes import references_api
from server import create_app
from services.references import ReferenceService, TokenStore
from conftest import GENESIS_1_1


@pytest.fixture
def client(store, monkeypatch):
    monkeypatch.setattr(references_api, "_service", ReferenceService(store=store))
    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()


def test_lookup(client):
    resp = client.get("/api/references/lookup", query_string={"ref": "Gen 1:1"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["text"] == GENESIS_1_1
    assert data["ref"] == "Genesis 1:1"
    assert data["translation"] == "BSB"


def test_lookup_requires_ref(client):
    resp = client.get("/api/references/lookup")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ref_required"


def test_lookup_unknown_book(client):
    resp = client.get("/api/references/lookup", query_string={"ref": "Invalid 99:99"})
    assert resp.status_code == 400
    data = resp.get_json()
    assert data["error"] == "invalid_reference"
    assert data["kind"] == "unknown_book"
    assert data["ref"] == "Invalid 99:99"


def test_lookup_out_of_range(client):
    resp = client.get("/api/references/lookup", query_string={"ref": "John 3:99"})
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "out_of_range"


def test_lookup_empty_result(client):
    resp = client.get("/api/references/lookup", query_string={"ref": "John 3:18"})
    assert resp.status_code == 404
    assert resp.get_json()["kind"] == "empty_result"


def test_lookup_storage_unavailable(monkeypatch):
    monkeypatch.setattr(references_api, "_service", ReferenceService(store=TokenStore("/nonexistent/bible.db")))
    resp = create_app().test_client().get("/api/references/lookup", query_string={"ref": "Gen 1:1"})
    assert resp.status_code == 503
    assert resp.get_json()["error"] == "storage_unavailable"


def test_original(client):
    resp = client.get("/api/references/original", query_string={"ref": "John 3:16"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["translation"] == "Greek"
    words = data["verses"][0]["words"]
    assert len(words) == 7
    assert words[0]["strong"] == "G1"


def test_parse(client):
    resp = client.get("/api/references/parse", query_string={"ref": "1 Jn 1:9"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["ref"] == "1 John 1:9"
    assert data["verse_id"] == "62001009"
    assert data["osis"] == "1John.1.9"
    assert data["valid"] is True
    assert data["detail"] is None


def test_parse_reports_out_of_range(client):
    data = client.get("/api/references/parse", query_string={"ref": "John 3:99"}).get_json()
    assert data["valid"] is False
    assert "36 verses" in data["detail"]


def test_parse_unknown_book(client):
    resp = client.get("/api/references/parse", query_string={"ref": "Nowhere 1:1"})
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "unknown_book"


def test_decode_ids(client):
    data = client.get("/api/references/ids/43003016").get_json()
    assert data["ref"] == "John 3:16"

    data = client.get("/api/references/ids/01001001004").get_json()
    assert data["word_position"] == 4

    resp = client.get("/api/references/ids/99001001")
    assert resp.status_code == 404


def test_search(client):
    resp = client.get("/api/references/search", query_string={"q": "God", "testament": "NT", "limit": 1})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["query"] == "God"
    assert [r["reference"] for r in data["results"]] == ["John 3:16"]


def test_search_errors(client):
    assert client.get("/api/references/search").get_json()["error"] == "q_required"

    resp = client.get("/api/references/search", query_string={"q": "God", "testament": "XX"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_search"

    resp = client.get("/api/references/search", query_string={"q": "God", "book": "Enoch"})
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "unknown_book"


def test_books(client):
    books = client.get("/api/references/books").get_json()["books"]
    assert len(books) == 66
    assert books[0]["name"] == "Genesis"

    nt = client.get("/api/references/books", query_string={"testament": "nt"}).get_json()["books"]
    assert len(nt) == 27
    assert nt[0]["name"] == "Matthew"


def test_book_aliases(client):
    data = client.get("/api/references/books/43/aliases").get_json()
    assert data["aliases"][0] == "John"
    assert "Jn." in data["aliases"]

    assert client.get("/api/references/books/99/aliases").status_code == 404


class BrokenService:
    def get_english_text(self, text):
        raise RuntimeError("boom")

    get_original_text = get_english_text

    def search(self, query, **kwargs):
        raise RuntimeError("boom")


def test_unexpected_errors_return_500(monkeypatch):
    monkeypatch.setattr(references_api, "_service", BrokenService())
    client = create_app().test_client()

    resp = client.get("/api/references/lookup", query_string={"ref": "Gen 1:1"})
    assert resp.status_code == 500
    assert resp.get_json() == {"error": "lookup_failed", "detail": "boom"}

    resp = client.get("/api/references/original", query_string={"ref": "Gen 1:1"})
    assert resp.status_code == 500

    resp = client.get("/api/references/search", query_string={"q": "God"})
    assert resp.status_code == 500
    assert resp.get_json()["error"] == "search_failed"
