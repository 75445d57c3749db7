# api/tests/test_catalog.py
"""
Tests for the book catalog.
"""

import json
import os
import tempfile
import threading

import pytest

from services.references import catalog as catalog_module
from services.references.catalog import load_catalog
from services.references.errors import CatalogError


def write_catalog(tmpdir, records):
    path = os.path.join(tmpdir, "books.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(records, f)
    return path


def record(ord_, name, testament="OT", abbreviations=(), chapters=None):
    return {
        "ord": ord_,
        "name": name,
        "testament": testament,
        "abbreviations": list(abbreviations),
        "chapters": chapters or {"1": 10},
    }


def test_default_catalog_shape(catalog):
    """Sixty-six books in canonical order with complete verse tables."""
    assert len(catalog) == 66
    ids = [book.book_id for book in catalog]
    assert ids == [f"{i:02d}" for i in range(1, 67)]

    assert sum(book.chapter_count for book in catalog) == 1189
    assert sum(sum(book.chapters.values()) for book in catalog) == 31102

    testaments = [book.testament for book in catalog]
    assert testaments.count("OT") == 39
    assert testaments.count("NT") == 27


def test_lookup_by_ordinal(catalog):
    assert catalog.lookup_by_ordinal("01").name == "Genesis"
    assert catalog.lookup_by_ordinal("66").name == "Revelation"
    assert catalog.lookup_by_ordinal("1").name == "Genesis"
    assert catalog.lookup_by_ordinal("67") is None
    assert catalog.lookup_by_ordinal("00") is None
    assert catalog.lookup_by_ordinal(None) is None


def test_lookup_by_name_variants(catalog):
    """Canonical names, abbreviations and period-stripped abbreviations."""
    assert catalog.lookup_by_name("Genesis").book_id == "01"
    assert catalog.lookup_by_name("GENESIS").book_id == "01"
    assert catalog.lookup_by_name("Gen.").book_id == "01"
    assert catalog.lookup_by_name("gen").book_id == "01"
    assert catalog.lookup_by_name("1 Cor.").name == "1 Corinthians"
    assert catalog.lookup_by_name("1  cor").name == "1 Corinthians"
    assert catalog.lookup_by_name("Song of Songs").name == "Song of Solomon"
    assert catalog.lookup_by_name("III John").name == "3 John"


def test_lookup_unknown_returns_none(catalog):
    assert catalog.lookup_by_name("Hezekiah") is None
    assert catalog.lookup_by_name("") is None
    assert catalog.lookup_by_name(None) is None


def test_max_verse(catalog):
    assert catalog.max_verse("43", 3) == 36
    assert catalog.max_verse("19", 119) == 176
    assert catalog.max_verse("64", 1) == 14
    assert catalog.max_verse("43", 22) is None
    assert catalog.max_verse("99", 1) is None


def test_book_entry_is_immutable(catalog):
    genesis = catalog.lookup_by_ordinal("01")
    with pytest.raises(Exception):
        genesis.name = "Bereshit"
    with pytest.raises(TypeError):
        genesis.chapters[1] = 99


def test_book_aliases(catalog):
    aliases = catalog.book_aliases("62")
    assert aliases[0] == "1 John"
    assert "1 Jn." in aliases
    assert catalog.book_aliases("99") == []


def test_load_rejects_duplicate_ordinal():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_catalog(tmpdir, [record("01", "Genesis"), record("01", "Exodus")])
        with pytest.raises(CatalogError, match="Duplicate book ordinal"):
            load_catalog(path)


def test_load_rejects_out_of_order_ordinals():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_catalog(tmpdir, [record("02", "Exodus"), record("01", "Genesis")])
        with pytest.raises(CatalogError, match="increase"):
            load_catalog(path)


def test_load_rejects_non_positive_verse_count():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_catalog(tmpdir, [record("01", "Genesis", chapters={"1": 0})])
        with pytest.raises(CatalogError, match="positive"):
            load_catalog(path)


def test_load_rejects_alias_shared_by_two_books():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_catalog(tmpdir, [
            record("01", "Judges", abbreviations=["Jud."]),
            record("02", "Jude", abbreviations=["Jud"]),
        ])
        with pytest.raises(CatalogError, match="registered for both"):
            load_catalog(path)


def test_load_rejects_unknown_testament():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_catalog(tmpdir, [record("01", "Genesis", testament="XT")])
        with pytest.raises(CatalogError, match="testament"):
            load_catalog(path)


def test_load_missing_file():
    with pytest.raises(CatalogError, match="Could not read"):
        load_catalog("/nonexistent/books.json")


def test_get_catalog_loads_once(monkeypatch):
    """Concurrent first use builds a single catalog."""
    calls = []
    real_load = catalog_module.load_catalog

    def counting_load(path=None):
        calls.append(path)
        return real_load(path)

    monkeypatch.setattr(catalog_module, "_catalog", None)
    monkeypatch.setattr(catalog_module, "load_catalog", counting_load)

    results = []
    threads = [threading.Thread(target=lambda: results.append(catalog_module.get_catalog())) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert all(r is results[0] for r in results)
