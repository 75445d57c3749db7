# api/services/references/catalog.py
"""
Canonical book catalog.

The catalog is a static table of the 66 books of the Protestant canon:
two-digit ordinal id, canonical name, OSIS id, testament, abbreviations
and the number of verses in every chapter. It is loaded once from
data/bible_books.json and never mutated afterwards; parser, validator
and formatter all take a Catalog instance.

Usage:
    catalog = get_catalog()
    book = catalog.lookup_by_name("1 Cor.")
    catalog.max_verse(book.book_id, 13)  # 13
"""

import json
import logging
import os
import re
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from .errors import CatalogError

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(__file__), "data", "bible_books.json")

TESTAMENTS = ("OT", "NT")


def normalize_alias(text: str) -> str:
    """Lowercase and collapse whitespace runs."""
    return re.sub(r"\s+", " ", text.strip().lower())


def strip_punctuation(text: str) -> str:
    """Drop periods from an abbreviation ("1 Cor." -> "1 Cor")."""
    return text.replace(".", "").strip()


@dataclass(frozen=True)
class BookEntry:
    """
    One row of the catalog.

    Attributes:
        book_id: Two-digit ordinal ("01" Genesis .. "66" Revelation)
        name: Canonical display name ("1 John")
        testament: "OT" or "NT"
        osis_id: OSIS book id ("1John")
        abbreviations: Registered abbreviations, as written in the data file
        chapters: Read-only mapping chapter -> highest verse number
    """
    book_id: str
    name: str
    testament: str
    osis_id: str
    abbreviations: tuple
    chapters: Mapping[int, int]

    @property
    def ordinal(self) -> int:
        return int(self.book_id)

    @property
    def chapter_count(self) -> int:
        return len(self.chapters)

    def max_verse(self, chapter: int) -> Optional[int]:
        return self.chapters.get(chapter)

    def aliases(self) -> list[str]:
        """Canonical name followed by every abbreviation."""
        return [self.name, *self.abbreviations]

    def to_dict(self) -> dict:
        return {
            "book_id": self.book_id,
            "name": self.name,
            "testament": self.testament,
            "osis_id": self.osis_id,
            "abbreviations": list(self.abbreviations),
            "chapters": len(self.chapters),
        }


class Catalog:
    """
    Immutable lookup table over BookEntry rows.

    Lookups by ordinal and by name/abbreviation are dictionary reads;
    unknown keys return None.
    """

    def __init__(self, books):
        self._books = tuple(books)
        self._by_ordinal: dict[str, BookEntry] = {}
        # Insertion order is catalog order; the parser relies on it for tie-breaks
        self._by_alias: dict[str, BookEntry] = {}

        previous = 0
        for book in self._books:
            if book.book_id in self._by_ordinal:
                raise CatalogError(f"Duplicate book ordinal: {book.book_id}")
            if book.ordinal <= previous:
                raise CatalogError(
                    f"Book ordinals must increase in canonical order: {book.book_id} after {previous:02d}"
                )
            previous = book.ordinal
            self._by_ordinal[book.book_id] = book

            for alias in book.aliases():
                for key in (normalize_alias(alias), normalize_alias(strip_punctuation(alias))):
                    if not key:
                        continue
                    owner = self._by_alias.get(key)
                    if owner is not None and owner.book_id != book.book_id:
                        raise CatalogError(
                            f"Alias '{alias}' registered for both {owner.name} and {book.name}"
                        )
                    self._by_alias[key] = book

    def __len__(self) -> int:
        return len(self._books)

    def __iter__(self) -> Iterator[BookEntry]:
        return iter(self._books)

    @property
    def books(self) -> tuple:
        return self._books

    @property
    def aliases(self) -> list[tuple[str, BookEntry]]:
        """Normalized alias -> book pairs in registration order."""
        return list(self._by_alias.items())

    def lookup_by_ordinal(self, book_id: str) -> Optional[BookEntry]:
        if book_id is None:
            return None
        return self._by_ordinal.get(str(book_id).zfill(2))

    def lookup_by_name(self, text: str) -> Optional[BookEntry]:
        """
        Find a book by canonical name or abbreviation.

        Case-insensitive; "1 Cor.", "1 cor" and "1 Corinthians" all match.
        """
        if not text:
            return None
        key = normalize_alias(text)
        book = self._by_alias.get(key)
        if book is None:
            book = self._by_alias.get(normalize_alias(strip_punctuation(key)))
        return book

    def max_verse(self, book_id: str, chapter: int) -> Optional[int]:
        book = self.lookup_by_ordinal(book_id)
        if book is None:
            return None
        return book.max_verse(chapter)

    def book_names(self) -> list[str]:
        return [book.name for book in self._books]

    def book_aliases(self, book_id: str) -> list[str]:
        book = self.lookup_by_ordinal(book_id)
        if book is None:
            return []
        return book.aliases()


def _book_from_record(record: dict) -> BookEntry:
    try:
        book_id = str(record["ord"]).zfill(2)
        name = record["name"]
        testament = record["testament"]
        raw_chapters = record["chapters"]
    except KeyError as e:
        raise CatalogError(f"Catalog record missing field {e}: {record!r}") from e

    if testament not in TESTAMENTS:
        raise CatalogError(f"{name}: unknown testament '{testament}'")

    chapters = {}
    for chapter, verses in raw_chapters.items():
        try:
            chapter_num, verse_count = int(chapter), int(verses)
        except (TypeError, ValueError) as e:
            raise CatalogError(f"{name}: bad chapter entry {chapter!r}: {verses!r}") from e
        if chapter_num < 1 or verse_count < 1:
            raise CatalogError(f"{name} {chapter}: verse count must be positive, got {verses}")
        chapters[chapter_num] = verse_count
    if not chapters:
        raise CatalogError(f"{name}: no chapters")

    return BookEntry(
        book_id=book_id,
        name=name,
        testament=testament,
        osis_id=record.get("osisId") or name.replace(" ", ""),
        abbreviations=tuple(record.get("abbreviations", [])),
        chapters=MappingProxyType(dict(sorted(chapters.items()))),
    )


def load_catalog(path: Optional[str] = None) -> Catalog:
    """
    Build a Catalog from a JSON data file.

    Raises:
        CatalogError: If the file is unreadable or violates an invariant
    """
    path = path or DEFAULT_CATALOG_PATH
    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CatalogError(f"Could not read catalog {path}: {e}") from e

    catalog = Catalog(_book_from_record(r) for r in records)
    logger.info(f"Loaded catalog from {path}: {len(catalog)} books, {len(catalog.aliases)} aliases")
    return catalog


_catalog: Optional[Catalog] = None
_catalog_lock = threading.Lock()


def get_catalog() -> Catalog:
    """Return the process-wide catalog, loading it on first use."""
    global _catalog
    if _catalog is None:
        with _catalog_lock:
            if _catalog is None:
                from core.config import BIBLE_CATALOG_PATH
                _catalog = load_catalog(BIBLE_CATALOG_PATH)
    return _catalog
