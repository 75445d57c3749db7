# api/services/references/reference_service.py
"""
Reference service: citation in, verse text out.

Ties the pieces together:
    parse -> check bounds -> fetch tokens -> assemble

Ranges and whole chapters are assembled one verse at a time; verses are
independent and a range is not read in a single transaction.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .catalog import Catalog, get_catalog
from .errors import ReferenceErrorKind, ReferenceFailure, ReferenceLookupError
from .reference_format import check_reference, to_fixed_width_id, to_osis
from .reference_parser import CitationParser, ParsedReference, get_parser
from .storage import TokenStore
from .token_assembler import Token, assemble

logger = logging.getLogger(__name__)

ENGLISH_TRANSLATION = "BSB"
MAX_SEARCH_RESULTS = 100


@dataclass
class VerseText:
    """
    Assembled text of one verse.

    Attributes:
        verse: Verse number
        reference: Display reference ("John 3:16")
        text: Assembled text
        tokens: Source tokens, kept for original-language lookups
    """
    verse: int
    reference: str
    text: str
    tokens: list[Token] = field(default_factory=list)

    def to_dict(self, include_tokens: bool = False) -> dict:
        data = {"verse": self.verse, "reference": self.reference, "text": self.text}
        if include_tokens:
            data["words"] = [t.to_dict() for t in self.tokens]
        return data


@dataclass
class Passage:
    """
    Text for a resolved reference.

    Attributes:
        reference: The parsed reference
        translation: "BSB", "Hebrew" or "Greek"
        verses: Per-verse text in verse order
    """
    reference: ParsedReference
    translation: str
    verses: list[VerseText] = field(default_factory=list)

    @property
    def text(self) -> str:
        """All verses joined with single spaces."""
        return " ".join(v.text for v in self.verses)

    def to_dict(self, include_tokens: bool = False) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "ref": self.reference.normalized,
            "reference": self.reference.to_dict(),
            "verse_id": to_fixed_width_id(self.reference),
            "osis": to_osis(self.reference),
            "translation": self.translation,
            "text": self.text,
            "verses": [v.to_dict(include_tokens) for v in self.verses],
        }


class ReferenceService:
    """
    Scripture lookup over the token database.

    Usage:
        service = ReferenceService()
        passage = service.get_english_text("John 3:16")
        print(passage.text)

        # Hebrew for the OT, Greek for the NT
        original = service.get_original_text("Gen 1:1")

        results = service.search("living water", testament="NT")
    """

    def __init__(self, store: Optional[TokenStore] = None, catalog: Optional[Catalog] = None):
        self.catalog = catalog or get_catalog()
        self.parser = CitationParser(catalog) if catalog is not None else get_parser()
        self._store = store

    @property
    def store(self) -> TokenStore:
        """Token store, opened from BIBLE_DB_PATH on first use."""
        if self._store is None:
            from core.config import BIBLE_DB_PATH
            self._store = TokenStore(BIBLE_DB_PATH)
        return self._store

    def resolve(self, text: str) -> ParsedReference:
        """
        Parse and bounds-check a citation.

        Raises:
            ReferenceLookupError: UNKNOWN_BOOK, MALFORMED_REFERENCE or OUT_OF_RANGE
        """
        parsed = self.parser.parse(text)
        if not parsed:
            raise ReferenceLookupError.from_failure(parsed)

        failure = check_reference(parsed, self.catalog)
        if failure is not None:
            raise ReferenceLookupError.from_failure(failure)
        return parsed

    def _verse_bounds(self, ref: ParsedReference) -> tuple[int, int]:
        if ref.verse is None:
            return 1, self.catalog.max_verse(ref.book_id, ref.chapter)
        return ref.verse, ref.end_verse or ref.verse

    def _passage(self, ref: ParsedReference, text: str, corpus: str) -> Passage:
        start, end = self._verse_bounds(ref)

        if start == end:
            by_verse = {start: self.store.fetch_tokens(ref.book_id, ref.chapter, start, corpus)}
            present = [start]
        else:
            present = self.store.fetch_distinct_verses(ref.book_id, ref.chapter, start, end, corpus)
            by_verse = self.store.fetch_token_range(ref.book_id, ref.chapter, start, end, corpus)

        verses = []
        for verse in present:
            tokens = by_verse.get(verse, [])
            verse_text = assemble(tokens)
            if verse_text:
                verses.append(VerseText(verse, f"{ref.book} {ref.chapter}:{verse}", verse_text, tokens))

        if not verses:
            logger.debug(f"No {corpus} text for {ref.normalized}")
            raise ReferenceLookupError.from_failure(
                ReferenceFailure(ReferenceErrorKind.EMPTY_RESULT, text)
            )

        translation = ENGLISH_TRANSLATION if corpus == "english" else corpus.capitalize()
        return Passage(reference=ref, translation=translation, verses=verses)

    def get_english_text(self, text: str) -> Passage:
        """
        English (BSB) text for a verse, range or whole chapter.

        Raises:
            ReferenceLookupError: Invalid reference, or no text stored for it
            StorageError: Token database missing or unreadable
        """
        return self._passage(self.resolve(text), text, "english")

    def get_original_text(self, text: str) -> Passage:
        """Hebrew (OT) or Greek (NT) words for a reference, with per-word attributes."""
        ref = self.resolve(text)
        corpus = "hebrew" if ref.testament == "OT" else "greek"
        return self._passage(ref, text, corpus)

    def search(
        self,
        query: str,
        testament: Optional[str] = None,
        book: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[dict]:
        """
        Search English verse text.

        Args:
            query: Text to look for
            testament: "OT" or "NT" (optional)
            book: Book name, abbreviation or two-digit id (optional)
            limit: Maximum number of results, clamped to 1..MAX_SEARCH_RESULTS
            offset: Offset for pagination

        Raises:
            ValueError: Empty query or unknown testament
            ReferenceLookupError: Unknown book filter
        """
        if not query or not query.strip():
            raise ValueError("Search query required")

        if testament:
            testament = testament.upper()
            if testament not in ("OT", "NT"):
                raise ValueError(f"Unknown testament: {testament}")

        book_id = None
        if book:
            entry = self.catalog.lookup_by_name(book) or self.catalog.lookup_by_ordinal(book)
            if entry is None:
                raise ReferenceLookupError(ReferenceErrorKind.UNKNOWN_BOOK, f"Unknown book: {book}", book)
            book_id = entry.book_id

        limit = max(1, min(limit, MAX_SEARCH_RESULTS))
        offset = max(0, offset)
        return self.store.search_text(query.strip(), testament=testament, book_id=book_id, limit=limit, offset=offset)
