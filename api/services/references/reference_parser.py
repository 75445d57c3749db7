# api/services/references/reference_parser.py
"""
Catalog-driven scripture citation parser.

Handles the formats found in user input:
- Full names: "Genesis 1:1"
- Abbreviations: "Gen 1:1", "Gen. 1:1"
- Numbered books: "1 John 3:16", "1John 3:16", "I John 3:16"
- Verse ranges: "Genesis 1:1-3", "John 3:16 - 18"
- Chapter-only: "Psalm 23" (verse and end_verse stay None)

Every canonical name and abbreviation in the catalog becomes one literal
alternative of a single pattern. Alternatives are sorted longest-first so
that "1 Kings" wins over "Kings" and "Song of Solomon" over "Song".
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Optional, Union

from .catalog import BookEntry, Catalog, get_catalog, normalize_alias, strip_punctuation
from .errors import ParseFailure, ReferenceErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedReference:
    """
    A resolved scripture reference.

    Attributes:
        book: Canonical book name (e.g., "Genesis", "1 John")
        book_id: Two-digit book ordinal ("01")
        testament: "OT" or "NT"
        chapter: Chapter number
        verse: Verse number (None for a whole chapter)
        end_verse: Inclusive end of a verse range
        osis_id: OSIS book id used as the cross-reference id ("1John")
        original: Original input string
    """
    book: str
    book_id: str
    testament: str
    chapter: int
    verse: Optional[int] = None
    end_verse: Optional[int] = None
    osis_id: Optional[str] = None
    original: str = field(default="", compare=False)

    @classmethod
    def for_book(
        cls,
        book: BookEntry,
        chapter: int,
        verse: Optional[int] = None,
        end_verse: Optional[int] = None,
        original: str = "",
    ) -> "ParsedReference":
        return cls(
            book=book.name,
            book_id=book.book_id,
            testament=book.testament,
            chapter=chapter,
            verse=verse,
            end_verse=end_verse,
            osis_id=book.osis_id,
            original=original,
        )

    @property
    def is_chapter(self) -> bool:
        """True for whole-chapter references."""
        return self.verse is None

    @property
    def is_range(self) -> bool:
        return self.end_verse is not None

    @property
    def normalized(self) -> str:
        """Return normalized reference string."""
        if self.verse is None:
            return f"{self.book} {self.chapter}"
        if self.end_verse is not None:
            return f"{self.book} {self.chapter}:{self.verse}-{self.end_verse}"
        return f"{self.book} {self.chapter}:{self.verse}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "book": self.book,
            "book_id": self.book_id,
            "testament": self.testament,
            "chapter": self.chapter,
            "verse": self.verse,
            "end_verse": self.end_verse,
            "osis_id": self.osis_id,
            "ref": self.normalized,
        }


def _alternative_pattern(alias: str) -> str:
    # Any whitespace run in the input may stand for a single space in the alias
    return r"\s+".join(re.escape(part) for part in alias.split())


class CitationParser:
    """
    Parses free-text citations against a Catalog.

    The pattern is built once per catalog. Usage:
        parser = CitationParser(get_catalog())
        ref = parser.parse("1 Cor 13:4-7")
        if not ref:
            print(ref.kind)  # ParseFailure
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self.alternatives = self._collect_alternatives(catalog)

        book_group = "|".join(_alternative_pattern(a) for a in self.alternatives)
        self._citation_re = re.compile(
            rf"(?<![A-Za-z])(\d+\s+)?({book_group})\s+(\d+)"
            rf"(?:\s*:\s*(\d+)(?:\s*-\s*(\d+))?)?",
            re.IGNORECASE,
        )
        # Used only to tell "book without chapter" apart from "no book at all"
        self._book_re = re.compile(
            rf"(?<![A-Za-z])(\d+\s+)?({book_group})(?![A-Za-z])",
            re.IGNORECASE,
        )

    @staticmethod
    def _collect_alternatives(catalog: Catalog) -> list[str]:
        """
        Every name, abbreviation and period-stripped abbreviation, longest first.

        The sort is stable, so alternatives of equal length keep catalog order.
        """
        seen = set()
        alternatives = []
        for book in catalog:
            for alias in book.aliases():
                for candidate in (alias.strip(), strip_punctuation(alias)):
                    key = normalize_alias(candidate)
                    if candidate and key not in seen:
                        seen.add(key)
                        alternatives.append(candidate)
        alternatives.sort(key=len, reverse=True)
        return alternatives

    def resolve_book(self, matched: str, prefix: Optional[str] = None) -> Optional[BookEntry]:
        """
        Resolve matched book text (plus an optional leading number) to a book.

        Exact alias lookup first. Otherwise fall back to the shortest alias
        that is a prefix of the key or that starts with the key; among
        aliases of equal length the earliest registered wins.
        """
        key = normalize_alias(matched)
        if prefix and prefix.strip():
            key = f"{prefix.strip()} {key}"

        book = self.catalog.lookup_by_name(key)
        if book is not None:
            return book

        candidates = [
            (alias, entry)
            for alias, entry in self.catalog.aliases
            if key.startswith(alias) or alias.startswith(key)
        ]
        if not candidates:
            return None
        alias, book = min(candidates, key=lambda item: len(item[0]))
        logger.debug(f"Approximate book match: '{key}' -> '{alias}' ({book.name})")
        return book

    def parse(self, text: str) -> Union[ParsedReference, ParseFailure]:
        """
        Parse a citation string.

        Args:
            text: Citation such as "John 3:16", "Gen 1:1-3" or "1 Cor 13"

        Returns:
            ParsedReference, or a ParseFailure whose kind is UNKNOWN_BOOK or
            MALFORMED_REFERENCE
        """
        if not text or not text.strip():
            return ParseFailure(ReferenceErrorKind.MALFORMED_REFERENCE, text or "", "Empty reference")

        cleaned = text.strip()
        match = self._citation_re.search(cleaned)
        if not match:
            return self._explain_failure(cleaned)

        prefix, book_text, chapter, verse, end_verse = match.groups()
        book = self.resolve_book(book_text, prefix)
        if book is None:
            logger.debug(f"Unknown book in reference: {cleaned!r}")
            return ParseFailure(ReferenceErrorKind.UNKNOWN_BOOK, cleaned, f"Unknown book '{book_text}'")

        return ParsedReference.for_book(
            book,
            chapter=int(chapter),
            verse=int(verse) if verse else None,
            end_verse=int(end_verse) if end_verse else None,
            original=cleaned,
        )

    def _explain_failure(self, cleaned: str) -> ParseFailure:
        book_match = self._book_re.search(cleaned)
        if book_match and self.resolve_book(book_match.group(2), book_match.group(1)):
            logger.debug(f"Reference without chapter: {cleaned!r}")
            return ParseFailure(
                ReferenceErrorKind.MALFORMED_REFERENCE,
                cleaned,
                "Missing or non-numeric chapter",
            )
        logger.debug(f"No book found in reference: {cleaned!r}")
        return ParseFailure(ReferenceErrorKind.UNKNOWN_BOOK, cleaned, "No known book name")


_default_parser: Optional[CitationParser] = None
_parser_lock = threading.Lock()


def get_parser() -> CitationParser:
    """Return the parser bound to the process-wide catalog."""
    global _default_parser
    if _default_parser is None:
        with _parser_lock:
            if _default_parser is None:
                _default_parser = CitationParser(get_catalog())
    return _default_parser


def parse_reference(text: str, catalog: Optional[Catalog] = None) -> Union[ParsedReference, ParseFailure]:
    """
    Parse a scripture reference string.

    Uses the default catalog unless one is given.
    """
    parser = CitationParser(catalog) if catalog is not None else get_parser()
    return parser.parse(text)


def is_valid_reference(text: str) -> bool:
    """
    Check if a string parses as a scripture reference.

    Only the citation shape and book are checked; use validate() for
    chapter and verse bounds.
    """
    return bool(parse_reference(text))
