# api/services/references/reference_format.py
"""
Validation and formatting of parsed references.

Fixed-width ids are the storage keys of the token database:
    BBCCCVVV     verse id  ("01001001" = Genesis 1:1)
    BBCCCVVVWWW  word id   ("01001001003" = third word of Genesis 1:1)

to_fixed_width_id() writes verse 1 for whole-chapter references, so
decoding such an id yields "<book> <chapter>:1", not the chapter.
"""

from typing import Optional, Union

from .catalog import Catalog, get_catalog
from .errors import ReferenceErrorKind, ReferenceFailure
from .reference_parser import ParsedReference

VERSE_ID_LENGTH = 8
WORD_ID_LENGTH = 11


def check_reference(ref: ParsedReference, catalog: Optional[Catalog] = None) -> Optional[ReferenceFailure]:
    """
    Check a reference against catalog bounds.

    Returns:
        None when the reference is valid, otherwise a ReferenceFailure
        (UNKNOWN_BOOK or OUT_OF_RANGE) describing the first problem found
    """
    catalog = catalog or get_catalog()
    text = ref.original or ref.normalized

    book = catalog.lookup_by_ordinal(ref.book_id)
    if book is None:
        return ReferenceFailure(ReferenceErrorKind.UNKNOWN_BOOK, text, f"Unknown book id '{ref.book_id}'")

    max_verse = book.max_verse(ref.chapter)
    if max_verse is None:
        return ReferenceFailure(
            ReferenceErrorKind.OUT_OF_RANGE,
            text,
            f"{book.name} has {book.chapter_count} chapters",
        )

    if ref.verse is not None and not 1 <= ref.verse <= max_verse:
        return ReferenceFailure(
            ReferenceErrorKind.OUT_OF_RANGE,
            text,
            f"{book.name} {ref.chapter} has {max_verse} verses",
        )

    if ref.end_verse is not None:
        if ref.verse is None:
            return ReferenceFailure(ReferenceErrorKind.OUT_OF_RANGE, text, "Range end without a start verse")
        if not ref.verse <= ref.end_verse <= max_verse:
            return ReferenceFailure(
                ReferenceErrorKind.OUT_OF_RANGE,
                text,
                f"Range end must be between {ref.verse} and {max_verse}",
            )

    return None


def validate(ref: ParsedReference, catalog: Optional[Catalog] = None) -> bool:
    """True if book, chapter, verse and range end all exist in the catalog."""
    if not ref:
        return False
    return check_reference(ref, catalog) is None


def to_fixed_width_id(ref: ParsedReference) -> str:
    """Encode as BBCCCVVV; whole-chapter references use verse 1."""
    verse = ref.verse if ref.verse is not None else 1
    return f"{ref.book_id}{ref.chapter:03d}{verse:03d}"


def to_word_id(ref: ParsedReference, position: int) -> str:
    """Encode a token id as BBCCCVVVWWW."""
    return f"{to_fixed_width_id(ref)}{position:03d}"


def to_display_string(ref: ParsedReference) -> str:
    """Canonical display form: "John 3", "John 3:16" or "John 3:16-18"."""
    return ref.normalized


def to_osis(ref: ParsedReference) -> str:
    """OSIS form: "John.3.16" or "John.3.16-John.3.18"."""
    osis = ref.osis_id or ref.book.replace(" ", "")
    if ref.verse is None:
        return f"{osis}.{ref.chapter}"
    if ref.end_verse is not None:
        return f"{osis}.{ref.chapter}.{ref.verse}-{osis}.{ref.chapter}.{ref.end_verse}"
    return f"{osis}.{ref.chapter}.{ref.verse}"


def from_fixed_width_id(verse_id: str, catalog: Optional[Catalog] = None) -> Optional[ParsedReference]:
    """
    Decode a BBCCCVVV id (longer ids are read by their first 8 digits).

    Returns None if the id is too short, not numeric, or names an unknown book.
    """
    if not verse_id or len(verse_id) < VERSE_ID_LENGTH:
        return None
    digits = verse_id[:VERSE_ID_LENGTH]
    if not digits.isdigit():
        return None

    catalog = catalog or get_catalog()
    book = catalog.lookup_by_ordinal(digits[:2])
    if book is None:
        return None

    return ParsedReference.for_book(
        book,
        chapter=int(digits[2:5]),
        verse=int(digits[5:8]),
        original=verse_id,
    )


def from_word_id(
    word_id: str, catalog: Optional[Catalog] = None
) -> Optional[tuple[ParsedReference, int]]:
    """
    Decode a BBCCCVVVWWW id into (verse reference, word position).

    Every digit after the verse belongs to the position, so the 12-digit
    Hebrew ids (word plus segment digit) decode to the stored position.
    """
    if not word_id or len(word_id) < WORD_ID_LENGTH:
        return None
    position = word_id[VERSE_ID_LENGTH:]
    if not position.isdigit():
        return None
    ref = from_fixed_width_id(word_id, catalog)
    if ref is None:
        return None
    return ref, int(position)


def decode_id(value: str, catalog: Optional[Catalog] = None) -> Union[dict, ReferenceFailure]:
    """
    Decode either id form into a JSON-friendly dict.

    Used by the HTTP layer; returns a NOT_FOUND failure for bad ids.
    """
    if value and len(value) >= WORD_ID_LENGTH:
        decoded = from_word_id(value, catalog)
        if decoded:
            ref, position = decoded
            return {**ref.to_dict(), "id": value, "word_position": position}
    else:
        ref = from_fixed_width_id(value, catalog)
        if ref:
            return {**ref.to_dict(), "id": value}
    return ReferenceFailure(ReferenceErrorKind.NOT_FOUND, value or "", "Unknown or malformed id")
