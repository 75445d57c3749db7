# routes/references_api.py
"""
API endpoints for scripture reference lookup.

Provides access to:
- English (BSB) passage text assembled from word tokens
- Hebrew / Greek words with per-word attributes
- Citation parsing and id decoding
- Text search
- The book catalog
"""

import logging

from flask import Blueprint, request, jsonify

from services.references import (
    ReferenceService,
    ReferenceLookupError,
    StorageError,
    decode_id,
    get_catalog,
    parse_reference,
    check_reference,
    to_fixed_width_id,
    to_osis,
)
from utils.errors import (
    internal_error,
    missing_field,
    not_found,
    reference_error,
    service_unavailable,
    validation_error,
)

logger = logging.getLogger(__name__)

references_bp = Blueprint("references_api", __name__, url_prefix="/api/references")

# Lazily initialized service instance
_service = None


def get_service() -> ReferenceService:
    """Get or create ReferenceService instance."""
    global _service
    if _service is None:
        _service = ReferenceService()
    return _service


# =============================================================================
# Lookup Endpoints
# =============================================================================

@references_bp.get("/lookup")
def lookup_reference():
    """
    Look up English text for a reference.

    Query params:
        ref: Reference string (required) e.g., "John 3:16", "Gen 1:1-3", "Ps 23"

    Returns:
        {
            "ref": "John 3:16",
            "translation": "BSB",
            "text": "For God so loved the world...",
            "verses": [{"verse": 16, "reference": "John 3:16", "text": "..."}],
            ...
        }
    """
    ref = request.args.get("ref")
    if not ref:
        return missing_field("ref")

    try:
        passage = get_service().get_english_text(ref)
        return jsonify(passage.to_dict())
    except ReferenceLookupError as e:
        return reference_error(e)
    except StorageError as e:
        return service_unavailable(detail=str(e))
    except Exception as e:
        logger.error(f"Lookup failed for '{ref}': {e}", exc_info=True)
        return internal_error("lookup_failed", str(e))


@references_bp.get("/original")
def lookup_original():
    """
    Look up original-language words for a reference.

    Hebrew for Old Testament books, Greek for New Testament books.

    Query params:
        ref: Reference string (required)

    Returns:
        Passage dict whose verses carry a "words" list with lemma,
        Strong's number and morphology per word
    """
    ref = request.args.get("ref")
    if not ref:
        return missing_field("ref")

    try:
        passage = get_service().get_original_text(ref)
        return jsonify(passage.to_dict(include_tokens=True))
    except ReferenceLookupError as e:
        return reference_error(e)
    except StorageError as e:
        return service_unavailable(detail=str(e))
    except Exception as e:
        logger.error(f"Original text lookup failed for '{ref}': {e}", exc_info=True)
        return internal_error("lookup_failed", str(e))


@references_bp.get("/parse")
def parse_citation():
    """
    Parse a citation without touching the database.

    Query params:
        ref: Reference string (required)

    Returns:
        {
            "ref": "1 John 1:9",
            "reference": {...},
            "verse_id": "62001009",
            "osis": "1John.1.9",
            "valid": true,
            "detail": null
        }
    """
    ref = request.args.get("ref")
    if not ref:
        return missing_field("ref")

    parsed = parse_reference(ref)
    if not parsed:
        return reference_error(ReferenceLookupError.from_failure(parsed))

    failure = check_reference(parsed)
    return jsonify({
        "ref": parsed.normalized,
        "reference": parsed.to_dict(),
        "verse_id": to_fixed_width_id(parsed),
        "osis": to_osis(parsed),
        "valid": failure is None,
        "detail": failure.detail if failure is not None else None,
    })


@references_bp.get("/ids/<verse_id>")
def decode_verse_id(verse_id: str):
    """
    Decode a BBCCCVVV verse id or BBCCCVVVWWW word id.

    Returns:
        Reference dict, plus "word_position" for word ids
    """
    decoded = decode_id(verse_id)
    if not decoded:
        return not_found("id", decoded.detail, id=verse_id)
    return jsonify(decoded)


@references_bp.get("/search")
def search_text():
    """
    Search English verse text.

    Query params:
        q: Search query (required)
        testament: "OT" or "NT" (optional)
        book: Book name or abbreviation (optional)
        limit: Maximum results (optional, default 20)
        offset: Offset for pagination (optional, default 0)

    Returns:
        {
            "query": "living water",
            "results": [{"text": "...", "reference": "John 4:10", ...}]
        }
    """
    query = request.args.get("q")
    if not query:
        return missing_field("q")

    limit = request.args.get("limit", 20, type=int)
    offset = request.args.get("offset", 0, type=int)

    try:
        results = get_service().search(
            query,
            testament=request.args.get("testament"),
            book=request.args.get("book"),
            limit=limit,
            offset=offset,
        )
        logger.info(f"Search '{query}' (limit={limit}, offset={offset}) returned {len(results)} results")
        return jsonify({"query": query, "results": results})
    except ReferenceLookupError as e:
        return reference_error(e)
    except ValueError as e:
        return validation_error("invalid_search", str(e))
    except StorageError as e:
        return service_unavailable(detail=str(e))
    except Exception as e:
        logger.error(f"Search failed for '{query}': {e}", exc_info=True)
        return internal_error("search_failed", str(e))


# =============================================================================
# Book Info Endpoints
# =============================================================================

@references_bp.get("/books")
def list_books():
    """
    List the books of the catalog in canonical order.

    Query params:
        testament: "OT" or "NT" (optional)
    """
    testament = (request.args.get("testament") or "").upper()
    books = [
        book.to_dict()
        for book in get_catalog()
        if not testament or book.testament == testament
    ]
    return jsonify({"books": books})


@references_bp.get("/books/<book_id>/aliases")
def book_aliases(book_id: str):
    """
    Names and abbreviations accepted for a book.

    Path params:
        book_id: Two-digit book ordinal (e.g., "43")
    """
    aliases = get_catalog().book_aliases(book_id)
    if not aliases:
        return not_found("book", f"Unknown book id: {book_id}")
    return jsonify({"book_id": book_id, "aliases": aliases})
