# api/services/references/__init__.py
"""
Scripture reference resolution and verse text assembly.

This package provides:
- Catalog / BookEntry: Canonical book table with chapter and verse bounds
- CitationParser / parse_reference: Parse human-readable citations
- ParsedReference: Structured scripture reference
- validate / check_reference: Bounds checks against the catalog
- to_fixed_width_id / from_fixed_width_id: BBCCCVVV storage keys
- Token / assemble: Verse text from per-word tokens
- TokenStore: SQLite token database
- ReferenceService: Citation in, verse text out
"""

from .catalog import (
    BookEntry,
    Catalog,
    get_catalog,
    load_catalog,
)
from .errors import (
    ReferenceErrorKind,
    ReferenceFailure,
    ParseFailure,
    ReferenceLookupError,
    CatalogError,
    StorageError,
)
from .reference_parser import (
    ParsedReference,
    CitationParser,
    parse_reference,
    is_valid_reference,
)
from .reference_format import (
    validate,
    check_reference,
    to_fixed_width_id,
    to_word_id,
    to_display_string,
    to_osis,
    from_fixed_width_id,
    from_word_id,
    decode_id,
)
from .token_assembler import (
    Token,
    assemble,
    assemble_range,
    visible_tokens,
)
from .storage import TokenStore, create_schema, insert_tokens, rebuild_verses
from .reference_service import (
    ReferenceService,
    Passage,
    VerseText,
)

__all__ = [
    # Unified Service (primary interface)
    "ReferenceService",
    "Passage",
    "VerseText",
    # Catalog
    "BookEntry",
    "Catalog",
    "get_catalog",
    "load_catalog",
    # Errors
    "ReferenceErrorKind",
    "ReferenceFailure",
    "ParseFailure",
    "ReferenceLookupError",
    "CatalogError",
    "StorageError",
    # Reference parsing
    "ParsedReference",
    "CitationParser",
    "parse_reference",
    "is_valid_reference",
    # Validation and formatting
    "validate",
    "check_reference",
    "to_fixed_width_id",
    "to_word_id",
    "to_display_string",
    "to_osis",
    "from_fixed_width_id",
    "from_word_id",
    "decode_id",
    # Token assembly
    "Token",
    "assemble",
    "assemble_range",
    "visible_tokens",
    # Storage
    "TokenStore",
    "create_schema",
    "insert_tokens",
    "rebuild_verses",
]
