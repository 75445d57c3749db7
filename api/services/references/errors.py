# api/services/references/errors.py
"""
Failure values and exceptions for reference resolution.

Parsing, validation and id decoding report per-call problems as values
(ParseFailure / ReferenceFailure, both falsy) so callers can test them
the same way they would test for None. The service layer turns those
values into ReferenceLookupError for the HTTP routes.
"""

from dataclasses import dataclass
from enum import Enum


class ReferenceErrorKind(str, Enum):
    """Why a reference could not be resolved."""
    UNKNOWN_BOOK = "unknown_book"
    MALFORMED_REFERENCE = "malformed_reference"
    OUT_OF_RANGE = "out_of_range"
    NOT_FOUND = "not_found"
    EMPTY_RESULT = "empty_result"


@dataclass(frozen=True)
class ReferenceFailure:
    """
    A per-call resolution failure.

    Attributes:
        kind: Failure category
        text: The input that failed (citation text or id)
        detail: Human-readable explanation
    """
    kind: ReferenceErrorKind
    text: str = ""
    detail: str = ""

    def __bool__(self) -> bool:
        return False

    def to_dict(self) -> dict:
        return {"error": self.kind.value, "text": self.text, "detail": self.detail}


@dataclass(frozen=True)
class ParseFailure(ReferenceFailure):
    """Failure returned by the citation parser."""


class CatalogError(Exception):
    """Raised when the book catalog data violates its invariants."""
    pass


class StorageError(Exception):
    """Raised when the token database is missing or unreadable."""
    pass


class ReferenceLookupError(ValueError):
    """
    Raised by ReferenceService when a lookup cannot be satisfied.

    Carries the failure kind so route handlers can choose a status code.
    """

    def __init__(self, kind: ReferenceErrorKind, message: str, text: str = ""):
        super().__init__(message)
        self.kind = kind
        self.text = text

    @classmethod
    def from_failure(cls, failure: ReferenceFailure) -> "ReferenceLookupError":
        if failure.kind == ReferenceErrorKind.EMPTY_RESULT:
            message = f'No text found for reference: "{failure.text}".'
        else:
            message = f'Invalid Bible reference: "{failure.text}".'
            if failure.detail:
                message = f"{message} {failure.detail}"
        return cls(failure.kind, message, failure.text)
