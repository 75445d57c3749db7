# api/services/references/token_assembler.py
"""
Verse text assembly from word tokens.

The corpora store one row per word or punctuation unit. A token carries
whether a space follows it and whether it is excluded from display
(apparatus text that is in the corpus but not in the translation).

Assembly is two passes: drop excluded tokens, then join what is left.
Spacing is decided on the filtered sequence, so an excluded token never
changes the spacing of its neighbours.
"""

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence


@dataclass(frozen=True)
class Token:
    """
    One word or punctuation unit of a verse.

    Attributes:
        text: The fragment as displayed
        space_after: False when the next token attaches directly ("Hello" before ",")
        excluded: True when the token is not part of the displayed text
        position: Word position, unique and increasing within a verse
        attributes: Opaque per-token data (lemma, Strong's number, morphology, ...)
    """
    text: str
    space_after: bool = True
    excluded: bool = False
    position: int = 0
    attributes: Mapping[str, Optional[str]] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "position": self.position,
            "space_after": self.space_after,
            "excluded": self.excluded,
            **dict(self.attributes),
        }


def visible_tokens(tokens: Iterable[Token]) -> list[Token]:
    """First pass: keep the tokens that are displayed."""
    return [t for t in tokens if not t.excluded]


def join_tokens(tokens: Sequence[Token]) -> str:
    """Second pass: one space after each token but the last, unless space_after is False."""
    parts = []
    last = len(tokens) - 1
    for i, token in enumerate(tokens):
        parts.append(token.text)
        if i < last and token.space_after:
            parts.append(" ")
    return "".join(parts)


def assemble(tokens: Iterable[Token]) -> str:
    """
    Build display text from tokens in position order.

    An empty string means nothing to display; callers treat it as
    "reference not found", not as an empty verse.
    """
    return join_tokens(visible_tokens(tokens))


def assemble_range(verses: Mapping[int, Sequence[Token]]) -> dict[int, str]:
    """Assemble each verse on its own, skipping verses with no visible text."""
    assembled = {}
    for verse in sorted(verses):
        text = assemble(verses[verse])
        if text:
            assembled[verse] = text
    return assembled
