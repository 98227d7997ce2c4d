"""Normative (value-laden) terms that require attribution when a claim uses them."""

from __future__ import annotations

import re
from collections.abc import Iterable

DEFAULT_NORMATIVE_TERMS: tuple[str, ...] = (
    "neo-fascist",
    "neofascist",
    "fascist",
    "hate group",
    "extremist",
    "violent",
    "racist",
    "sexist",
    "homophobic",
    "promoting traditional gender roles",
)


class NormativeLexicon:
    """A term list plus a compiled case-insensitive whole-word matcher."""

    def __init__(self, terms: Iterable[str] = DEFAULT_NORMATIVE_TERMS) -> None:
        cleaned = {t.strip().lower() for t in terms if t and t.strip()}
        if not cleaned:
            raise ValueError("NormativeLexicon requires at least one term")
        # Longest first so "neo-fascist" wins over "fascist"
        self.terms: tuple[str, ...] = tuple(sorted(cleaned, key=lambda t: (-len(t), t)))
        alternation = "|".join(re.escape(t) for t in self.terms)
        self._pattern = re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE)

    def find(self, text: str) -> str | None:
        """Return the first normative term in ``text``, or None."""
        match = self._pattern.search(text)
        return match.group(0) if match else None

    def matches(self, text: str) -> bool:
        return self._pattern.search(text) is not None

    def with_terms(self, extra: Iterable[str]) -> NormativeLexicon:
        """Return a new lexicon with ``extra`` terms added."""
        return NormativeLexicon([*self.terms, *extra])

    def __repr__(self) -> str:
        return f"NormativeLexicon({len(self.terms)} terms)"


DEFAULT_LEXICON = NormativeLexicon()
