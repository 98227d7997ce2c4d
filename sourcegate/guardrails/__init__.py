"""Guardrails for generated output: claim parsing, sourcing and attribution rules."""

from sourcegate.guardrails.claims import parse_claims
from sourcegate.guardrails.lexicon import (
    DEFAULT_LEXICON,
    DEFAULT_NORMATIVE_TERMS,
    NormativeLexicon,
)
from sourcegate.guardrails.validator import (
    GuardrailsValidator,
    is_rfc3339_timestamp,
    is_valid_source_url,
    normalize_source_url,
    validate_llm_output,
)

__all__ = [
    "DEFAULT_LEXICON",
    "DEFAULT_NORMATIVE_TERMS",
    "GuardrailsValidator",
    "NormativeLexicon",
    "is_rfc3339_timestamp",
    "is_valid_source_url",
    "normalize_source_url",
    "parse_claims",
    "validate_llm_output",
]
