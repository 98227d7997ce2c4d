"""
Guardrails validation for generated output.

Rules per claim, checked in order; the first violation is raised and later claims
are not checked:
- claim text must be non-empty (SchemaError)
- sources must be non-empty (SchemaError)
- every source must normalize to an http(s) URL (SourceURLError)
- normative language requires a non-empty attribution (AttributionError)
- a non-empty timestamp must be an RFC 3339 date-time with offset (FormatError)
"""

from __future__ import annotations

import re
from datetime import datetime
from urllib.parse import urlsplit

from sourcegate.errors import (
    AttributionError,
    FormatError,
    SchemaError,
    SourceURLError,
)
from sourcegate.guardrails.claims import parse_claims
from sourcegate.guardrails.lexicon import DEFAULT_LEXICON, NormativeLexicon
from sourcegate.schemas import Claim


_URL_SCHEMES = ("http://", "https://")
_ALLOWED_SCHEMES = frozenset({"http", "https"})

# 2026-01-01T12:00:00Z, 2026-01-01T12:00:00.123+02:00
_RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})T(\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})$"
)


def normalize_source_url(raw: str) -> str:
    """Reduce a source string to the URL it carries.

    Strings already starting with http:// or https:// are kept; otherwise the
    substring from the earliest http:// or https:// is taken.

    Raises:
        ValueError: If the string holds no http:// or https:// URL.
    """
    value = raw.strip()
    if not value:
        raise ValueError("empty url")
    if value.startswith(_URL_SCHEMES):
        return value
    positions = [i for i in (value.find(s) for s in _URL_SCHEMES) if i != -1]
    if not positions:
        raise ValueError("url must start with http:// or https://")
    return value[min(positions):]


def is_valid_source_url(raw: str) -> bool:
    try:
        normalized = normalize_source_url(raw)
        parsed = urlsplit(normalized)
    except ValueError:
        return False
    return parsed.scheme in _ALLOWED_SCHEMES


def is_rfc3339_timestamp(value: str) -> bool:
    """True for a full date-time with seconds and a Z or +HH:MM offset."""
    match = _RFC3339_RE.match(value)
    if match is None:
        return False
    date_part, time_part, fraction, offset = match.groups()
    micros = f".{fraction[:6]}" if fraction else ""
    offset = "+00:00" if offset == "Z" else offset
    try:
        datetime.fromisoformat(f"{date_part}T{time_part}{micros}{offset}")
    except ValueError:
        return False
    return True


class GuardrailsValidator:
    """Validates a raw generated payload against the claim rules."""

    def __init__(self, lexicon: NormativeLexicon | None = None) -> None:
        self.lexicon = lexicon or DEFAULT_LEXICON

    def __call__(self, raw_text: str) -> None:
        self.validate(raw_text)

    def validate(self, raw_text: str) -> None:
        """Raise a ClaimValidationError subclass on the first violation."""
        claims = parse_claims(raw_text)
        for index, claim in enumerate(claims):
            self.validate_claim(claim, index)

    def validate_claim(self, claim: Claim, index: int = 0) -> None:
        text = claim.text
        if not text.strip():
            raise SchemaError(f"empty claim at index {index}", claim_text=text)
        if not claim.sources:
            raise SchemaError(f"missing sources for claim: '{text}'", claim_text=text)
        for source in claim.sources:
            if not is_valid_source_url(source):
                raise SourceURLError(
                    f"invalid source URL '{source}' for claim: '{text}'", claim_text=text
                )
        term = self.lexicon.find(text)
        if term is not None and not claim.attribution.strip():
            raise AttributionError(
                f"normative term '{term}' detected but missing attribution for claim: '{text}'",
                claim_text=text,
            )
        timestamp = claim.timestamp.strip()
        if timestamp and not is_rfc3339_timestamp(timestamp):
            raise FormatError(
                f"invalid timestamp format for claim: '{text}', must be ISO8601",
                claim_text=text,
            )


def validate_llm_output(raw_text: str, lexicon: NormativeLexicon | None = None) -> None:
    """Validate with a one-off GuardrailsValidator."""
    GuardrailsValidator(lexicon).validate(raw_text)
