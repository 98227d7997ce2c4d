"""Parse a generated payload into Claim records.

Accepted shapes, tried in this order (the first that yields at least one claim wins):

1. a bare JSON array of claim objects;
2. an object with ``facts`` and/or ``interpretation`` arrays, read facts first;
3. an object mapping arbitrary keys to claim arrays, read in document order.

Object keys are matched case-insensitively, so ``{"Facts": [...]}`` and
``{"Claim": "..."}`` are accepted.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from sourcegate.errors import ParseError, SchemaError
from sourcegate.schemas import Claim

FACTS_KEY = "facts"
INTERPRETATION_KEY = "interpretation"


class _ShapeMismatch(Exception):
    """The payload does not have the structure a shape expects."""


def _lower_keys(obj: dict[str, Any]) -> dict[str, Any]:
    """Lower-case keys; an exact lower-case key wins over a differently cased duplicate."""
    out: dict[str, Any] = {}
    for key, value in obj.items():
        lowered = key.lower()
        if lowered not in out or key == lowered:
            out[lowered] = value
    return out


def _claim_from(item: Any) -> Claim:
    if not isinstance(item, dict):
        raise _ShapeMismatch("claim entry is not an object")
    fields = {k: v for k, v in _lower_keys(item).items() if v is not None}
    try:
        return Claim.model_validate(fields)
    except ValidationError as exc:
        raise _ShapeMismatch(str(exc)) from exc


def _claims_from(value: Any) -> list[Claim]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise _ShapeMismatch("expected an array of claims")
    return [_claim_from(item) for item in value]


def _bare_array(payload: Any) -> list[Claim]:
    if not isinstance(payload, list):
        raise _ShapeMismatch("not an array")
    return _claims_from(payload)


def _facts_and_interpretation(payload: Any) -> list[Claim]:
    if not isinstance(payload, dict):
        raise _ShapeMismatch("not an object")
    keyed = _lower_keys(payload)
    if FACTS_KEY not in keyed and INTERPRETATION_KEY not in keyed:
        raise _ShapeMismatch("no facts or interpretation key")
    return _claims_from(keyed.get(FACTS_KEY)) + _claims_from(keyed.get(INTERPRETATION_KEY))


def _generic_map(payload: Any) -> list[Claim]:
    if not isinstance(payload, dict):
        raise _ShapeMismatch("not an object")
    aggregated: list[Claim] = []
    for value in payload.values():
        aggregated.extend(_claims_from(value))
    return aggregated


_SHAPES = (
    ("array", _bare_array),
    ("facts_interpretation", _facts_and_interpretation),
    ("generic_map", _generic_map),
)


def parse_claims(raw_text: str) -> list[Claim]:
    """Return the claims in ``raw_text``.

    Raises:
        ParseError: If the text is not JSON or matches none of the accepted shapes.
        SchemaError: If a shape matched but contained no claims.
    """
    text = raw_text.strip()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"response is not valid JSON: {exc.msg}") from exc

    matched = False
    for _name, shape in _SHAPES:
        try:
            claims = shape(payload)
        except _ShapeMismatch:
            continue
        matched = True
        if claims:
            return claims
    if not matched:
        raise ParseError("response is not a JSON array of claims or an object of claim arrays")
    raise SchemaError("no claims returned")
