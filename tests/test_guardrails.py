"""
Tests for the guardrails: claim parsing, source URLs, attribution and timestamps.
"""

from __future__ import annotations

import json

import pytest

from sourcegate.errors import (
    AttributionError,
    ClaimValidationError,
    FormatError,
    ParseError,
    SchemaError,
    SourceURLError,
)
from sourcegate.guardrails import (
    GuardrailsValidator,
    NormativeLexicon,
    is_rfc3339_timestamp,
    is_valid_source_url,
    normalize_source_url,
    parse_claims,
    validate_llm_output,
)

SOURCE = "https://example.org/report"


def _claims(*claims: dict) -> str:
    return json.dumps(list(claims))


def _claim(text: str = "Turnout rose to 61 percent.", **extra) -> dict:
    return {"claim": text, "sources": [SOURCE], **extra}


# ---------------------------------------------------------------------------
# parse_claims
# ---------------------------------------------------------------------------


class TestParseClaims:
    def test_bare_array(self):
        claims = parse_claims(_claims(_claim("a"), _claim("b")))
        assert [c.text for c in claims] == ["a", "b"]

    def test_facts_before_interpretation(self):
        payload = json.dumps(
            {"interpretation": [_claim("opinion")], "facts": [_claim("fact")]}
        )
        assert [c.text for c in parse_claims(payload)] == ["fact", "opinion"]

    def test_keys_are_case_insensitive(self):
        payload = json.dumps({"Facts": [{"Claim": "x", "Sources": [SOURCE]}]})
        claims = parse_claims(payload)
        assert claims[0].text == "x"
        assert claims[0].sources == [SOURCE]

    def test_generic_map_in_document_order(self):
        payload = json.dumps({"summary": [_claim("one")], "details": [_claim("two")]})
        assert [c.text for c in parse_claims(payload)] == ["one", "two"]

    def test_surrounding_whitespace(self):
        assert len(parse_claims("\n  " + _claims(_claim()) + "  \n")) == 1

    def test_null_fields_default(self):
        claims = parse_claims(json.dumps([{"claim": "x", "sources": [SOURCE], "attribution": None}]))
        assert claims[0].attribution == ""

    def test_not_json(self):
        with pytest.raises(ParseError):
            parse_claims("Here are the facts: the sky is blue.")

    def test_wrong_shape(self):
        with pytest.raises(ParseError):
            parse_claims(json.dumps("just a string"))

    def test_object_with_non_claim_values(self):
        with pytest.raises(ParseError):
            parse_claims(json.dumps({"answer": "42"}))

    def test_empty_array(self):
        with pytest.raises(SchemaError, match="no claims returned"):
            parse_claims("[]")

    def test_empty_facts_and_interpretation(self):
        with pytest.raises(SchemaError, match="no claims returned"):
            parse_claims(json.dumps({"facts": [], "interpretation": []}))


# ---------------------------------------------------------------------------
# URL and timestamp helpers
# ---------------------------------------------------------------------------


class TestSourceURLs:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("https://example.org/a", "https://example.org/a"),
            ("  http://example.org  ", "http://example.org"),
            ("AP: https://apnews.com/article/1", "https://apnews.com/article/1"),
            ("see http://a.org then https://b.org", "http://a.org then https://b.org"),
        ],
    )
    def test_normalize(self, raw: str, expected: str):
        assert normalize_source_url(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "ftp://example.org", "example.org", "Reuters"])
    def test_normalize_rejects(self, raw: str):
        with pytest.raises(ValueError):
            normalize_source_url(raw)

    def test_is_valid(self):
        assert is_valid_source_url("Reuters https://reuters.com/x")
        assert not is_valid_source_url("mailto:desk@example.org")


class TestTimestamps:
    @pytest.mark.parametrize(
        "value",
        [
            "2026-01-01T12:00:00Z",
            "2026-01-01T12:00:00+02:00",
            "2026-01-01T12:00:00.123456789-05:30",
        ],
    )
    def test_valid(self, value: str):
        assert is_rfc3339_timestamp(value)

    @pytest.mark.parametrize(
        "value",
        [
            "2026-01-01",
            "2026-01-01 12:00:00Z",
            "2026-01-01T12:00:00",
            "2026-13-01T12:00:00Z",
            "2026-02-30T12:00:00Z",
            "yesterday",
        ],
    )
    def test_invalid(self, value: str):
        assert not is_rfc3339_timestamp(value)


# ---------------------------------------------------------------------------
# GuardrailsValidator
# ---------------------------------------------------------------------------


class TestGuardrailsValidator:
    def test_valid_output_passes(self):
        GuardrailsValidator().validate(_claims(_claim(timestamp="2026-01-01T00:00:00Z")))

    def test_empty_claim_text(self):
        with pytest.raises(SchemaError, match="empty claim at index 1"):
            validate_llm_output(_claims(_claim(), _claim("   ")))

    def test_missing_sources(self):
        with pytest.raises(SchemaError, match="missing sources for claim: 'Unsourced.'") as exc:
            validate_llm_output(_claims({"claim": "Unsourced.", "sources": []}))
        assert exc.value.claim_text == "Unsourced."

    def test_invalid_source_url(self):
        with pytest.raises(SourceURLError) as exc:
            validate_llm_output(_claims({"claim": "x", "sources": ["the newspaper"]}))
        assert exc.value.claim_text == "x"

    def test_normative_term_requires_attribution(self):
        text = "The group is extremist."
        with pytest.raises(
            AttributionError,
            match="normative term 'extremist' detected but missing attribution",
        ):
            validate_llm_output(_claims(_claim(text)))

    def test_normative_term_with_attribution_passes(self):
        validate_llm_output(
            _claims(_claim("The group is extremist.", attribution="State Department report"))
        )

    def test_attribution_round_trip(self):
        claim = {"claim": "X", "sources": ["https://a.com"], "attribution": "Y"}
        validate_llm_output(_claims(claim))
        with pytest.raises(SchemaError):
            validate_llm_output(_claims({**claim, "sources": []}))
        normative = {"claim": "Extremist rhetoric is harmful", "sources": ["https://a.com"]}
        with pytest.raises(AttributionError):
            validate_llm_output(_claims(normative))
        validate_llm_output(_claims({**normative, "attribution": "Y"}))

    def test_normative_match_is_case_insensitive_whole_word(self):
        with pytest.raises(AttributionError, match="'Racist'"):
            validate_llm_output(_claims(_claim("Racist remarks were reported.")))
        # "violently" is not the whole word "violent"
        validate_llm_output(_claims(_claim("Prices fluctuated violently.")))

    def test_longest_term_reported(self):
        with pytest.raises(AttributionError, match="'neo-fascist'"):
            validate_llm_output(_claims(_claim("A neo-fascist rally took place.")))

    def test_invalid_timestamp(self):
        with pytest.raises(FormatError, match="must be ISO8601"):
            validate_llm_output(_claims(_claim(timestamp="last Tuesday")))

    def test_first_violation_wins(self):
        payload = _claims({"claim": "a", "sources": []}, _claim(timestamp="bad"))
        with pytest.raises(SchemaError):
            validate_llm_output(payload)

    def test_all_errors_share_base_class(self):
        with pytest.raises(ClaimValidationError):
            validate_llm_output("not json")

    def test_custom_lexicon(self):
        validator = GuardrailsValidator(NormativeLexicon(["corrupt"]))
        with pytest.raises(AttributionError):
            validator(_claims(_claim("The mayor is corrupt.")))
        validator(_claims(_claim("The group is extremist.")))


class TestNormativeLexicon:
    def test_requires_terms(self):
        with pytest.raises(ValueError):
            NormativeLexicon([" ", ""])

    def test_with_terms(self):
        lexicon = NormativeLexicon(["violent"]).with_terms(["Radical"])
        assert lexicon.matches("a radical plan")
        assert lexicon.find("a violent protest") == "violent"
        assert lexicon.find("a calm protest") is None
