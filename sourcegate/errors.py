"""Error taxonomy shared by the registry, guardrails, orchestrator and API layers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sourcegate.services.query_orchestrator import QueryRun


class SourceGateError(Exception):
    """Base class for all SourceGate errors."""


# ── Configuration / storage ─────────────────────────────────────────────


class ConfigurationError(SourceGateError):
    """Policy or registry document missing or unreadable.

    Non-fatal on the generation path (the evidence prefix is skipped);
    a server error on the HTTP path.
    """


class RegistryWriteError(SourceGateError):
    """A registry, policy or proposals document could not be written."""


class RegistryConflictError(RegistryWriteError):
    """compare_and_swap saw a document version other than the expected one."""


# ── Guardrails validation ───────────────────────────────────────────────


class ClaimValidationError(SourceGateError):
    """Generated output failed guardrails validation.

    ``claim_text`` is the offending claim's text (empty for whole-payload failures).
    """

    def __init__(self, message: str, claim_text: str = "") -> None:
        super().__init__(message)
        self.claim_text = claim_text


class ParseError(ClaimValidationError):
    """No accepted claim shape could be parsed from the payload."""


class SchemaError(ClaimValidationError):
    """Payload parsed but violates the claim schema (no claims, empty text or sources)."""


class SourceURLError(ClaimValidationError):
    """A claim source is not an http(s) URL."""


class AttributionError(ClaimValidationError):
    """Normative language without attribution."""


class FormatError(ClaimValidationError):
    """A claim timestamp is not strict ISO-8601."""


# ── Generation ──────────────────────────────────────────────────────────


class TransportError(SourceGateError):
    """The generation capability could not be reached or returned an error. Retryable."""


class RetryExhaustedError(SourceGateError):
    """Every attempt failed; wraps the last transport or validation cause."""

    def __init__(
        self,
        attempts: int,
        last_error: Exception | None,
        run: QueryRun | None = None,
    ) -> None:
        cause = last_error if last_error is not None else "unknown validation failure"
        super().__init__(f"failed after {attempts} attempts: {cause}")
        self.attempts = attempts
        self.last_error = last_error
        self.run = run


# ── HTTP boundary ───────────────────────────────────────────────────────


class NotFoundError(SourceGateError):
    """Unknown source id or no matching proposal."""


class AuthorizationError(SourceGateError):
    """Reviewer identity missing on a reviewer-gated action."""
