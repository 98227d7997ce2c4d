"""SourceGate: evidence-source policy engine and generative-output guardrails."""

__version__ = "0.1.0"
