"""Scoring, evidence policy, proposals and the query orchestrator."""
