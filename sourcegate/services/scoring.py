"""Trust and political-leaning scores for registry sources.

Pure functions over Source fields. No I/O; persisting a recomputed leaning score
is the caller's job (see the compute-leaning route).
"""

from __future__ import annotations

from sourcegate.schemas import Indicators, Source

# Primary links count toward trust up to this many
PRIMARY_LINKS_CAP: int = 6

# Trust weights: primary links 50%, concordance 30%, corrections 20%
WEIGHT_PRIMARY_LINKS: float = 0.5
WEIGHT_CONCORDANCE: float = 0.3
WEIGHT_CORRECTIONS: float = 0.2

# Seven-point category baseline
LEANING_BASELINES: dict[str, float] = {
    "far-left": -0.9,
    "left": -0.7,
    "center-left": -0.5,
    "center": 0.0,
    "center-right": 0.5,
    "right": 0.7,
    "far-right": 0.9,
}

# Five-point external rating scale (keys normalized by normalize_rating_label)
EXTERNAL_RATING_VALUES: dict[str, float] = {
    "left": -0.6,
    "lean left": -0.3,
    "center": 0.0,
    "lean right": 0.3,
    "right": 0.6,
}

# Leaning blend: category baseline 60%, external average 40%
WEIGHT_BASELINE: float = 0.6
WEIGHT_EXTERNAL: float = 0.4


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def compute_trust_score(indicators: Indicators) -> float:
    """Return a trust score in [0, 1] from sourcing indicators."""
    primary = min(max(indicators.primary_links, 0), PRIMARY_LINKS_CAP) / PRIMARY_LINKS_CAP
    score = (
        WEIGHT_PRIMARY_LINKS * primary
        + WEIGHT_CONCORDANCE * indicators.concordance_score
        + WEIGHT_CORRECTIONS * (1.0 - indicators.correction_rate)
    )
    return _clamp(score, 0.0, 1.0)


def normalize_rating_label(label: str) -> str:
    """Lower-case and collapse separators, so "Lean-Left" and "lean left" match."""
    return " ".join(label.strip().lower().replace("-", " ").replace("_", " ").split())


def leaning_baseline(category: str) -> float:
    """Baseline for a political_leaning category; unknown categories are 0.0."""
    return LEANING_BASELINES.get(category.strip().lower(), 0.0)


def compute_leaning_score(source: Source) -> float:
    """Return a leaning score in [-1, 1].

    Without external ratings this is the category baseline. With ratings, the
    baseline is blended with the average rating value (unrecognized labels count
    as 0.0).
    """
    baseline = leaning_baseline(source.political_leaning)
    if not source.external_ratings:
        return baseline
    values = [
        EXTERNAL_RATING_VALUES.get(normalize_rating_label(r.rating), 0.0)
        for r in source.external_ratings
    ]
    average = sum(values) / len(values)
    return _clamp(WEIGHT_BASELINE * baseline + WEIGHT_EXTERNAL * average, -1.0, 1.0)
