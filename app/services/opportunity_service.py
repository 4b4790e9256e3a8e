"""
app/services/opportunity_service.py

Outcome-Driven Innovation opportunity scoring.

Formula
-------
Opportunity = importance + max(importance - satisfaction, 0)

Both inputs are expected on a 0-10 scale, so scores normally fall in 0-20.
No rounding is applied anywhere; every component that recomputes scores
(result upserts, round variations) goes through ``opportunity_score``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

SCORE_FLOOR = 1.0
SCORE_CEILING = 10.0


def opportunity_score(importance: float, satisfaction: float) -> float:
    """
    Return the ODI opportunity score for one outcome.
    """

    return importance + max(importance - satisfaction, 0.0)


@dataclass(frozen=True)
class OutcomeScores:
    """Importance, satisfaction and opportunity for one outcome in one round."""

    importance: float
    satisfaction: float
    opportunity_score: float

    @classmethod
    def from_ratings(cls, importance: float, satisfaction: float) -> "OutcomeScores":
        return cls(
            importance=importance,
            satisfaction=satisfaction,
            opportunity_score=opportunity_score(importance, satisfaction),
        )


@dataclass(frozen=True)
class RoundVariation:
    """Round-over-round shift applied to every baseline rating."""

    importance_delta: float = 0.0
    satisfaction_delta: float = 0.0


def _clamp(value: float) -> float:
    return max(SCORE_FLOOR, min(SCORE_CEILING, value))


def build_round_scores(
    round_code: str,
    baselines: Mapping[str, tuple[float, float]],
    variations: Mapping[str, RoundVariation],
    overrides: Mapping[str, Mapping[str, tuple[float, float]]] | None = None,
) -> dict[str, OutcomeScores]:
    """
    Derive per-outcome scores for one research round.

    When ``overrides`` holds a table for ``round_code`` its ratings are used
    verbatim. Otherwise the round's variation (zero when absent) is added to
    each ``(importance, satisfaction)`` baseline, each rating is clamped to
    [1, 10], and the opportunity score is recomputed.
    """

    round_overrides = (overrides or {}).get(round_code)
    if round_overrides is not None:
        return {
            outcome_slug: OutcomeScores.from_ratings(importance, satisfaction)
            for outcome_slug, (importance, satisfaction) in round_overrides.items()
        }

    variation = variations.get(round_code, RoundVariation())
    scores: dict[str, OutcomeScores] = {}
    for outcome_slug, (importance, satisfaction) in baselines.items():
        scores[outcome_slug] = OutcomeScores.from_ratings(
            _clamp(importance + variation.importance_delta),
            _clamp(satisfaction + variation.satisfaction_delta),
        )
    return scores
