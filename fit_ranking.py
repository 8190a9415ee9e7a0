"""Rank frameworks by how well their theme weights fit a decision."""

from __future__ import annotations

from typing import Callable, List, Sequence

from models import THEME_KEYS, DecisionBrief, FrameworkDefinition, RankedFrameworkFit, ThemeVector
from theme import clamp, infer_decision_theme_vector

MIN_WEIGHT_TOTAL = 1e-6


def compute_theme_fit_score(theme_weights: ThemeVector, decision_themes: ThemeVector) -> float:
    """Weighted average of the decision's themes; all-zero weights score 0.0."""
    weighted = 0.0
    weights = 0.0
    for key in THEME_KEYS:
        weight = getattr(theme_weights, key)
        weighted += weight * getattr(decision_themes, key)
        weights += weight
    return clamp(weighted / max(weights, MIN_WEIGHT_TOTAL))


def rank_framework_fits(
    decision_themes: ThemeVector,
    frameworks: Sequence[FrameworkDefinition],
) -> List[RankedFrameworkFit]:
    scored = [
        (index, framework, compute_theme_fit_score(framework.theme_weights, decision_themes))
        for index, framework in enumerate(frameworks)
    ]
    # Ties keep catalogue order
    scored.sort(key=lambda item: (-item[2], item[0]))

    return [
        RankedFrameworkFit(
            rank=position,
            id=framework.id,
            name=framework.name,
            deep_supported=framework.deep_supported,
            fit_score=score,
        )
        for position, (_, framework, score) in enumerate(scored, start=1)
    ]


def rank_framework_fits_for_brief(
    brief: DecisionBrief,
    frameworks: Sequence[FrameworkDefinition],
    infer_themes: Callable[[DecisionBrief], ThemeVector] = infer_decision_theme_vector,
) -> List[RankedFrameworkFit]:
    return rank_framework_fits(infer_themes(brief), frameworks)


__all__ = ["compute_theme_fit_score", "rank_framework_fits", "rank_framework_fits_for_brief"]
