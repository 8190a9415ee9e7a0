"""Deterministic theme-vector utilities for decision briefs."""

from __future__ import annotations

import math
from typing import Iterable

from models import THEME_KEYS, DecisionBrief, ThemeVector

URGENCY_KEYWORDS = ("urgent", "deadline", "asap", "immediately", "launch")
RISK_KEYWORDS = ("risk", "failure", "compliance", "legal", "security", "loss")
OPPORTUNITY_KEYWORDS = ("growth", "expand", "market", "innovation", "upside")
UNCERTAINTY_KEYWORDS = ("unknown", "uncertain", "estimate", "assume", "hypothesis")
RESOURCE_KEYWORDS = ("budget", "cost", "capacity", "headcount", "resource")
STAKEHOLDER_KEYWORDS = ("stakeholder", "team", "customer", "partner", "board")

KEYWORD_BOOST = 0.15


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    value = float(value)
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def zero_theme() -> ThemeVector:
    return ThemeVector(**{key: 0.0 for key in THEME_KEYS})


def normalize_theme_vector(raw: dict) -> ThemeVector:
    """Clamp and round raw per-theme values into a valid ThemeVector."""
    return ThemeVector(**{key: round(clamp(raw.get(key, 0.0)), 3) for key in THEME_KEYS})


def blend_theme_vectors(base: ThemeVector, modifier: ThemeVector, weight: float = 0.5) -> ThemeVector:
    return normalize_theme_vector(
        {
            key: getattr(base, key) * (1 - weight) + getattr(modifier, key) * weight
            for key in THEME_KEYS
        }
    )


def _contains_any(text: str, keywords: Iterable[str]) -> float:
    return KEYWORD_BOOST if any(keyword in text for keyword in keywords) else 0.0


def infer_decision_theme_vector(brief: DecisionBrief) -> ThemeVector:
    """Heuristic theme profile from brief wording and field counts."""
    text = " ".join([brief.decision_statement, brief.context]).lower()

    deadline_boost = 0.2 if brief.deadline else 0.0
    if brief.risk_tolerance == "low":
        risk_tolerance_boost = 0.2
    elif brief.risk_tolerance == "high":
        risk_tolerance_boost = -0.08
    else:
        risk_tolerance_boost = 0.08

    return normalize_theme_vector(
        {
            "risk": 0.35 + _contains_any(text, RISK_KEYWORDS) + risk_tolerance_boost + len(brief.assumptions) * 0.01,
            "urgency": 0.32
            + deadline_boost
            + _contains_any(text, URGENCY_KEYWORDS)
            + min(len(brief.execution_steps), 10) * 0.02,
            "opportunity": 0.42
            + _contains_any(text, OPPORTUNITY_KEYWORDS)
            + min(len(brief.success_criteria), 10) * 0.02,
            "uncertainty": 0.35
            + _contains_any(text, UNCERTAINTY_KEYWORDS)
            + min(len(brief.open_questions), 10) * 0.03,
            "resources": 0.35
            + (0.15 if brief.budget else 0.05)
            + (0.1 if brief.time_limit else 0.04)
            + _contains_any(text, RESOURCE_KEYWORDS),
            "stakeholder_impact": 0.35
            + min(len(brief.stakeholders), 10) * 0.04
            + _contains_any(text, STAKEHOLDER_KEYWORDS),
        }
    )


__all__ = [
    "blend_theme_vectors",
    "clamp",
    "infer_decision_theme_vector",
    "normalize_theme_vector",
    "zero_theme",
]
