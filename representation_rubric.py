"""
Representation rubric for the twelve deep-framework visualizations.

Each framework has a small set of weighted criteria that grade whether a
structurally valid payload actually *means* what the framework says (points
sit in the right quadrant, curves follow canonical shapes, notes match
positions). Criteria read the parsed visualization models from
``visual_contracts`` by attribute.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from config import CoreConfig
from models import RubricCriterionResult, RubricReport
from theme import clamp

logger = logging.getLogger(__name__)

RUBRIC_VERSION = 1
PASS_THRESHOLD = CoreConfig.RUBRIC_PASS_THRESHOLD

CANONICAL_HYPE_PHASES = (
    "Innovation Trigger",
    "Peak of Inflated Expectations",
    "Trough of Disillusionment",
    "Slope of Enlightenment",
    "Plateau of Productivity",
)

CANONICAL_CHASM_SEGMENTS = ("Innovators", "Early Adopters", "Early Majority", "Late Majority", "Laggards")
CANONICAL_CHASM_SHARES = (0.025, 0.135, 0.34, 0.34, 0.16)

CANONICAL_CONSEQUENCE_HORIZONS = ("immediate", "30 days", "90 days", "1 year")

CANONICAL_TKI_MODES = ("Competing", "Collaborating", "Compromising", "Avoiding", "Accommodating")

MANDATORY_MARKERS = ("soc2", "audit", "compliance", "mandatory", "critical", "security", "regulatory", "legal")

INTERNAL_MARKERS = (
    "internal", "team", "support", "process", "capacity", "headcount", "resource", "budget",
    "workflow", "implementation", "system", "training", "quality", "soc2", "audit",
    "compliance", "control",
)

EXTERNAL_MARKERS = (
    "external", "market", "customer", "enterprise", "partner", "competitor", "regulatory",
    "legal", "segment", "adoption", "reputation", "churn", "trust", "demand", "industry",
)

THREAT_QUESTION_PREFIXES = ("what ", "how ", "which ", "who ", "when ", "where ", "is ", "are ", "can ")

# (score, optional issue)
CriterionScore = Tuple[float, Optional[str]]


class RubricScorer(Protocol):
    def __call__(self, framework_id: str, data: Any) -> RubricReport:
        ...


@dataclass(frozen=True)
class Criterion:
    id: str
    label: str
    weight: float
    remediation: str
    evaluate: Callable[[Any], CriterionScore]
    pass_floor: Optional[float] = None


def bounded_score(value: float) -> float:
    return round(clamp(value), 3)


def ratio(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 1.0
    return numerator / denominator


def _lower(value: str) -> str:
    return value.lower().strip()


def _includes_any(source: str, fragments: Sequence[str]) -> bool:
    normalized = _lower(source)
    return any(fragment in normalized for fragment in fragments)


def _marker_alignment(items: Sequence[str], markers: Sequence[str]) -> float:
    if not items:
        return 0.0
    matches = sum(1 for item in items if _includes_any(item, markers))
    return bounded_score(matches / len(items))


def _scored(score: float, failed: bool, issue: str) -> CriterionScore:
    return (score, issue if failed else None)


def evaluate_criteria(framework_id: str, data: Any, criteria: Sequence[Criterion]) -> RubricReport:
    results: List[RubricCriterionResult] = []
    for criterion in criteria:
        raw_score, issue = criterion.evaluate(data)
        score = bounded_score(raw_score)
        floor = criterion.pass_floor if criterion.pass_floor is not None else PASS_THRESHOLD
        results.append(
            RubricCriterionResult(
                id=criterion.id,
                label=criterion.label,
                weight=criterion.weight,
                score=score,
                passed=score >= floor,
                issue=issue,
                remediation=criterion.remediation,
            )
        )

    weight_total = sum(result.weight for result in results)
    weighted = sum(result.score * result.weight for result in results)
    score = bounded_score(weighted / max(weight_total, 1e-9))

    return RubricReport(
        framework_id=framework_id,
        rubric_version=RUBRIC_VERSION,
        score=score,
        pass_threshold=PASS_THRESHOLD,
        passed=score >= PASS_THRESHOLD,
        criteria=results,
        remediation_plan=[result.remediation for result in results if not result.passed],
    )


# Eisenhower Matrix

def _expected_eisenhower_quadrant(urgency: float, importance: float) -> str:
    if urgency >= 0.5 and importance >= 0.5:
        return "do"
    if urgency < 0.5 and importance >= 0.5:
        return "schedule"
    if urgency >= 0.5 and importance < 0.5:
        return "delegate"
    return "eliminate"


def _eisenhower_quadrant_rule(data) -> CriterionScore:
    if not data.points:
        return (0.0, "No points are present in the matrix.")
    matches = sum(
        1 for point in data.points
        if point.quadrant == _expected_eisenhower_quadrant(point.urgency, point.importance)
    )
    score = ratio(matches, len(data.points))
    return _scored(score, score < 1, f"{len(data.points) - matches} points violate matrix threshold rules.")


def _eisenhower_quadrant_counts(data) -> CriterionScore:
    bucket = {"do": 0, "schedule": 0, "delegate": 0, "eliminate": 0}
    for point in data.points:
        bucket[point.quadrant] = bucket.get(point.quadrant, 0) + 1

    mismatches = sum(
        1 for quadrant in data.quadrants
        if bucket.get(quadrant.id, 0) != quadrant.count or quadrant.count != len(quadrant.items)
    )
    score = ratio(len(data.quadrants) - mismatches, len(data.quadrants))
    return _scored(score, mismatches > 0, f"{mismatches} quadrant summaries are out of sync with plotted points.")


def _eisenhower_mandatory(data) -> CriterionScore:
    mandatory = [point for point in data.points if _includes_any(point.label, MANDATORY_MARKERS)]
    if not mandatory:
        return (1.0, None)
    invalid = sum(1 for point in mandatory if point.quadrant in ("delegate", "eliminate"))
    score = 1 - ratio(invalid, len(mandatory))
    return _scored(score, invalid > 0, f"{invalid} mandatory tasks were deprioritized into delegate/eliminate.")


EISENHOWER_CRITERIA = (
    Criterion(
        "quadrant-rule",
        "Quadrant assignment matches urgency/importance thresholds",
        0.4,
        "Recompute each point quadrant strictly from urgency/importance and regenerate counts.",
        _eisenhower_quadrant_rule,
    ),
    Criterion(
        "quadrant-counts",
        "Quadrant rollups are consistent with points",
        0.3,
        "Regenerate quadrant counts/items from point assignments instead of free-form values.",
        _eisenhower_quadrant_counts,
    ),
    Criterion(
        "mandatory-not-delegated",
        "Mandatory/compliance items are not delegated or eliminated",
        0.3,
        "Raise importance of compliance-gate tasks and place them in Do First or Schedule.",
        _eisenhower_mandatory,
    ),
)


# SWOT

def _swot_sections(data) -> List[List[str]]:
    return [data.strengths, data.weaknesses, data.opportunities, data.threats]


def _swot_population(data) -> CriterionScore:
    sections = _swot_sections(data)
    populated = sum(1 for section in sections if section)
    score = ratio(populated, len(sections))
    return _scored(score, populated < len(sections), f"{len(sections) - populated} SWOT sections are empty.")


def _swot_internal_external(data) -> CriterionScore:
    internal = (
        _marker_alignment(data.strengths, INTERNAL_MARKERS) + _marker_alignment(data.weaknesses, INTERNAL_MARKERS)
    ) / 2
    external = (
        _marker_alignment(data.opportunities, EXTERNAL_MARKERS) + _marker_alignment(data.threats, EXTERNAL_MARKERS)
    ) / 2
    score = bounded_score((internal + external) / 2)
    return _scored(score, score < PASS_THRESHOLD, "SWOT items blur internal and external factors.")


def _swot_threat_not_question(data) -> CriterionScore:
    if not data.threats:
        return (0.0, "No threats are listed.")
    question_like = 0
    for threat in data.threats:
        normalized = _lower(threat)
        if normalized.endswith("?") or normalized.startswith(THREAT_QUESTION_PREFIXES):
            question_like += 1
    score = 1 - ratio(question_like, len(data.threats))
    return _scored(score, question_like > 0, f"{question_like} threat entries are phrased as unresolved questions.")


def _swot_dedup(data) -> CriterionScore:
    items = [_lower(item) for section in _swot_sections(data) for item in section]
    if not items:
        return (0.0, None)
    unique = len(set(items))
    score = ratio(unique, len(items))
    return _scored(score, unique < len(items), f"{len(items) - unique} duplicated SWOT items detected.")


SWOT_CRITERIA = (
    Criterion(
        "section-population",
        "All SWOT sections are populated",
        0.2,
        "Populate every SWOT quadrant with at least one concrete, non-placeholder item.",
        _swot_population,
    ),
    Criterion(
        "internal-vs-external",
        "Internal/external semantics align to SWOT quadrants",
        0.4,
        "Move internal items to strengths/weaknesses and external market/regulatory items to opportunities/threats.",
        _swot_internal_external,
    ),
    Criterion(
        "threat-not-question",
        "Threats are expressed as risks, not unresolved questions",
        0.2,
        "Rewrite threat entries as explicit downside risk statements with failure modes.",
        _swot_threat_not_question,
    ),
    Criterion(
        "cross-quadrant-dedup",
        "Items are not duplicated across SWOT quadrants",
        0.2,
        "Deduplicate repeated entries and keep each item in the single best-fitting quadrant.",
        _swot_dedup,
    ),
)


# BCG Matrix

def _bcg_labels(data) -> CriterionScore:
    checks = [
        _includes_any(data.quadrants.top_left, ("star",)),
        _includes_any(data.quadrants.top_right, ("question",)),
        _includes_any(data.quadrants.bottom_left, ("cash",)),
        _includes_any(data.quadrants.bottom_right, ("dog",)),
    ]
    passing = sum(1 for check in checks if check)
    score = ratio(passing, len(checks))
    return _scored(score, passing < len(checks), "One or more BCG quadrant labels are semantically misplaced.")


def _expected_bcg_quadrant(share: float, growth: float) -> str:
    if share < 0.5 and growth >= 0.5:
        return "question_marks"
    if share >= 0.5 and growth >= 0.5:
        return "stars"
    if share < 0.5 and growth < 0.5:
        return "dogs"
    return "cash_cows"


def _bcg_point_rule(data) -> CriterionScore:
    if not data.points:
        return (0.0, "No BCG points were provided.")
    matches = sum(1 for point in data.points if point.quadrant == _expected_bcg_quadrant(point.share, point.growth))
    score = ratio(matches, len(data.points))
    return _scored(score, score < 1, f"{len(data.points) - matches} BCG points have inconsistent quadrant labels.")


def _bcg_spread(data) -> CriterionScore:
    if not data.points:
        return (0.0, None)
    if len({point.quadrant for point in data.points}) >= 2:
        return (1.0, None)
    return (0.5, "All points collapse into one BCG quadrant.")


BCG_CRITERIA = (
    Criterion(
        "quadrant-label-semantics",
        "Quadrant labels match BCG growth-share semantics",
        0.3,
        "Use canonical BCG labels for high-share/low-share and high-growth/low-growth quadrants.",
        _bcg_labels,
    ),
    Criterion(
        "point-quadrant-rule",
        "Point quadrants match share/growth thresholds",
        0.5,
        "Recompute each BCG point quadrant from share and growth with explicit threshold rules.",
        _bcg_point_rule,
    ),
    Criterion(
        "portfolio-spread",
        "Portfolio spread is informative (not all points in one quadrant)",
        0.2,
        "Include at least two distinct BCG quadrants to avoid overfit narratives.",
        _bcg_spread,
        pass_floor=0.5,
    ),
)


# Project Portfolio Matrix

def _portfolio_labels(data) -> CriterionScore:
    checks = [
        _includes_any(data.quadrants.top_left, ("high value", "low risk")),
        _includes_any(data.quadrants.top_right, ("high value", "high risk")),
        _includes_any(data.quadrants.bottom_left, ("low value", "low risk")),
        _includes_any(data.quadrants.bottom_right, ("low value", "high risk")),
    ]
    passing = sum(1 for check in checks if check)
    score = ratio(passing, len(checks))
    return _scored(score, passing < len(checks), "Project portfolio quadrant labels do not match axis meanings.")


def _expected_portfolio_quadrant(value: float, risk: float) -> str:
    if value >= 0.5 and risk >= 0.5:
        return "High Value, High Risk"
    if value < 0.5 and risk >= 0.5:
        return "Low Value, High Risk"
    if value >= 0.5 and risk < 0.5:
        return "High Value, Low Risk"
    return "Low Value, Low Risk"


def _portfolio_point_rule(data) -> CriterionScore:
    if not data.points:
        return (0.0, "No portfolio points are present.")
    matches = sum(
        1 for point in data.points
        if _lower(point.quadrant) == _lower(_expected_portfolio_quadrant(point.value, point.risk))
    )
    score = ratio(matches, len(data.points))
    return _scored(score, score < 1, f"{len(data.points) - matches} points have inconsistent portfolio quadrants.")


def _portfolio_probability(data) -> CriterionScore:
    if not data.points:
        return (0.0, None)
    outliers = sum(1 for point in data.points if point.risk >= 0.75 and point.probability >= 0.8)
    score = 1 - ratio(outliers, len(data.points))
    return _scored(score, outliers > 0, f"{outliers} high-risk projects show implausibly high success probability.")


PORTFOLIO_CRITERIA = (
    Criterion(
        "quadrant-label-semantics",
        "Quadrant labels align to risk/value axis semantics",
        0.35,
        "Correct project portfolio quadrant labels for top-left/top-right/bottom-left/bottom-right positions.",
        _portfolio_labels,
    ),
    Criterion(
        "point-quadrant-rule",
        "Point labels match risk/value thresholds",
        0.4,
        "Recompute each project quadrant label from risk and strategic value thresholds.",
        _portfolio_point_rule,
    ),
    Criterion(
        "probability-risk-coherence",
        "Success probability is coherent with risk levels",
        0.25,
        "Lower success probability for high-risk options or add explicit mitigation assumptions.",
        _portfolio_probability,
    ),
)


# Pareto Principle

def _pareto_descending(data) -> CriterionScore:
    factors = data.factors
    if not factors:
        return (0.0, "No Pareto factors available.")
    violations = sum(
        1 for index in range(1, len(factors))
        if factors[index].contribution > factors[index - 1].contribution + 1e-9
    )
    score = 1 - ratio(violations, max(len(factors) - 1, 1))
    return _scored(score, violations > 0, f"{violations} Pareto bars are out of descending order.")


def _pareto_cumulative(data) -> CriterionScore:
    factors = data.factors
    if not factors:
        return (0.0, None)
    violations = sum(
        1 for index in range(1, len(factors))
        if factors[index].cumulative + 1e-9 < factors[index - 1].cumulative
    )
    tail_score = max(0.0, 1 - abs(1 - factors[-1].cumulative) / 0.15)
    monotonic_score = 1 - ratio(violations, max(len(factors) - 1, 1))
    score = bounded_score((tail_score + monotonic_score) / 2)
    return _scored(
        score,
        score < PASS_THRESHOLD,
        "Pareto cumulative line is not monotonic or does not converge near 100%.",
    )


def _pareto_vital_few(data) -> CriterionScore:
    factors = data.factors
    if not factors:
        return (0.0, None)
    first_hit = next((index for index, factor in enumerate(factors) if factor.cumulative >= data.threshold), None)
    if first_hit is None:
        return (0.4, "Pareto threshold is never reached by cumulative factors.")
    share = (first_hit + 1) / len(factors)
    if share <= 0.4:
        return (1.0, None)
    return (
        max(0.4, 1 - (share - 0.4) / 0.6),
        "Too many factors are needed to reach Pareto threshold; concentration is weak.",
    )


PARETO_CRITERIA = (
    Criterion(
        "descending-contribution",
        "Contributions are sorted descending",
        0.35,
        "Sort Pareto bars by descending contribution before plotting cumulative line.",
        _pareto_descending,
    ),
    Criterion(
        "cumulative-integrity",
        "Cumulative line is monotonic and reaches ~100%",
        0.35,
        "Recompute cumulative contributions from normalized factor weights.",
        _pareto_cumulative,
    ),
    Criterion(
        "vital-few-coverage",
        "80/20 concentration is represented",
        0.3,
        "Rebalance factor contributions so a minority of factors drives the 80% threshold.",
        _pareto_vital_few,
    ),
)


# Hype Cycle

def _hype_phase_order(data) -> CriterionScore:
    if len(data.phases) < 5:
        return (0.0, "Hype curve has fewer than 5 canonical phases.")
    matches = sum(
        1 for index, phase in enumerate(CANONICAL_HYPE_PHASES)
        if _lower(data.phases[index].phase) == _lower(phase)
    )
    score = ratio(matches, len(CANONICAL_HYPE_PHASES))
    return _scored(score, score < 1, "Hype phase naming/order diverges from canonical sequence.")


def _expected_hype_phase(data) -> Optional[str]:
    phases = data.phases
    for index in range(max(len(phases) - 1, 1)):
        if index + 1 < len(phases) and data.current.x <= phases[index + 1].x:
            return phases[index].phase
    return phases[-1].phase if phases else None


def _hype_current_phase(data) -> CriterionScore:
    expected = _expected_hype_phase(data)
    if not expected:
        return (0.0, "Unable to derive expected hype phase from points.")
    if _lower(expected) == _lower(data.current.phase):
        return (1.0, None)
    return (0.45, f'Current phase "{data.current.phase}" does not match expected "{expected}".')


def _hype_point_on_curve(data) -> CriterionScore:
    phases = data.phases
    if len(phases) < 2:
        return (0.0, None)
    expected_y = phases[-1].y
    for left, right in zip(phases, phases[1:]):
        if left.x <= data.current.x <= right.x:
            position = (data.current.x - left.x) / max(right.x - left.x, 1e-9)
            expected_y = left.y + position * (right.y - left.y)
            break
    distance = abs(expected_y - data.current.y)
    return _scored(
        max(0.0, 1 - distance / 0.25),
        distance > 0.25,
        "Current point deviates materially from the rendered hype curve.",
    )


HYPE_CRITERIA = (
    Criterion(
        "canonical-phase-order",
        "Hype phases follow canonical order",
        0.4,
        "Use canonical Gartner-style phase names and sequence for the curve.",
        _hype_phase_order,
    ),
    Criterion(
        "current-phase-consistency",
        "Current point phase matches x-position",
        0.3,
        "Recompute current phase from the current x-position boundary on the hype curve.",
        _hype_current_phase,
    ),
    Criterion(
        "current-point-on-curve",
        "Current point sits on/near rendered hype curve",
        0.3,
        "Project the current point y-value from the curve interpolation at current x.",
        _hype_point_on_curve,
    ),
)


# Chasm / Diffusion

def _chasm_segment_order(data) -> CriterionScore:
    if len(data.segments) < len(CANONICAL_CHASM_SEGMENTS):
        return (0.0, "Chasm model has fewer than 5 adopter segments.")
    matches = sum(
        1 for index, segment in enumerate(CANONICAL_CHASM_SEGMENTS)
        if _lower(data.segments[index].segment) == _lower(segment)
    )
    score = ratio(matches, len(CANONICAL_CHASM_SEGMENTS))
    return _scored(score, score < 1, "Adopter segments are not in canonical order.")


def _chasm_distribution(data) -> CriterionScore:
    values = [max(segment.adoption, 0.0) for segment in data.segments]
    total = sum(values)
    if total <= 1e-9 or len(values) != len(CANONICAL_CHASM_SHARES):
        return (0.0, "Cannot compare adopter distribution to canonical shares.")
    distance = sum(abs(value / total - share) for value, share in zip(values, CANONICAL_CHASM_SHARES))
    score = max(0.0, 1 - distance / 1.2)
    return _scored(
        score,
        score < PASS_THRESHOLD,
        "Segment distribution diverges from canonical diffusion proportions.",
    )


def _chasm_boundary(data) -> CriterionScore:
    if _lower(data.chasm_after) == "early adopters":
        return (1.0, None)
    return (0.0, f'chasmAfter is set to "{data.chasm_after}".')


CHASM_CRITERIA = (
    Criterion(
        "segment-order",
        "Diffusion segments follow canonical order",
        0.3,
        "Use canonical segment ordering: Innovators, Early Adopters, Early Majority, Late Majority, Laggards.",
        _chasm_segment_order,
    ),
    Criterion(
        "distribution-similarity",
        "Segment shares approximate canonical diffusion distribution",
        0.45,
        "Normalize adopter segment values to canonical diffusion shares (2.5/13.5/34/34/16).",
        _chasm_distribution,
    ),
    Criterion(
        "chasm-boundary",
        "Chasm boundary is placed after Early Adopters",
        0.25,
        "Set the chasm boundary between Early Adopters and Early Majority.",
        _chasm_boundary,
    ),
)


# Monte Carlo Simulation

def _near(left: float, right: float, tolerance: float = 0.05) -> bool:
    return abs(left - right) <= tolerance


def _monte_carlo_contiguity(data) -> CriterionScore:
    bins = data.bins
    if len(bins) < 2:
        return (0.0, "Insufficient bins for Monte Carlo histogram.")
    violations = 0
    if not _near(bins[0].bin_start, 0.0):
        violations += 1
    if not _near(bins[-1].bin_end, 1.0):
        violations += 1
    violations += sum(1 for left, right in zip(bins, bins[1:]) if not _near(left.bin_end, right.bin_start))
    score = max(0.0, 1 - violations / (len(bins) + 1))
    return _scored(score, violations > 0, "Monte Carlo bins are not contiguous across the full range.")


def _monte_carlo_percentiles(data) -> CriterionScore:
    if data.p10 <= data.p50 <= data.p90:
        return (1.0, None)
    return (0.0, "Monte Carlo percentiles are not properly ordered.")


def _monte_carlo_counts(data) -> CriterionScore:
    total = sum(item.count for item in data.bins)
    if total == data.total:
        return (1.0, None)
    score = max(0.0, 1 - abs(total - data.total) / max(data.total, 1))
    return (score, f"Bin counts sum to {total}, expected {data.total}.")


def _monte_carlo_metadata(data) -> CriterionScore:
    meta = data.metadata
    if meta is not None and meta.trials and meta.distribution and meta.correlation_mode:
        return (1.0, None)
    return (0.4, "Monte Carlo metadata is incomplete.")


MONTE_CARLO_CRITERIA = (
    Criterion(
        "bin-contiguity",
        "Histogram bins are contiguous over [0,1]",
        0.3,
        "Rebuild bins so each binEnd matches the next binStart and the range spans 0% to 100%.",
        _monte_carlo_contiguity,
    ),
    Criterion(
        "percentile-order",
        "Percentiles are ordered P10 <= P50 <= P90",
        0.3,
        "Recompute percentile markers from sorted simulation outcomes.",
        _monte_carlo_percentiles,
    ),
    Criterion(
        "count-total-consistency",
        "Bin counts sum to total simulations",
        0.25,
        "Normalize/round bin counts while preserving exact total simulation count.",
        _monte_carlo_counts,
    ),
    Criterion(
        "model-metadata",
        "Simulation metadata is present for traceability",
        0.15,
        "Include trial count, distribution assumptions, and correlation mode in metadata.",
        _monte_carlo_metadata,
    ),
)


# Consequences Model

def _third_order(horizon) -> float:
    return horizon.third_order if horizon.third_order is not None else horizon.indirect * 0.65


def _consequence_horizon_order(data) -> CriterionScore:
    labels = [_lower(horizon.horizon) for horizon in data.horizons]
    matches = sum(
        1 for index, label in enumerate(CANONICAL_CONSEQUENCE_HORIZONS)
        if index < len(labels) and labels[index] == label
    )
    score = ratio(matches, len(CANONICAL_CONSEQUENCE_HORIZONS))
    return _scored(score, score < 1, "Consequence horizons are out of canonical order.")


def _consequence_order_pattern(data) -> CriterionScore:
    horizons = data.horizons
    if len(horizons) < 2:
        return (0.0, None)
    violations = 0
    for prev, current in zip(horizons, horizons[1:]):
        if current.direct > prev.direct + 1e-9:
            violations += 1
        if current.indirect + 1e-9 < prev.indirect:
            violations += 1
        if _third_order(current) + 1e-9 < _third_order(prev):
            violations += 1
    checks = max(len(horizons) - 1, 1) * 3
    return _scored(
        max(0.0, 1 - violations / checks),
        violations > 0,
        "Consequence order curves do not reflect first/second/third-order dynamics.",
    )


def _consequence_third_order_presence(data) -> CriterionScore:
    with_third = sum(1 for horizon in data.horizons if horizon.third_order is not None)
    score = ratio(with_third, len(data.horizons))
    return _scored(
        score,
        with_third < len(data.horizons),
        f"{len(data.horizons) - with_third} horizons are missing third-order impact values.",
    )


def _consequence_net(data) -> CriterionScore:
    if not data.horizons:
        return (0.0, None)
    total_delta = 0.0
    for horizon in data.horizons:
        third = horizon.third_order or 0.0
        expected = horizon.direct - horizon.indirect - third * 0.5
        total_delta += abs(expected - horizon.net)
    score = max(0.0, 1 - (total_delta / len(data.horizons)) / 0.35)
    return _scored(
        score,
        score < PASS_THRESHOLD,
        "Net consequence values are not consistent with order-effect components.",
    )


CONSEQUENCES_CRITERIA = (
    Criterion(
        "horizon-order",
        "Consequence horizons follow expected temporal sequence",
        0.2,
        "Use horizons in the order Immediate, 30 Days, 90 Days, 1 Year.",
        _consequence_horizon_order,
    ),
    Criterion(
        "order-pattern",
        "First-order effects decay while higher-order effects increase",
        0.35,
        "Rebalance horizon curves so direct impact tapers while second/third-order effects compound over time.",
        _consequence_order_pattern,
    ),
    Criterion(
        "third-order-presence",
        "Third-order consequences are explicitly represented",
        0.25,
        "Add third-order impact values to each horizon and include them in net impact.",
        _consequence_third_order_presence,
    ),
    Criterion(
        "net-consistency",
        "Net impact aligns with first/second/third-order values",
        0.2,
        "Recompute net impact consistently from direct, indirect, and third-order terms.",
        _consequence_net,
    ),
)


# Crossroads Model

def _crossroads_option_count(data) -> CriterionScore:
    if len(data.options) >= 2:
        return (1.0, None)
    return (0.0, "Crossroads model has fewer than two options.")


def _crossroads_reversibility(data) -> CriterionScore:
    options = data.options
    if len(options) < 2:
        return (1.0, None)
    by_reversibility = sorted(options, key=lambda option: option.reversibility)
    by_size = sorted(options, key=lambda option: option.size)
    matches = sum(1 for left, right in zip(by_reversibility, by_size) if left.option == right.option)
    score = ratio(matches, len(options))
    return _scored(
        score,
        score < PASS_THRESHOLD,
        "Bubble size does not consistently reflect reversibility ranking.",
    )


def _crossroads_note_matches(option) -> bool:
    if option.feasibility >= 0.6 and option.desirability >= 0.6:
        return _includes_any(option.note, ("advance", "go", "gate"))
    if option.feasibility < 0.45:
        return _includes_any(option.note, ("proof", "feasibility", "experiment", "validate"))
    return _includes_any(option.note, ("viable", "controlled", "pilot", "experiment"))


def _crossroads_notes(data) -> CriterionScore:
    if not data.options:
        return (0.0, None)
    mismatches = sum(1 for option in data.options if not _crossroads_note_matches(option))
    score = 1 - ratio(mismatches, len(data.options))
    return _scored(score, mismatches > 0, f"{mismatches} option notes conflict with their plotted positions.")


CROSSROADS_CRITERIA = (
    Criterion(
        "option-count",
        "At least two options are represented",
        0.25,
        "Include multiple viable branches so the crossroads model can compare tradeoffs.",
        _crossroads_option_count,
    ),
    Criterion(
        "reversibility-bubble",
        "Bubble size tracks reversibility",
        0.35,
        "Scale option bubble size directly from reversibility to communicate regret exposure.",
        _crossroads_reversibility,
    ),
    Criterion(
        "note-alignment",
        "Option notes align with feasibility/desirability position",
        0.4,
        "Rewrite option notes to match each option's feasibility/desirability profile.",
        _crossroads_notes,
    ),
)


# Conflict Resolution (Thomas-Kilmann)

TKI_REGIONS: Dict[str, Callable[[float, float], bool]] = {
    "Competing": lambda a, c: a >= 0.6 and c < 0.4,
    "Collaborating": lambda a, c: a >= 0.6 and c >= 0.6,
    "Avoiding": lambda a, c: a < 0.4 and c < 0.4,
    "Accommodating": lambda a, c: a < 0.4 and c >= 0.6,
}


def _conflict_mode_set(data) -> CriterionScore:
    present = {mode.mode for mode in data.modes}
    matches = sum(1 for mode in CANONICAL_TKI_MODES if mode in present)
    score = ratio(matches, len(CANONICAL_TKI_MODES))
    return _scored(score, score < 1, "Conflict model is missing one or more canonical TKI modes.")


def _conflict_recommended(data) -> CriterionScore:
    ranked = sorted(data.modes, key=lambda mode: mode.suitability, reverse=True)
    top_mode = ranked[0].mode if ranked else None
    if top_mode and _lower(top_mode) == _lower(data.recommended_mode):
        return (1.0, None)
    return (
        0.0,
        f"recommendedMode ({data.recommended_mode}) does not match highest-suitability mode ({top_mode or 'n/a'}).",
    )


def _conflict_coordinates(data) -> CriterionScore:
    mismatches = 0
    for mode in data.modes:
        in_region = TKI_REGIONS.get(mode.mode)
        if in_region is not None and not in_region(mode.assertiveness, mode.cooperativeness):
            mismatches += 1
    score = 1 - ratio(mismatches, max(len(data.modes), 1))
    return _scored(score, mismatches > 0, f"{mismatches} TKI modes are plotted in non-canonical regions.")


CONFLICT_CRITERIA = (
    Criterion(
        "mode-set",
        "All five TKI modes are present exactly once",
        0.35,
        "Use the complete Thomas-Kilmann mode set with one entry per mode.",
        _conflict_mode_set,
    ),
    Criterion(
        "recommended-highest-suitability",
        "Recommended mode has highest suitability",
        0.35,
        "Set recommendedMode to the mode with the top suitability score.",
        _conflict_recommended,
    ),
    Criterion(
        "coordinate-semantics",
        "Mode coordinates align with TKI assertive/cooperative semantics",
        0.3,
        "Place each TKI mode in its canonical assertiveness/cooperativeness region.",
        _conflict_coordinates,
    ),
)


# Double-Loop Learning

def _double_loop_completeness(data) -> CriterionScore:
    if not data.loops:
        return (0.0, "No double-loop entries were generated.")
    complete = sum(
        1 for loop in data.loops
        if loop.behavior.strip() and loop.single_loop_fix.strip() and loop.root_assumption.strip()
    )
    score = ratio(complete, len(data.loops))
    return _scored(score, score < 1, f"{len(data.loops) - complete} loops are missing required fields.")


def _is_testable(assumption: str) -> bool:
    text = _lower(assumption)
    return ("if" in text and "then" in text) or _includes_any(text, ("measure", "within", "threshold"))


def _double_loop_testability(data) -> CriterionScore:
    if not data.loops:
        return (0.0, None)
    testable = sum(1 for loop in data.loops if _is_testable(loop.root_assumption))
    score = ratio(testable, len(data.loops))
    return _scored(
        score,
        score < PASS_THRESHOLD,
        "Root assumptions are not consistently framed as testable hypotheses.",
    )


def _double_loop_distinct(data) -> CriterionScore:
    if not data.loops:
        return (0.0, None)
    distinct = sum(1 for loop in data.loops if _lower(loop.single_loop_fix) != _lower(loop.behavior))
    score = ratio(distinct, len(data.loops))
    return _scored(score, score < 1, f"{len(data.loops) - distinct} single-loop fixes repeat the behavior verbatim.")


DOUBLE_LOOP_CRITERIA = (
    Criterion(
        "loop-completeness",
        "Each loop includes behavior, single-loop fix, and root assumption",
        0.3,
        "Ensure every loop explicitly states behavior, operational fix, and governing assumption.",
        _double_loop_completeness,
    ),
    Criterion(
        "assumption-testability",
        "Root assumptions are testable",
        0.45,
        "Rewrite root assumptions as testable hypotheses (if/then, measurable horizon).",
        _double_loop_testability,
    ),
    Criterion(
        "single-loop-distinct",
        "Single-loop fixes are distinct from behavior statements",
        0.25,
        "Make single-loop fixes concrete process changes, not verbatim restatements of behavior.",
        _double_loop_distinct,
    ),
)


RUBRIC_BY_FRAMEWORK: Dict[str, Tuple[Criterion, ...]] = {
    "eisenhower_matrix": EISENHOWER_CRITERIA,
    "swot_analysis": SWOT_CRITERIA,
    "bcg_matrix": BCG_CRITERIA,
    "project_portfolio_matrix": PORTFOLIO_CRITERIA,
    "pareto_principle": PARETO_CRITERIA,
    "hype_cycle": HYPE_CRITERIA,
    "chasm_diffusion_model": CHASM_CRITERIA,
    "monte_carlo_simulation": MONTE_CARLO_CRITERIA,
    "consequences_model": CONSEQUENCES_CRITERIA,
    "crossroads_model": CROSSROADS_CRITERIA,
    "conflict_resolution_model": CONFLICT_CRITERIA,
    "double_loop_learning": DOUBLE_LOOP_CRITERIA,
}


def score_top12_representation(framework_id: str, data: Any) -> RubricReport:
    """
    Grade a parsed deep-framework visualization against its rubric.

    Args:
        framework_id: One of the twelve deep framework ids
        data: The framework's parsed visualization data model

    Returns:
        RubricReport; unsupported ids score 0.0 with a single remediation
    """
    criteria = RUBRIC_BY_FRAMEWORK.get(framework_id)
    if criteria is None:
        logger.warning(f"No representation rubric for framework {framework_id}")
        return RubricReport(
            framework_id=framework_id,
            rubric_version=RUBRIC_VERSION,
            score=0.0,
            pass_threshold=PASS_THRESHOLD,
            passed=False,
            criteria=[],
            remediation_plan=["Unsupported framework for top-12 rubric scoring."],
        )

    report = evaluate_criteria(framework_id, data, criteria)
    logger.debug(f"Rubric {framework_id}: score={report.score} passed={report.passed}")
    return report


__all__ = [
    "PASS_THRESHOLD",
    "RUBRIC_BY_FRAMEWORK",
    "RUBRIC_VERSION",
    "Criterion",
    "RubricScorer",
    "evaluate_criteria",
    "score_top12_representation",
]
