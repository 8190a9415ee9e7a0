"""
Visualization contracts for the twelve deep frameworks.

Each deep framework has one exact payload shape. ``validate_framework_viz``
checks the declared chart type, the schema version and the ``data`` shape,
then hands structurally valid data to the representation rubric. Every
problem found is collected as a human-readable issue string; nothing here
raises for bad payloads.
"""

from __future__ import annotations

import logging
import math
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, Strict, StrictInt, ValidationError
from pydantic.alias_generators import to_camel

from config import CoreConfig
from framework_registry import TOP_12_DEEP_FRAMEWORKS
from models import RubricReport, VisualizationSpec, VizValidationResult
from representation_rubric import RubricScorer, score_top12_representation

logger = logging.getLogger(__name__)

CURRENT_VIZ_SCHEMA_VERSION = CoreConfig.VIZ_SCHEMA_VERSION

Number = Annotated[float, Strict()]
Unit = Annotated[float, Strict(), Field(ge=0.0, le=1.0)]
Text = Annotated[str, Strict(), Field(min_length=1)]
Positive = Annotated[float, Strict(), Field(gt=0)]


class VizData(BaseModel):
    """Top-level payload: unknown keys are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, extra="forbid")


class VizItem(BaseModel):
    """Row inside a payload list: unknown keys are dropped."""

    model_config = ConfigDict(alias_generator=to_camel, extra="ignore")


EisenhowerQuadrantId = Literal["do", "schedule", "delegate", "eliminate"]


class EisenhowerQuadrant(VizItem):
    id: EisenhowerQuadrantId
    label: Text
    count: StrictInt = Field(ge=0)
    items: List[Text]


class EisenhowerPoint(VizItem):
    label: Text
    urgency: Unit
    importance: Unit
    quadrant: EisenhowerQuadrantId


class EisenhowerVizData(VizData):
    kind: Literal["eisenhower_matrix"]
    quadrants: List[EisenhowerQuadrant] = Field(min_length=4, max_length=4)
    points: List[EisenhowerPoint]


class SwotVizData(VizData):
    kind: Literal["swot_analysis"]
    strengths: List[Text] = Field(min_length=1)
    weaknesses: List[Text] = Field(min_length=1)
    opportunities: List[Text] = Field(min_length=1)
    threats: List[Text] = Field(min_length=1)


class QuadrantLabels(VizData):
    top_left: Text
    top_right: Text
    bottom_left: Text
    bottom_right: Text


class BcgPoint(VizItem):
    id: Text
    label: Text
    share: Unit
    growth: Unit
    size: Positive
    quadrant: Literal["question_marks", "stars", "dogs", "cash_cows"]


class BcgVizData(VizData):
    kind: Literal["bcg_matrix"]
    quadrants: QuadrantLabels
    points: List[BcgPoint]


class PortfolioPoint(VizItem):
    id: Text
    label: Text
    risk: Unit
    value: Unit
    probability: Unit
    size: Positive
    quadrant: Text


class ProjectPortfolioVizData(VizData):
    kind: Literal["project_portfolio_matrix"]
    quadrants: QuadrantLabels
    points: List[PortfolioPoint]


class ParetoFactor(VizItem):
    label: Text
    contribution: Unit
    cumulative: Unit
    detail: Optional[Text] = None


class ParetoVizData(VizData):
    kind: Literal["pareto_principle"]
    factors: List[ParetoFactor] = Field(min_length=1)
    threshold: Unit


class HypePhase(VizItem):
    phase: Text
    x: Unit
    y: Unit


class HypeCurrent(VizData):
    label: Text
    x: Unit
    y: Unit
    phase: Text


class HypeCycleVizData(VizData):
    kind: Literal["hype_cycle"]
    phases: List[HypePhase] = Field(min_length=5)
    current: HypeCurrent


class ChasmSegment(VizItem):
    segment: Text
    adoption: Unit


class ChasmVizData(VizData):
    kind: Literal["chasm_diffusion_model"]
    segments: List[ChasmSegment] = Field(min_length=5)
    chasm_after: Text
    gap: Unit


class MonteCarloBin(VizItem):
    bin_start: Unit
    bin_end: Unit
    count: StrictInt = Field(ge=0)


class MonteCarloMetadata(VizItem):
    trials: StrictInt = Field(gt=0)
    distribution: Text
    correlation_mode: Text


class MonteCarloVizData(VizData):
    kind: Literal["monte_carlo_simulation"]
    bins: List[MonteCarloBin] = Field(min_length=6)
    total: StrictInt = Field(gt=0)
    p10: Unit
    p50: Unit
    p90: Unit
    metadata: Optional[MonteCarloMetadata] = None


class ConsequenceHorizon(VizItem):
    horizon: Text
    direct: Unit
    indirect: Unit
    third_order: Optional[Number] = Field(default=None, ge=0.0, le=1.0)
    net: Number = Field(ge=-1.0, le=1.0)


class ConsequenceLink(VizItem):
    # "from" is reserved in Python
    from_: Text = Field(alias="from")
    to: Text
    weight: Unit


class ConsequencesVizData(VizData):
    kind: Literal["consequences_model"]
    horizons: List[ConsequenceHorizon] = Field(min_length=4)
    links: List[ConsequenceLink]


class CrossroadsOption(VizItem):
    option: Text
    feasibility: Unit
    desirability: Unit
    reversibility: Unit
    size: Positive
    note: Text


class CrossroadsVizData(VizData):
    kind: Literal["crossroads_model"]
    options: List[CrossroadsOption] = Field(min_length=2)


class ConflictMode(VizItem):
    mode: Text
    assertiveness: Unit
    cooperativeness: Unit
    suitability: Unit


class ConflictResolutionVizData(VizData):
    kind: Literal["conflict_resolution_model"]
    modes: List[ConflictMode] = Field(min_length=5, max_length=5)
    recommended_mode: Text


class DoubleLoop(VizItem):
    behavior: Text
    outcome: Text
    single_loop_fix: Text
    root_assumption: Text
    leverage: Unit


class DoubleLoopVizData(VizData):
    kind: Literal["double_loop_learning"]
    loops: List[DoubleLoop] = Field(min_length=1)


TOP12_VIZ_TYPE_BY_FRAMEWORK: Dict[str, str] = {
    "eisenhower_matrix": "quadrant",
    "swot_analysis": "swot",
    "bcg_matrix": "scatter",
    "project_portfolio_matrix": "scatter",
    "pareto_principle": "bar",
    "hype_cycle": "line",
    "chasm_diffusion_model": "bar",
    "monte_carlo_simulation": "histogram",
    "consequences_model": "timeline",
    "crossroads_model": "scatter",
    "conflict_resolution_model": "scatter",
    "double_loop_learning": "list",
}

TOP12_DATA_MODEL_BY_FRAMEWORK: Dict[str, Type[VizData]] = {
    "eisenhower_matrix": EisenhowerVizData,
    "swot_analysis": SwotVizData,
    "bcg_matrix": BcgVizData,
    "project_portfolio_matrix": ProjectPortfolioVizData,
    "pareto_principle": ParetoVizData,
    "hype_cycle": HypeCycleVizData,
    "chasm_diffusion_model": ChasmVizData,
    "monte_carlo_simulation": MonteCarloVizData,
    "consequences_model": ConsequencesVizData,
    "crossroads_model": CrossroadsVizData,
    "conflict_resolution_model": ConflictResolutionVizData,
    "double_loop_learning": DoubleLoopVizData,
}

if set(TOP12_VIZ_TYPE_BY_FRAMEWORK) != TOP_12_DEEP_FRAMEWORKS or set(TOP12_DATA_MODEL_BY_FRAMEWORK) != TOP_12_DEEP_FRAMEWORKS:
    raise RuntimeError("Visualization contracts must cover exactly the deep frameworks")


def is_top12_framework_id(framework_id: str) -> bool:
    return framework_id in TOP_12_DEEP_FRAMEWORKS


def format_validation_errors(exc: ValidationError) -> List[str]:
    """Flatten a pydantic ValidationError into 'path: message' strings."""
    issues = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        issues.append(f"{location}: {message}" if location else message)
    return issues


def _percent(value: float) -> int:
    return int(math.floor(value * 100 + 0.5))


def rubric_issues(framework_id: str, rubric: RubricReport) -> List[str]:
    issues = [
        f"[{criterion.id}] {criterion.issue}"
        for criterion in rubric.failing_criteria()
        if criterion.issue
    ]
    if not rubric.passed:
        issues.append(
            f"Rubric score {_percent(rubric.score)}% is below threshold "
            f"{_percent(rubric.pass_threshold)}% for {framework_id}."
        )
    return issues


def validate_framework_viz(
    framework_id: str,
    viz: Union[VisualizationSpec, Mapping[str, Any]],
    scorer: RubricScorer = score_top12_representation,
) -> VizValidationResult:
    """
    Validate a generated visualization for a framework.

    Args:
        framework_id: Framework the visualization was generated for
        viz: VisualizationSpec or its camelCase JSON form
        scorer: Rubric scorer called once the data is structurally valid

    Returns:
        VizValidationResult; non-deep frameworks pass as non-canonical
    """
    if not is_top12_framework_id(framework_id):
        return VizValidationResult(ok=True, canonical=False, issues=[])

    if not isinstance(viz, VisualizationSpec):
        try:
            viz = VisualizationSpec.model_validate(viz)
        except ValidationError as e:
            issues = format_validation_errors(e)
            logger.info(f"Visualization envelope for {framework_id} is malformed: {len(issues)} issues")
            return VizValidationResult(ok=False, canonical=True, issues=issues)

    issues: List[str] = []
    expected_type = TOP12_VIZ_TYPE_BY_FRAMEWORK[framework_id]
    if viz.type != expected_type:
        issues.append(f'Expected viz type "{expected_type}" for {framework_id}, received "{viz.type}".')

    version = viz.viz_schema_version
    if type(version) is not int or version != CURRENT_VIZ_SCHEMA_VERSION:
        issues.append(f"Expected vizSchemaVersion={CURRENT_VIZ_SCHEMA_VERSION} for {framework_id}.")

    rubric: Optional[RubricReport] = None
    try:
        data = TOP12_DATA_MODEL_BY_FRAMEWORK[framework_id].model_validate(viz.data)
    except ValidationError as e:
        issues.extend(format_validation_errors(e))
    else:
        rubric = scorer(framework_id, data)
        issues.extend(rubric_issues(framework_id, rubric))

    if issues:
        logger.info(f"Visualization for {framework_id} failed with {len(issues)} issues")
    return VizValidationResult(ok=not issues, canonical=True, issues=issues, rubric=rubric)


__all__ = [
    "CURRENT_VIZ_SCHEMA_VERSION",
    "TOP12_DATA_MODEL_BY_FRAMEWORK",
    "TOP12_VIZ_TYPE_BY_FRAMEWORK",
    "format_validation_errors",
    "is_top12_framework_id",
    "rubric_issues",
    "validate_framework_viz",
]
