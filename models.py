from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


THEME_KEYS = ("risk", "urgency", "opportunity", "uncertainty", "resources", "stakeholder_impact")

VisualizationType = Literal[
    "quadrant",
    "swot",
    "scatter",
    "line",
    "bar",
    "histogram",
    "timeline",
    "tree",
    "network",
    "radar",
    "list",
]


class WireModel(BaseModel):
    """Base for records exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ThemeVector(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    risk: float = Field(ge=0.0, le=1.0)
    urgency: float = Field(ge=0.0, le=1.0)
    opportunity: float = Field(ge=0.0, le=1.0)
    uncertainty: float = Field(ge=0.0, le=1.0)
    resources: float = Field(ge=0.0, le=1.0)
    stakeholder_impact: float = Field(ge=0.0, le=1.0)

    def as_list(self) -> List[float]:
        return [getattr(self, key) for key in THEME_KEYS]


class FrameworkDefinition(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    category: str
    maturity: Literal["core", "exploratory"]
    description: str
    theme_weights: ThemeVector
    deep_supported: bool = False
    prompt_template: str = ""


class RankedFrameworkFit(WireModel):
    rank: int = Field(ge=1)
    id: str
    name: str
    deep_supported: bool
    fit_score: float = Field(ge=0.0, le=1.0)


class DecisionBrief(WireModel):
    """The subset of a decision brief that theme inference reads."""

    title: str = ""
    decision_statement: str
    context: str = ""
    alternatives: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    deadline: Optional[str] = None
    stakeholders: List[str] = Field(default_factory=list)
    success_criteria: List[str] = Field(default_factory=list)
    risk_tolerance: Literal["low", "medium", "high"] = "medium"
    budget: Optional[str] = None
    time_limit: Optional[str] = None
    assumptions: List[str] = Field(default_factory=list)
    open_questions: List[str] = Field(default_factory=list)
    execution_steps: List[str] = Field(default_factory=list)


class VisualizationSpec(WireModel):
    # Declared type stays a plain string so a wrong type is reported, not rejected
    type: str
    title: str
    subtitle: Optional[str] = None
    x_label: Optional[str] = None
    y_label: Optional[str] = None
    # Kept unconverted so "2" or 2.0 is reported as a version mismatch
    viz_schema_version: Any = None
    data: Any = None


class RubricCriterionResult(WireModel):
    id: str
    label: str
    weight: float
    score: float = Field(ge=0.0, le=1.0)
    passed: bool
    issue: Optional[str] = None
    remediation: str


class RubricReport(WireModel):
    framework_id: str
    rubric_version: int
    score: float = Field(ge=0.0, le=1.0)
    pass_threshold: float = Field(ge=0.0, le=1.0)
    passed: bool
    criteria: List[RubricCriterionResult] = Field(default_factory=list)
    remediation_plan: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_passed_flag(self) -> "RubricReport":
        if self.passed != (self.score >= self.pass_threshold):
            raise ValueError(
                f"passed={self.passed} disagrees with score {self.score} and threshold {self.pass_threshold}"
            )
        return self

    def failing_criteria(self) -> List[RubricCriterionResult]:
        return [criterion for criterion in self.criteria if not criterion.passed]


class VizValidationResult(WireModel):
    ok: bool
    canonical: bool
    issues: List[str] = Field(default_factory=list)
    rubric: Optional[RubricReport] = None

    @field_validator("issues")
    def validate_issue_text(cls, v: List[str]) -> List[str]:
        for issue in v:
            if not issue or not issue.strip():
                raise ValueError("Validation issues must be non-empty strings")
        return v
