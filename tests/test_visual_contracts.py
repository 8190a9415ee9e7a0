import copy

from models import RubricReport, VisualizationSpec
from visual_contracts import (
    CURRENT_VIZ_SCHEMA_VERSION,
    TOP12_VIZ_TYPE_BY_FRAMEWORK,
    EisenhowerVizData,
    is_top12_framework_id,
    validate_framework_viz,
)


def _valid_eisenhower_viz():
    return {
        "type": "quadrant",
        "title": "Launch priorities",
        "vizSchemaVersion": 2,
        "data": {
            "kind": "eisenhower_matrix",
            "quadrants": [
                {"id": "do", "label": "Do First", "count": 1, "items": ["Fix SOC2 audit findings"]},
                {"id": "schedule", "label": "Schedule", "count": 1, "items": ["Plan roadmap"]},
                {"id": "delegate", "label": "Delegate", "count": 1, "items": ["Answer vendor emails"]},
                {"id": "eliminate", "label": "Eliminate", "count": 1, "items": ["Reorganize wiki"]},
            ],
            "points": [
                {"label": "Fix SOC2 audit findings", "urgency": 0.9, "importance": 0.9, "quadrant": "do"},
                {"label": "Plan roadmap", "urgency": 0.2, "importance": 0.8, "quadrant": "schedule"},
                {"label": "Answer vendor emails", "urgency": 0.7, "importance": 0.3, "quadrant": "delegate"},
                {"label": "Reorganize wiki", "urgency": 0.1, "importance": 0.2, "quadrant": "eliminate"},
            ],
        },
    }


def _valid_swot_viz():
    return {
        "type": "swot",
        "title": "Vendor switch",
        "vizSchemaVersion": 2,
        "data": {
            "kind": "swot_analysis",
            "strengths": ["Strong support team"],
            "weaknesses": ["Limited training budget"],
            "opportunities": ["Enterprise market demand"],
            "threats": ["Competitor price cuts"],
        },
    }


def _valid_consequences_viz():
    return {
        "type": "timeline",
        "title": "Consequences",
        "vizSchemaVersion": 2,
        "data": {
            "kind": "consequences_model",
            "horizons": [
                {"horizon": "Immediate", "direct": 0.8, "indirect": 0.1, "thirdOrder": 0.05, "net": 0.675},
                {"horizon": "30 Days", "direct": 0.6, "indirect": 0.2, "thirdOrder": 0.1, "net": 0.35},
                {"horizon": "90 Days", "direct": 0.4, "indirect": 0.3, "thirdOrder": 0.15, "net": 0.025},
                {"horizon": "1 Year", "direct": 0.2, "indirect": 0.4, "thirdOrder": 0.2, "net": -0.3},
            ],
            "links": [{"from": "Immediate", "to": "30 Days", "weight": 0.5}],
        },
    }


def test_type_mapping_covers_twelve_frameworks():
    assert len(TOP12_VIZ_TYPE_BY_FRAMEWORK) == 12
    assert TOP12_VIZ_TYPE_BY_FRAMEWORK["monte_carlo_simulation"] == "histogram"
    assert TOP12_VIZ_TYPE_BY_FRAMEWORK["double_loop_learning"] == "list"
    assert CURRENT_VIZ_SCHEMA_VERSION == 2
    assert is_top12_framework_id("bcg_matrix")
    assert not is_top12_framework_id("johari_window")


def test_valid_payload_passes_with_rubric():
    result = validate_framework_viz("eisenhower_matrix", _valid_eisenhower_viz())
    assert result.ok is True
    assert result.canonical is True
    assert result.issues == []
    assert result.rubric is not None
    assert result.rubric.score == 1.0


def test_non_canonical_framework_is_not_checked():
    result = validate_framework_viz("johari_window", {"type": "anything"})
    assert result.ok is True
    assert result.canonical is False
    assert result.issues == []
    assert result.rubric is None


def test_wrong_chart_type_is_reported():
    viz = _valid_eisenhower_viz()
    viz["type"] = "bar"
    result = validate_framework_viz("eisenhower_matrix", viz)
    assert result.ok is False
    assert result.issues == ['Expected viz type "quadrant" for eisenhower_matrix, received "bar".']
    assert result.rubric is not None


def test_schema_version_is_required():
    viz = _valid_eisenhower_viz()
    del viz["vizSchemaVersion"]
    result = validate_framework_viz("eisenhower_matrix", viz)
    assert result.issues == ["Expected vizSchemaVersion=2 for eisenhower_matrix."]


def test_structural_errors_skip_the_rubric():
    viz = _valid_eisenhower_viz()
    viz["data"]["quadrants"] = viz["data"]["quadrants"][:3]
    result = validate_framework_viz("eisenhower_matrix", viz)
    assert result.ok is False
    assert result.rubric is None
    assert any(issue.startswith("quadrants") for issue in result.issues)


def test_unknown_top_level_keys_are_rejected():
    viz = _valid_eisenhower_viz()
    viz["data"]["bonus"] = True
    result = validate_framework_viz("eisenhower_matrix", viz)
    assert result.ok is False
    assert any(issue.startswith("bonus") for issue in result.issues)


def test_issues_accumulate_across_checks():
    viz = _valid_eisenhower_viz()
    viz["type"] = "scatter"
    viz["vizSchemaVersion"] = 1
    viz["data"]["points"][0]["urgency"] = 1.4
    result = validate_framework_viz("eisenhower_matrix", viz)
    assert len(result.issues) == 3
    assert result.issues[2].startswith("points.0.urgency")


def test_rubric_failures_become_issues():
    viz = _valid_eisenhower_viz()
    viz["data"]["points"][2]["quadrant"] = "do"
    result = validate_framework_viz("eisenhower_matrix", viz)
    assert result.ok is False
    assert result.issues == [
        "[quadrant-rule] 1 points violate matrix threshold rules.",
        "[quadrant-counts] 2 quadrant summaries are out of sync with plotted points.",
        "Rubric score 75% is below threshold 85% for eisenhower_matrix.",
    ]
    assert result.rubric.score == 0.75


def test_question_shaped_threats_fail_swot_rubric():
    viz = _valid_swot_viz()
    assert validate_framework_viz("swot_analysis", viz).ok is True

    viz["data"]["threats"] = ["What if competitors cut prices?"]
    result = validate_framework_viz("swot_analysis", viz)
    assert result.issues == [
        "[threat-not-question] 1 threat entries are phrased as unresolved questions.",
        "Rubric score 80% is below threshold 85% for swot_analysis.",
    ]


def test_empty_swot_section_is_structural():
    viz = _valid_swot_viz()
    viz["data"]["threats"] = []
    result = validate_framework_viz("swot_analysis", viz)
    assert result.ok is False
    assert result.rubric is None


def test_consequences_links_accept_from_keyword():
    result = validate_framework_viz("consequences_model", _valid_consequences_viz())
    assert result.ok is True, result.issues


def test_conflict_needs_exactly_five_modes():
    viz = {
        "type": "scatter",
        "title": "Conflict",
        "vizSchemaVersion": 2,
        "data": {
            "kind": "conflict_resolution_model",
            "modes": [
                {"mode": "Competing", "assertiveness": 0.9, "cooperativeness": 0.1, "suitability": 0.2},
                {"mode": "Collaborating", "assertiveness": 0.9, "cooperativeness": 0.9, "suitability": 0.9},
                {"mode": "Compromising", "assertiveness": 0.5, "cooperativeness": 0.5, "suitability": 0.6},
                {"mode": "Avoiding", "assertiveness": 0.1, "cooperativeness": 0.1, "suitability": 0.1},
            ],
            "recommendedMode": "Collaborating",
        },
    }
    result = validate_framework_viz("conflict_resolution_model", viz)
    assert result.ok is False
    assert result.rubric is None


def test_visualization_spec_instances_are_accepted():
    spec = VisualizationSpec.model_validate(_valid_eisenhower_viz())
    assert validate_framework_viz("eisenhower_matrix", spec).ok is True


def test_malformed_envelope_is_reported():
    viz = _valid_eisenhower_viz()
    del viz["title"]
    result = validate_framework_viz("eisenhower_matrix", viz)
    assert result.ok is False
    assert result.canonical is True
    assert any(issue.startswith("title") for issue in result.issues)


def test_scorer_is_injectable():
    calls = []

    def scorer(framework_id, data):
        calls.append((framework_id, data))
        return RubricReport(
            framework_id=framework_id,
            rubric_version=1,
            score=0.5,
            pass_threshold=0.85,
            passed=False,
            criteria=[],
            remediation_plan=[],
        )

    result = validate_framework_viz("eisenhower_matrix", copy.deepcopy(_valid_eisenhower_viz()), scorer=scorer)
    assert len(calls) == 1
    assert isinstance(calls[0][1], EisenhowerVizData)
    assert result.issues == ["Rubric score 50% is below threshold 85% for eisenhower_matrix."]


def _valid_crossroads_viz():
    return {
        "type": "scatter",
        "title": "Build or buy",
        "vizSchemaVersion": 2,
        "data": {
            "kind": "crossroads_model",
            "options": [
                {"option": "Build", "feasibility": 0.8, "desirability": 0.7, "reversibility": 0.3,
                 "size": 1, "note": "Advance through the next gate"},
                {"option": "Buy", "feasibility": 0.6, "desirability": 0.8, "reversibility": 0.8,
                 "size": 3, "note": "Advance with a pilot contract"},
            ],
        },
    }


def _valid_chasm_viz():
    return {
        "type": "bar",
        "title": "Adoption",
        "vizSchemaVersion": 2,
        "data": {
            "kind": "chasm_diffusion_model",
            "segments": [
                {"segment": "Innovators", "adoption": 0.9},
                {"segment": "Early Adopters", "adoption": 0.7},
                {"segment": "Early Majority", "adoption": 0.4},
                {"segment": "Late Majority", "adoption": 0.2},
                {"segment": "Laggards", "adoption": 0.1},
            ],
            "chasmAfter": "Early Adopters",
            "gap": 0.3,
        },
    }


def test_schema_version_must_be_the_integer_two():
    for version in ("2", 2.0, True):
        viz = _valid_swot_viz()
        viz["vizSchemaVersion"] = version
        result = validate_framework_viz("swot_analysis", viz)
        assert result.ok is False
        assert result.issues == ["Expected vizSchemaVersion=2 for swot_analysis."]


def test_numeric_fields_are_not_coerced():
    for field, value in (("feasibility", "0.8"), ("feasibility", True), ("size", "1")):
        viz = _valid_crossroads_viz()
        viz["data"]["options"][0][field] = value
        result = validate_framework_viz("crossroads_model", viz)
        assert result.ok is False
        assert result.rubric is None
        assert any(issue.startswith(f"options.0.{field}") for issue in result.issues)


def test_integer_counts_reject_floats_and_strings():
    for count in (1.5, "1", False):
        viz = _valid_eisenhower_viz()
        viz["data"]["quadrants"][0]["count"] = count
        result = validate_framework_viz("eisenhower_matrix", viz)
        assert result.ok is False
        assert any(issue.startswith("quadrants.0.count") for issue in result.issues)


def test_text_fields_reject_numbers():
    viz = _valid_swot_viz()
    viz["data"]["strengths"] = [42]
    result = validate_framework_viz("swot_analysis", viz)
    assert result.ok is False
    assert any(issue.startswith("strengths.0") for issue in result.issues)


def test_snake_case_keys_are_rejected():
    viz = _valid_chasm_viz()
    assert validate_framework_viz("chasm_diffusion_model", viz).rubric is not None

    viz["data"]["chasm_after"] = viz["data"].pop("chasmAfter")
    result = validate_framework_viz("chasm_diffusion_model", viz)
    assert result.ok is False
    assert result.rubric is None
    assert any(issue.startswith("chasmAfter") for issue in result.issues)
    assert any(issue.startswith("chasm_after") for issue in result.issues)
