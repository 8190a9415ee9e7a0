"""Static catalogue of the 50 analytical frameworks."""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

from models import FrameworkDefinition, ThemeVector

TOP_12_DEEP_FRAMEWORK_IDS: Tuple[str, ...] = (
    "eisenhower_matrix",
    "swot_analysis",
    "bcg_matrix",
    "project_portfolio_matrix",
    "pareto_principle",
    "hype_cycle",
    "chasm_diffusion_model",
    "monte_carlo_simulation",
    "consequences_model",
    "crossroads_model",
    "conflict_resolution_model",
    "double_loop_learning",
)
TOP_12_DEEP_FRAMEWORKS: FrozenSet[str] = frozenset(TOP_12_DEEP_FRAMEWORK_IDS)

# id, name, category, maturity, description,
# weights (risk, urgency, opportunity, uncertainty, resources, stakeholder_impact)
_SEEDS = [
    ("eisenhower_matrix", "Eisenhower Matrix", "prioritization", "core",
     "Prioritize tasks by urgency and importance.", (0.42, 0.95, 0.6, 0.3, 0.45, 0.5)),
    ("swot_analysis", "SWOT Analysis", "strategy", "core",
     "Assess strengths, weaknesses, opportunities, and threats.", (0.7, 0.45, 0.85, 0.6, 0.55, 0.65)),
    ("bcg_matrix", "BCG Box (Matrix)", "portfolio", "core",
     "Map units by market growth and relative share.", (0.55, 0.5, 0.9, 0.5, 0.7, 0.5)),
    ("project_portfolio_matrix", "Project Portfolio Matrix", "portfolio", "core",
     "Compare projects by value, risk, and strategic fit.", (0.66, 0.6, 0.78, 0.55, 0.75, 0.6)),
    ("john_whitmore_model", "John Whitmore Model", "coaching", "exploratory",
     "Validate whether the chosen goal is the right one.", (0.4, 0.4, 0.65, 0.45, 0.35, 0.7)),
    ("rubber_band_model", "Rubber Band Model", "dilemmas", "exploratory",
     "Evaluate tensions between two competing options.", (0.58, 0.52, 0.62, 0.55, 0.4, 0.72)),
    ("feedback_model", "Feedback Model", "communication", "exploratory",
     "Interpret praise and criticism with structure.", (0.35, 0.35, 0.4, 0.5, 0.25, 0.8)),
    ("family_tree_model", "Family Tree Model", "network", "exploratory",
     "Map key contacts and relationship influence.", (0.3, 0.28, 0.45, 0.35, 0.2, 0.9)),
    ("morphological_box_scamper", "Morphological Box & SCAMPER", "creativity", "core",
     "Generate and combine structured idea variations.", (0.32, 0.44, 0.92, 0.6, 0.48, 0.52)),
    ("esquire_gift_model", "Esquire Gift Model", "personal_finance", "exploratory",
     "Calibrate spending decisions for gifts.", (0.46, 0.35, 0.4, 0.25, 0.68, 0.6)),
    ("consequences_model", "Consequences Model", "risk", "core",
     "Evaluate first and second-order impacts of decisions.", (0.9, 0.65, 0.65, 0.75, 0.55, 0.8)),
    ("conflict_resolution_model", "Conflict Resolution Model", "collaboration", "core",
     "Resolve disagreements while preserving outcomes and trust.", (0.62, 0.58, 0.56, 0.5, 0.45, 0.95)),
    ("crossroads_model", "Crossroads Model", "decision", "core",
     "Choose between alternatives at strategic turning points.", (0.7, 0.7, 0.75, 0.68, 0.57, 0.72)),
    ("flow_model", "Flow Model", "wellbeing", "exploratory",
     "Identify conditions that maximize engagement and happiness.", (0.22, 0.28, 0.62, 0.4, 0.3, 0.52)),
    ("johari_window", "Johari Window", "self_awareness", "exploratory",
     "Explore known and unknown perceptions between self and others.", (0.34, 0.3, 0.48, 0.52, 0.2, 0.88)),
    ("cognitive_dissonance_model", "Cognitive Dissonance Model", "behavior", "exploratory",
     "Explain and reduce conflict between beliefs and actions.", (0.5, 0.35, 0.4, 0.66, 0.25, 0.62)),
    ("music_matrix", "Music Matrix", "culture", "exploratory",
     "Interpret preference signals through music choices.", (0.2, 0.2, 0.38, 0.28, 0.2, 0.45)),
    ("unimaginable_model", "Unimaginable Model", "beliefs", "exploratory",
     "Surface beliefs that are hard to empirically verify.", (0.58, 0.2, 0.35, 0.82, 0.2, 0.48)),
    ("uffe_elbaek_model", "Uffe Elbaek Model", "self_knowledge", "exploratory",
     "Framework for personal identity and values exploration.", (0.28, 0.22, 0.5, 0.4, 0.2, 0.58)),
    ("fashion_model", "Fashion Model", "identity", "exploratory",
     "Analyze how clothing choices project identity and signals.", (0.18, 0.2, 0.4, 0.32, 0.35, 0.54)),
    ("energy_model", "Energy Model", "wellbeing", "exploratory",
     "Track attentional presence and energy patterns.", (0.3, 0.32, 0.46, 0.38, 0.3, 0.44)),
    ("supermemo_model", "SuperMemo Model", "learning", "core",
     "Schedule repetition for long-term memory retention.", (0.2, 0.5, 0.44, 0.35, 0.45, 0.3)),
    ("political_compass", "Political Compass", "positioning", "core",
     "Map political viewpoints across key ideological axes.", (0.44, 0.25, 0.4, 0.46, 0.2, 0.8)),
    ("personal_performance_model", "Personal Performance Model", "career", "core",
     "Evaluate whether it is the right time to change jobs.", (0.45, 0.5, 0.58, 0.45, 0.55, 0.66)),
    ("making_of_model", "Making-of Model", "reflection", "exploratory",
     "Use past events to better understand future trajectories.", (0.32, 0.24, 0.48, 0.4, 0.25, 0.42)),
    ("personal_potential_trap", "Personal Potential Trap", "psychology", "exploratory",
     "Spot risks from unrealistic self-expectations.", (0.5, 0.34, 0.4, 0.55, 0.28, 0.52)),
    ("hype_cycle", "Hype Cycle", "innovation", "core",
     "Estimate technology maturity and expectation curve position.", (0.62, 0.56, 0.82, 0.8, 0.5, 0.46)),
    ("subtle_signals_model", "Subtle Signals Model", "communication", "exploratory",
     "Recognize nuance and weak cues in social interactions.", (0.35, 0.2, 0.38, 0.55, 0.2, 0.76)),
    ("superficial_knowledge_model", "Superficial Knowledge Model", "knowledge", "exploratory",
     "Detect noise and irrelevant information in discussions.", (0.4, 0.28, 0.45, 0.6, 0.2, 0.5)),
    ("swiss_cheese_model", "Swiss Cheese Model", "risk", "core",
     "Model how layered failures align into incidents.", (0.95, 0.6, 0.42, 0.75, 0.58, 0.5)),
    ("maslow_pyramids", "Maslow Pyramids", "needs", "core",
     "Differentiate fundamental needs from higher-level wants.", (0.3, 0.25, 0.5, 0.35, 0.55, 0.82)),
    ("thinking_outside_the_box", "Thinking Outside the Box", "creativity", "core",
     "Generate unconventional solution paths.", (0.3, 0.34, 0.94, 0.62, 0.35, 0.48)),
    ("sinus_milieu_bourdieu_models", "Sinus Milieu & Bourdieu Models", "sociology", "exploratory",
     "Segment social belonging and cultural capital patterns.", (0.34, 0.2, 0.55, 0.45, 0.3, 0.86)),
    ("double_loop_learning", "Double-Loop Learning", "learning", "core",
     "Correct outcomes by revisiting underlying assumptions.", (0.7, 0.5, 0.65, 0.7, 0.4, 0.66)),
    ("ai_discussion_model", "AI Discussion Model", "ai_governance", "exploratory",
     "Classify discussion types for AI-enabled decision processes.", (0.5, 0.45, 0.75, 0.65, 0.4, 0.55)),
    ("small_world_model", "Small-World Model", "network", "exploratory",
     "Analyze how local clusters connect across larger systems.", (0.32, 0.2, 0.56, 0.4, 0.2, 0.72)),
    ("pareto_principle", "Pareto Principle", "optimization", "core",
     "Focus effort on the few inputs driving most outcomes.", (0.45, 0.7, 0.82, 0.35, 0.9, 0.42)),
    ("long_tail_model", "Long-Tail Model", "market", "core",
     "Assess value in niche demand beyond mainstream hits.", (0.42, 0.35, 0.8, 0.55, 0.63, 0.4)),
    ("monte_carlo_simulation", "Monte Carlo Simulation", "quantitative", "core",
     "Approximate uncertain outcomes by repeated simulation.", (0.8, 0.56, 0.6, 0.95, 0.62, 0.36)),
    ("black_swan_model", "Black Swan Model", "risk", "core",
     "Stress-test for rare, high-impact unknown events.", (0.96, 0.46, 0.5, 0.98, 0.45, 0.4)),
    ("chasm_diffusion_model", "Chasm / Diffusion Model", "innovation", "core",
     "Track innovation adoption through audience segments.", (0.55, 0.52, 0.86, 0.72, 0.6, 0.68)),
    ("black_box_model", "Black Box Model", "systems", "exploratory",
     "Reason about systems with hidden internal mechanisms.", (0.58, 0.3, 0.5, 0.88, 0.35, 0.4)),
    ("status_model", "Status Model", "social_dynamics", "exploratory",
     "Understand status drivers and perceived winners.", (0.3, 0.28, 0.45, 0.4, 0.3, 0.75)),
    ("prisoners_dilemma", "Prisoner's Dilemma", "game_theory", "core",
     "Evaluate cooperation and trust under strategic tension.", (0.6, 0.52, 0.62, 0.58, 0.35, 0.88)),
    ("drexler_sibbet_team_performance_model", "Drexler-Sibbet Team Performance Model", "team", "core",
     "Assess team progression across development stages.", (0.45, 0.5, 0.58, 0.52, 0.4, 0.9)),
    ("team_model", "Team Model", "team", "core",
     "Evaluate collective capability and execution readiness.", (0.48, 0.55, 0.62, 0.48, 0.5, 0.86)),
    ("gap_in_the_market_model", "Gap-in-the-Market Model", "opportunity", "core",
     "Find underserved demand and viable business openings.", (0.5, 0.46, 0.94, 0.65, 0.58, 0.6)),
    ("hersey_blanchard_situational_leadership", "Hersey-Blanchard (Situational Leadership)", "leadership", "core",
     "Adapt leadership style to team readiness.", (0.42, 0.48, 0.56, 0.45, 0.32, 0.92)),
    ("role_playing_model", "Role-Playing Model", "empathy", "exploratory",
     "Shift perspective to understand opposing views.", (0.34, 0.24, 0.48, 0.4, 0.25, 0.9)),
    ("result_optimisation_model", "Result Optimisation Model", "operations", "core",
     "Manage delays and constraints to maximize outcomes.", (0.66, 0.75, 0.74, 0.6, 0.82, 0.54)),
]


def _weights(values: Tuple[float, ...]) -> ThemeVector:
    risk, urgency, opportunity, uncertainty, resources, stakeholder_impact = values
    return ThemeVector(
        risk=risk,
        urgency=urgency,
        opportunity=opportunity,
        uncertainty=uncertainty,
        resources=resources,
        stakeholder_impact=stakeholder_impact,
    )


FRAMEWORK_REGISTRY: Tuple[FrameworkDefinition, ...] = tuple(
    FrameworkDefinition(
        id=framework_id,
        name=name,
        category=category,
        maturity=maturity,
        description=description,
        theme_weights=_weights(weights),
        deep_supported=framework_id in TOP_12_DEEP_FRAMEWORKS,
        prompt_template=(
            f"Apply {name} to the decision brief. "
            "Return structured insights, actions, risks, and assumptions."
        ),
    )
    for framework_id, name, category, maturity, description, weights in _SEEDS
)

_BY_ID: Dict[str, FrameworkDefinition] = {framework.id: framework for framework in FRAMEWORK_REGISTRY}

if len(FRAMEWORK_REGISTRY) != 50 or len(_BY_ID) != 50:
    raise RuntimeError(f"Framework registry mismatch: expected 50 unique ids, received {len(_BY_ID)}")
if sum(1 for framework in FRAMEWORK_REGISTRY if framework.deep_supported) != len(TOP_12_DEEP_FRAMEWORK_IDS):
    raise RuntimeError("Framework registry is missing one or more deep frameworks")


def list_framework_definitions() -> Tuple[FrameworkDefinition, ...]:
    return FRAMEWORK_REGISTRY


def get_framework_definition(framework_id: str) -> FrameworkDefinition:
    try:
        return _BY_ID[framework_id]
    except KeyError:
        raise KeyError(f"Unknown framework id: {framework_id}") from None


def deep_framework_count() -> int:
    return sum(1 for framework in FRAMEWORK_REGISTRY if framework.deep_supported)


__all__ = [
    "FRAMEWORK_REGISTRY",
    "TOP_12_DEEP_FRAMEWORKS",
    "TOP_12_DEEP_FRAMEWORK_IDS",
    "deep_framework_count",
    "get_framework_definition",
    "list_framework_definitions",
]
