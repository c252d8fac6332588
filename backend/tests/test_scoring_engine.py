"""Tests for Top-3 scoring, conflict suppression and block diversity."""
from __future__ import annotations

import copy
import json

import pytest

from restwell.services.delta.anchors import AnchorKey, AnchorReading, NormalizedAnchors, normalize_anchors
from restwell.services.delta.catalog import BUNDLED_CATALOG_PATH
from restwell.services.delta.goals import CanonicalGoal
from restwell.services.delta.scoring import (
    CONFLICT_PAIRS,
    FALLBACK_RITUAL_IDS,
    RITUAL_ANCHOR_KEYS,
    ScoredCandidate,
    UserContext,
    adjust_effort,
    block_midpoint,
    compute_top3,
    goal_weight,
    impact_tag,
    rank_candidates,
    round2,
)

EXAMPLE_TIMELINE = {
    "wake_time": "06:30",
    "bedtime_target": "23:00",
    "bedtime_window": "22:00–23:00",
    "anchors": [
        {"name": "Dinner", "time": "19:00", "confidence": 0.9},
        {"name": "Screens off", "time": "21:30", "confidence": 0.9},
        {"name": "Lights dim", "time": "20:30", "confidence": 0.8},
        {"name": "Lights out", "time": "23:00", "confidence": 0.9},
        {"name": "Wake", "time": "06:30", "confidence": 0.9},
        {"name": "Sunlight", "time": "07:00", "confidence": 0.8},
    ],
    "notes": "",
}


@pytest.fixture()
def catalog():
    with open(BUNDLED_CATALOG_PATH, encoding="utf-8") as handle:
        return json.load(handle)["items"]


def _confident(**minutes) -> NormalizedAnchors:
    return NormalizedAnchors(
        anchors={AnchorKey(key): AnchorReading(minutes=value, confidence=0.9) for key, value in minutes.items()},
        avg_confidence=0.9,
    )


def _ritual(ritual_id, block="Night", impact=4, effort=1, window="21-22", weights=None):
    return {
        "id": ritual_id,
        "ritual_name": ritual_id.replace("_", " ").title(),
        "category": "sleep",
        "block": window,
        "impact": impact,
        "effort": effort,
        "goal_weights": weights if weights is not None else {"sleep_latency": 1.0},
        "why": f"why {ritual_id}",
        "how_to": f"how {ritual_id}",
        "system_block": block,
    }


def test_example_timeline_produces_three_distinct_blocks(catalog) -> None:
    normalized = normalize_anchors(EXAMPLE_TIMELINE)
    result = compute_top3(normalized, CanonicalGoal.SLEEP_LATENCY, catalog, UserContext())

    assert result.used_fallback is False
    assert [item.ritual_name for item in result.top3] == [
        "Screens off an hour before bed",
        "Dim the lights at 8:30pm",
        "Morning sunlight within 30 minutes",
    ]
    assert [item.system_block for item in result.top3] == ["Night", "Evening", "Morning"]
    assert [item.impact_tag for item in result.top3] == ["High", "Medium", "Low"]
    assert [item.effort_tag for item in result.top3] == ["Medium", "Low", "Low"]

    scores = {entry["id"]: entry["score"] for entry in result.opportunity_scores}
    assert [entry["id"] for entry in result.opportunity_scores] == [item["id"] for item in catalog]
    assert scores == pytest.approx(
        {
            "early_dinner": 0.45,
            "caffeine_cutoff_14": 0.0,
            "dim_lights_2030": 0.72,
            "no_screens_60m": 0.85,
            "cool_room": 0.35,
            "fixed_bedtime": -0.15,
            "sunlight_30m": 0.47,
        }
    )


def test_scored_candidates_expose_intermediate_terms(catalog) -> None:
    result = compute_top3(normalize_anchors(EXAMPLE_TIMELINE), CanonicalGoal.SLEEP_LATENCY, catalog)
    by_id = {candidate.id: candidate for candidate in result.scored}

    dinner = by_id["early_dinner"]
    assert dinner.timing_delta == 30
    assert dinner.timing_penalty == pytest.approx(1 / 6)
    assert dinner.goal_weight == pytest.approx(0.9)

    caffeine = by_id["caffeine_cutoff_14"]
    assert caffeine.timing_delta == 999
    assert caffeine.timing_penalty == 1.0


def test_low_confidence_uses_fallback_triad(catalog) -> None:
    normalized = NormalizedAnchors(avg_confidence=0.59)
    result = compute_top3(normalized, CanonicalGoal.SLEEP_LATENCY, catalog, UserContext())

    assert result.used_fallback is True
    assert result.opportunity_scores == []
    assert [item.ritual_name for item in result.top3] == [
        "Dim the lights at 8:30pm",
        "Screens off an hour before bed",
        "Morning sunlight within 30 minutes",
    ]
    # impact 4 at a flat 0.70 is Medium; impact 5 is always High.
    assert [item.impact_tag for item in result.top3] == ["Medium", "High", "Medium"]
    assert [item.effort_tag for item in result.top3] == ["Low", "Medium", "Low"]


def test_fallback_omits_ids_missing_from_catalog(catalog) -> None:
    trimmed = [item for item in catalog if item["id"] != "no_screens_60m"]
    result = compute_top3(NormalizedAnchors(), CanonicalGoal.MIXED, trimmed)

    assert result.used_fallback is True
    assert [item.ritual_name for item in result.top3] == [
        "Dim the lights at 8:30pm",
        "Morning sunlight within 30 minutes",
    ]


def test_confidence_at_threshold_is_scored(catalog) -> None:
    normalized = NormalizedAnchors(avg_confidence=0.6)
    result = compute_top3(normalized, CanonicalGoal.MIXED, catalog)

    assert result.used_fallback is False
    assert len(result.opportunity_scores) == len(catalog)


def test_results_are_deterministic_and_catalog_untouched(catalog) -> None:
    pristine = copy.deepcopy(catalog)
    normalized = normalize_anchors(EXAMPLE_TIMELINE)
    context = UserContext(has_kids=True, shift_worker=True)

    first = compute_top3(normalized, CanonicalGoal.CONSISTENCY, catalog, context)
    second = compute_top3(normalized, CanonicalGoal.CONSISTENCY, catalog, context)

    assert first.to_dict() == second.to_dict()
    assert catalog == pristine


def test_goal_weight_resolution() -> None:
    assert goal_weight({"sleep_latency": 0.6}, "sleep_latency") == 0.6
    assert goal_weight({"sleep_latency": 0.6}, "consistency") == 0.8
    assert goal_weight({"sleep_latency": 0.6, "consistency": 1.0}, "mixed") == pytest.approx(0.8)
    assert goal_weight({"mixed": 0.3, "consistency": 1.0}, "mixed") == 0.3
    assert goal_weight(None, "mixed") == pytest.approx(0.8)
    assert goal_weight({}, "mixed") == pytest.approx(0.8)


@pytest.mark.parametrize("block, expected", [("20-21", 1230), ("07-08", 450), ("22-23", 1350), ("8-9", 0), ("evening", 0), (None, 0)])
def test_block_midpoint(block, expected) -> None:
    assert block_midpoint(block) == expected


@pytest.mark.parametrize(
    "ritual_id, context, base, expected",
    [
        ("early_dinner", UserContext(has_kids=True), 2, 3),
        ("fixed_bedtime", UserContext(has_kids=True), 1, 2),
        ("fixed_bedtime", UserContext(shift_worker=True), 1, 2),
        ("fixed_bedtime", UserContext(has_kids=True, shift_worker=True), 2, 3),
        ("early_dinner", UserContext(shift_worker=True), 1, 1),
        ("sunlight_30m", UserContext(has_kids=True, shift_worker=True), 1, 1),
        ("early_dinner", UserContext(has_kids=True), 3, 3),
    ],
)
def test_effort_overrides(ritual_id, context, base, expected) -> None:
    assert adjust_effort(base, ritual_id, context) == expected


def test_kids_make_early_dinner_more_expensive(catalog) -> None:
    normalized = normalize_anchors(EXAMPLE_TIMELINE)
    baseline = compute_top3(normalized, CanonicalGoal.SLEEP_LATENCY, catalog, UserContext())
    with_kids = compute_top3(normalized, CanonicalGoal.SLEEP_LATENCY, catalog, UserContext(has_kids=True))

    base_scores = {entry["id"]: entry["score"] for entry in baseline.opportunity_scores}
    kid_scores = {entry["id"]: entry["score"] for entry in with_kids.opportunity_scores}
    assert kid_scores["early_dinner"] == pytest.approx(base_scores["early_dinner"] - 0.15)
    assert kid_scores["fixed_bedtime"] == pytest.approx(-0.30)


def test_sunlight_falls_back_to_wake_time() -> None:
    catalog = [_ritual("sunlight_30m", block="Morning", window="07-08", impact=5)]
    result = compute_top3(_confident(wake_time=390), CanonicalGoal.SLEEP_LATENCY, catalog)

    assert result.scored[0].timing_delta == 60
    assert result.opportunity_scores == [{"id": "sunlight_30m", "score": pytest.approx(0.67)}]


def test_preferred_ritual_suppresses_its_conflict_even_when_ranked_higher() -> None:
    catalog = [
        _ritual("late_screens", block="Night", impact=5),
        _ritual("no_screens_60m", block="Evening", impact=2, weights={"sleep_latency": 0.0}),
        _ritual("cool_room", block="Day", impact=1),
    ]
    result = compute_top3(_confident(screens_end_time=1290), CanonicalGoal.SLEEP_LATENCY, catalog)

    names = [item.ritual_name for item in result.top3]
    assert "Late Screens" not in names
    assert [c.id for c in rank_candidates(result.scored)] == ["late_screens", "cool_room", "no_screens_60m"]
    assert names == ["Cool Room", "No Screens 60M"]
    # Suppressed rituals still report a score.
    assert [entry["id"] for entry in result.opportunity_scores] == ["late_screens", "no_screens_60m", "cool_room"]


def test_conflict_pairs_table() -> None:
    assert CONFLICT_PAIRS == (
        ("no_screens_60m", "late_screens"),
        ("early_dinner", "late_dinner"),
        ("fixed_bedtime", "variable_bedtime"),
    )
    assert FALLBACK_RITUAL_IDS == ("dim_lights_2030", "no_screens_60m", "sunlight_30m")
    assert all(isinstance(key, AnchorKey) for keys in RITUAL_ANCHOR_KEYS.values() for key in keys)


def test_second_pass_fills_slots_when_blocks_repeat() -> None:
    catalog = [
        _ritual("a_night", block="Night", impact=5),
        _ritual("b_night", block="Night", impact=4),
        _ritual("c_evening", block="Evening", impact=3),
        _ritual("d_night", block="Night", impact=2),
    ]
    result = compute_top3(_confident(), CanonicalGoal.SLEEP_LATENCY, catalog)

    # No anchors map to these ids, so every score is 0 and ties keep catalog order.
    assert [item.ritual_name for item in result.top3] == ["A Night", "C Evening", "B Night"]


def test_second_pass_skips_ids_already_picked() -> None:
    first = dict(_ritual("dup", block="Night"), ritual_name="Dup A")
    second = dict(_ritual("dup", block="Night"), ritual_name="Dup B")
    other = dict(_ritual("other", block="Night"), ritual_name="Other")
    result = compute_top3(_confident(), CanonicalGoal.SLEEP_LATENCY, [first, second, other])

    assert [item.ritual_name for item in result.top3] == ["Dup A", "Other"]


def _candidate(ritual_id, score, effort=1, delta=0):
    return ScoredCandidate(
        id=ritual_id,
        ritual_name=ritual_id,
        category="sleep",
        system_block="Night",
        impact=4,
        effort=effort,
        goal_weight=0.8,
        timing_delta=delta,
        timing_penalty=min(1.0, delta / 180),
        opportunity_score=score,
    )


def test_ranking_order_and_tie_breaks() -> None:
    ranked = rank_candidates(
        [
            _candidate("low", 0.1),
            _candidate("tie_heavy", 0.5, effort=2, delta=90),
            _candidate("tie_light_near", 0.5, effort=1, delta=10),
            _candidate("tie_light_far", 0.5, effort=1, delta=60),
            _candidate("top", 0.9),
        ]
    )

    assert [c.id for c in ranked] == ["top", "tie_light_far", "tie_light_near", "tie_heavy", "low"]


def test_tie_breaks_prefer_larger_timing_gap() -> None:
    catalog = [
        _ritual("cool_room", block="Night", window="22-23", impact=5, effort=1, weights={"sleep_latency": 0.0}),
        _ritual("no_screens_60m", block="Evening", window="21-22", impact=5, effort=1, weights={"sleep_latency": 0.0}),
    ]
    normalized = _confident(lights_out_time=1350, screens_end_time=1200)
    result = compute_top3(normalized, CanonicalGoal.SLEEP_LATENCY, catalog)

    assert [item.ritual_name for item in result.top3] == ["No Screens 60M", "Cool Room"]


def test_output_never_exceeds_pool_size() -> None:
    catalog = [_ritual("only_one")]
    assert len(compute_top3(_confident(), CanonicalGoal.MIXED, catalog).top3) == 1
    assert compute_top3(_confident(), CanonicalGoal.MIXED, []).top3 == []


def test_missing_catalog_fields_use_defaults() -> None:
    result = compute_top3(_confident(), CanonicalGoal.MIXED, [{"id": "bare"}, "not-a-mapping"])

    item = result.top3[0]
    assert item.ritual_name == "bare"
    assert item.category == "sleep"
    assert item.system_block == "Night"
    assert item.impact_tag == "High"
    assert item.effort_tag == "Low"
    assert item.why == "" and item.how_to == ""
    assert len(result.opportunity_scores) == 2


def test_unknown_goal_is_treated_as_mixed() -> None:
    catalog = [_ritual("dim_lights_2030", window="20-21", weights={"sleep_latency": 0.4, "consistency": 0.8})]
    result = compute_top3(_confident(lights_dim_time=1230), "not-a-goal", catalog)

    assert result.scored[0].goal_weight == pytest.approx(0.6)


@pytest.mark.parametrize(
    "impact, score, expected",
    [(5, 0.1, "High"), (4, 0.75, "High"), (4, 0.5, "Medium"), (4, 0.49, "Low"), (3, -0.2, "Low")],
)
def test_impact_tag(impact, score, expected) -> None:
    assert impact_tag(impact, score) == expected


@pytest.mark.parametrize("value, expected", [(0.125, 0.13), (0.444, 0.44), (-0.125, -0.12), (1.0, 1.0)])
def test_round2_rounds_half_up(value, expected) -> None:
    assert round2(value) == pytest.approx(expected)


def test_zero_impact_and_effort_tag_like_missing_values() -> None:
    catalog = [_ritual("zeroed", impact=0, effort=0)]
    item = compute_top3(_confident(), CanonicalGoal.SLEEP_LATENCY, catalog).top3[0]

    assert item.impact_tag == "High"
    assert item.effort_tag == "Low"


def test_fallback_tags_zero_impact_and_effort_like_missing_values() -> None:
    catalog = [_ritual("dim_lights_2030", impact=0, effort=0)]
    result = compute_top3(NormalizedAnchors(), CanonicalGoal.MIXED, catalog)

    assert result.used_fallback is True
    assert (result.top3[0].impact_tag, result.top3[0].effort_tag) == ("High", "Low")
