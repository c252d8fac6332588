"""Deterministic Top-3 ritual selection for a normalized sleep timeline."""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from restwell.services.delta.anchors import AnchorKey, NormalizedAnchors
from restwell.services.delta.goals import CanonicalGoal

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE_THRESHOLD = 0.6
FALLBACK_SCORE = 0.70
FALLBACK_RITUAL_IDS: Tuple[str, ...] = ("dim_lights_2030", "no_screens_60m", "sunlight_30m")

# (prefer, suppress): once "prefer" survives, "suppress" is dropped from the ranking.
CONFLICT_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("no_screens_60m", "late_screens"),
    ("early_dinner", "late_dinner"),
    ("fixed_bedtime", "variable_bedtime"),
)

# Ritual id -> anchor keys to read the user's current time from, in order.
RITUAL_ANCHOR_KEYS: Dict[str, Tuple[AnchorKey, ...]] = {
    "early_dinner": (AnchorKey.DINNER,),
    "dim_lights_2030": (AnchorKey.LIGHTS_DIM,),
    "no_screens_60m": (AnchorKey.SCREENS_END,),
    "cool_room": (AnchorKey.LIGHTS_OUT,),
    "sunlight_30m": (AnchorKey.SUNLIGHT, AnchorKey.WAKE),
    "caffeine_cutoff_14": (AnchorKey.LAST_CAFFEINE,),
}

DEFAULT_GOAL_WEIGHT = 0.8
DEFAULT_GOAL_WEIGHTS: Dict[str, float] = {
    CanonicalGoal.SLEEP_LATENCY.value: 0.8,
    CanonicalGoal.WAKE_FRESHNESS.value: 0.8,
    CanonicalGoal.CONSISTENCY.value: 0.8,
}
MISSING_TIMING_DELTA = 999
TIMING_WINDOW_MINUTES = 180
EFFORT_STEP_PENALTY = 0.15
MAX_EFFORT = 3
TOP_N = 3

DEFAULT_IMPACT = 5
DEFAULT_EFFORT = 1
DEFAULT_CATEGORY = "sleep"
DEFAULT_SYSTEM_BLOCK = "Night"

EFFORT_TAGS = {1: "Low", 2: "Medium"}

_BLOCK_RE = re.compile(r"(\d{2})-(\d{2})")


@dataclass
class UserContext:
    has_kids: bool = False
    shift_worker: bool = False

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "UserContext":
        data = data or {}
        return cls(has_kids=bool(data.get("has_kids")), shift_worker=bool(data.get("shift_worker")))


@dataclass
class ScoredCandidate:
    id: Optional[str]
    ritual_name: str
    category: str
    system_block: str
    impact: float
    effort: int
    goal_weight: float
    timing_delta: float
    timing_penalty: float
    opportunity_score: float
    why: str = ""
    how_to: str = ""


@dataclass
class Top3Item:
    ritual_name: str
    impact_tag: str
    effort_tag: str
    why: str
    how_to: str
    system_block: str
    category: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ritual_name": self.ritual_name,
            "impact_tag": self.impact_tag,
            "effort_tag": self.effort_tag,
            "why": self.why,
            "how_to": self.how_to,
            "system_block": self.system_block,
            "category": self.category,
        }


@dataclass
class DeltaResult:
    top3: List[Top3Item] = field(default_factory=list)
    opportunity_scores: List[Dict[str, Any]] = field(default_factory=list)
    used_fallback: bool = False
    scored: List[ScoredCandidate] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "top3_json": [item.to_dict() for item in self.top3],
            "opportunity_scores": list(self.opportunity_scores),
            "used_fallback": self.used_fallback,
        }


def compute_top3(
    normalized: Optional[NormalizedAnchors],
    canonical_goal: CanonicalGoal,
    ideal_map: Sequence[Mapping[str, Any]],
    user_context: Optional[UserContext] = None,
) -> DeltaResult:
    """
    Score every catalog ritual against the user's anchors and pick a Top-3.

    Below the confidence threshold the fixed fallback triad is returned
    unscored. Otherwise candidates are ranked, conflicting rituals are
    suppressed and picks are spread across distinct system blocks.
    """
    normalized = normalized or NormalizedAnchors()
    context = user_context or UserContext()
    catalog = [entry if isinstance(entry, Mapping) else {} for entry in (ideal_map or [])]
    goal = _goal_value(canonical_goal)

    if normalized.avg_confidence < FALLBACK_CONFIDENCE_THRESHOLD:
        logger.debug("Average anchor confidence %.2f below threshold; using fallback rituals", normalized.avg_confidence)
        return DeltaResult(top3=fallback_top3(catalog), opportunity_scores=[], used_fallback=True)

    scored = [score_candidate(entry, goal, normalized, context) for entry in catalog]
    ranked = rank_candidates(scored)
    survivors = apply_conflict_pairs(ranked, CONFLICT_PAIRS)
    picked = pick_diverse(survivors, limit=TOP_N)

    return DeltaResult(
        top3=[_top3_item(candidate) for candidate in picked],
        opportunity_scores=[{"id": c.id, "score": round2(c.opportunity_score)} for c in scored],
        used_fallback=False,
        scored=scored,
    )


def fallback_top3(catalog: Sequence[Mapping[str, Any]]) -> List[Top3Item]:
    items: List[Top3Item] = []
    for ritual_id in FALLBACK_RITUAL_IDS:
        entry = next((e for e in catalog if _ritual_id(e) == ritual_id), None)
        if entry is None:
            continue
        impact = _number(entry.get("impact"), DEFAULT_IMPACT)
        effort = int(_number(entry.get("effort"), DEFAULT_EFFORT))
        items.append(
            Top3Item(
                ritual_name=entry.get("ritual_name") or ritual_id,
                impact_tag=impact_tag(impact or DEFAULT_IMPACT, FALLBACK_SCORE),
                effort_tag=effort_tag(effort or DEFAULT_EFFORT),
                why=entry.get("why") or "",
                how_to=entry.get("how_to") or "",
                system_block=str(entry.get("system_block") or DEFAULT_SYSTEM_BLOCK),
                category=entry.get("category") or DEFAULT_CATEGORY,
            )
        )
    return items


def score_candidate(
    entry: Mapping[str, Any],
    goal: str,
    normalized: NormalizedAnchors,
    context: UserContext,
) -> ScoredCandidate:
    ritual_id = _ritual_id(entry)
    impact = _number(entry.get("impact"), DEFAULT_IMPACT)
    base_effort = int(_number(entry.get("effort"), DEFAULT_EFFORT))
    weight = goal_weight(entry.get("goal_weights"), goal)

    ideal_mid = block_midpoint(entry.get("block"))
    user_time = candidate_user_time(ritual_id, normalized)
    delta = MISSING_TIMING_DELTA if user_time is None else abs(user_time - ideal_mid)
    penalty = min(1.0, max(0.0, delta / TIMING_WINDOW_MINUTES))

    effort = adjust_effort(base_effort, ritual_id, context)
    score = opportunity_score(impact, effort, weight, penalty)

    return ScoredCandidate(
        id=ritual_id,
        ritual_name=entry.get("ritual_name") or ritual_id or "",
        category=entry.get("category") or DEFAULT_CATEGORY,
        system_block=str(entry.get("system_block") or DEFAULT_SYSTEM_BLOCK),
        impact=impact,
        effort=effort,
        goal_weight=weight,
        timing_delta=delta,
        timing_penalty=penalty,
        opportunity_score=score,
        why=entry.get("why") or "",
        how_to=entry.get("how_to") or "",
    )


def goal_weight(goal_weights: Any, goal: str) -> float:
    weights = goal_weights if isinstance(goal_weights, Mapping) else {}
    value = weights.get(goal)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if goal == CanonicalGoal.MIXED.value:
        values = [
            float(v)
            for v in (weights or DEFAULT_GOAL_WEIGHTS).values()
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        ]
        return sum(values) / len(values) if values else DEFAULT_GOAL_WEIGHT
    return DEFAULT_GOAL_WEIGHT


def block_midpoint(block: Any) -> int:
    """``"20-21"`` -> 1230 (20:30). Unparseable blocks resolve to 0."""
    match = _BLOCK_RE.fullmatch(str(block)) if block is not None else None
    if not match:
        return 0
    mid_hour = (int(match.group(1)) + int(match.group(2))) / 2
    return math.floor(mid_hour * 60 + 0.5)


def candidate_user_time(ritual_id: Any, normalized: NormalizedAnchors) -> Optional[int]:
    for key in RITUAL_ANCHOR_KEYS.get(ritual_id, ()):
        minutes = normalized.minutes_for(key)
        if minutes is not None:
            return minutes
    return None


def adjust_effort(effort: int, ritual_id: Any, context: UserContext) -> int:
    adjusted = effort
    if context.has_kids and ritual_id in {"early_dinner", "fixed_bedtime"}:
        adjusted += 1
    if context.shift_worker and ritual_id == "fixed_bedtime":
        adjusted += 1
    return min(MAX_EFFORT, adjusted)


def opportunity_score(impact: float, effort: int, weight: float, timing_penalty: float) -> float:
    effort_penalty = (effort - 1) * EFFORT_STEP_PENALTY
    return (impact / 5) * weight * (1 - timing_penalty) - effort_penalty


def rank_candidates(scored: Iterable[ScoredCandidate]) -> List[ScoredCandidate]:
    """Highest score first; ties prefer lower effort, then the larger timing gap."""
    return sorted(scored, key=lambda c: (-c.opportunity_score, c.effort, -c.timing_delta))


def apply_conflict_pairs(
    ranked: Sequence[ScoredCandidate],
    pairs: Sequence[Tuple[str, str]],
) -> List[ScoredCandidate]:
    suppressed: Set[str] = set()
    survivors: List[ScoredCandidate] = []
    for candidate in ranked:
        if candidate.id in suppressed:
            logger.debug("Suppressing %s due to a preferred conflicting ritual", candidate.id)
            continue
        survivors.append(candidate)
        for prefer, suppress in pairs:
            if candidate.id == prefer:
                suppressed.add(suppress)
    # A preferred ritual also removes a conflicting one that ranked above it.
    return [candidate for candidate in survivors if candidate.id not in suppressed]


def pick_diverse(candidates: Sequence[ScoredCandidate], limit: int = TOP_N) -> List[ScoredCandidate]:
    picked: List[ScoredCandidate] = []
    used_blocks: Set[str] = set()
    for candidate in candidates:
        if len(picked) == limit:
            break
        if candidate.system_block not in used_blocks:
            picked.append(candidate)
            used_blocks.add(candidate.system_block)

    if len(picked) < limit:
        picked_ids = {p.id for p in picked}
        for candidate in candidates:
            if len(picked) == limit:
                break
            if candidate.id in picked_ids:
                continue
            picked.append(candidate)
            picked_ids.add(candidate.id)
    return picked


def impact_tag(impact: float, score: float) -> str:
    if impact >= 5 or score >= 0.75:
        return "High"
    if score >= 0.5:
        return "Medium"
    return "Low"


def effort_tag(effort: int) -> str:
    return EFFORT_TAGS.get(effort, "High")


def round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def _top3_item(candidate: ScoredCandidate) -> Top3Item:
    return Top3Item(
        ritual_name=candidate.ritual_name,
        impact_tag=impact_tag(candidate.impact or DEFAULT_IMPACT, candidate.opportunity_score),
        effort_tag=effort_tag(candidate.effort or DEFAULT_EFFORT),
        why=candidate.why,
        how_to=candidate.how_to,
        system_block=candidate.system_block,
        category=candidate.category,
    )


def _goal_value(goal: Any) -> str:
    if isinstance(goal, CanonicalGoal):
        return goal.value
    try:
        return CanonicalGoal(goal).value
    except ValueError:
        return CanonicalGoal.MIXED.value


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        return default
    return value


def _ritual_id(entry: Mapping[str, Any]) -> Optional[str]:
    value = entry.get("id")
    return None if value is None else str(value)
