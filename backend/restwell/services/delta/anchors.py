"""Normalize raw timeline anchors into canonical minute-of-day readings."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

MINUTES_PER_DAY = 1440
DEFAULT_CONFIDENCE = 0.5
WINDOW_SEPARATOR = "–"  # en-dash, as in "22:00–23:00"

_HHMM_RE = re.compile(r"(\d{2}):(\d{2})")


class AnchorKey(str, Enum):
    DINNER = "dinner_time"
    LAST_CAFFEINE = "last_caffeine_time"
    SCREENS_END = "screens_end_time"
    LIGHTS_DIM = "lights_dim_time"
    LIGHTS_OUT = "lights_out_time"
    WAKE = "wake_time"
    SUNLIGHT = "sunlight_time"
    MORNING_MOBILITY = "morning_mobility_time"


NamePredicate = Callable[[str], bool]


def _contains(*keywords: str) -> NamePredicate:
    def predicate(name: str) -> bool:
        return any(keyword in name for keyword in keywords)

    return predicate


# Evaluated top-down against the lowercased anchor name; first match wins.
ANCHOR_NAME_RULES: Tuple[Tuple[NamePredicate, AnchorKey], ...] = (
    (_contains("dinner"), AnchorKey.DINNER),
    (_contains("caffeine"), AnchorKey.LAST_CAFFEINE),
    (_contains("screen"), AnchorKey.SCREENS_END),
    (_contains("dim"), AnchorKey.LIGHTS_DIM),
    (_contains("lights out"), AnchorKey.LIGHTS_OUT),
    (_contains("wake"), AnchorKey.WAKE),
    (_contains("sunlight"), AnchorKey.SUNLIGHT),
    (_contains("mobility", "walk"), AnchorKey.MORNING_MOBILITY),
)


@dataclass(frozen=True)
class NormalizationRules:
    rollover_threshold_minutes: int = 180
    rollover_keys: frozenset = frozenset({AnchorKey.LIGHTS_OUT, AnchorKey.SCREENS_END})
    map_early_morning_to_previous_night: bool = True
    compute_window_midpoint: bool = True
    name_rules: Tuple[Tuple[NamePredicate, AnchorKey], ...] = ANCHOR_NAME_RULES


DEFAULT_RULES = NormalizationRules()


@dataclass
class AnchorReading:
    minutes: int
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"minutes": self.minutes, "confidence": self.confidence}


@dataclass
class NormalizedAnchors:
    anchors: Dict[AnchorKey, AnchorReading] = field(default_factory=dict)
    window_mid: Optional[int] = None
    avg_confidence: float = 0.0
    rollover_flag: bool = False

    def minutes_for(self, key: AnchorKey) -> Optional[int]:
        reading = self.anchors.get(key)
        return reading.minutes if reading is not None else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "anchors": {key.value: reading.to_dict() for key, reading in self.anchors.items()},
            "window_mid": self.window_mid,
            "avg_confidence": self.avg_confidence,
            "rollover_flag": self.rollover_flag,
        }


def hhmm_to_minutes(value: Any) -> Optional[int]:
    """Parse a strict ``HH:MM`` string into minutes since midnight."""
    if not isinstance(value, str):
        return None
    match = _HHMM_RE.fullmatch(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def anchor_key_for_name(name: Any, rules: NormalizationRules = DEFAULT_RULES) -> Optional[AnchorKey]:
    lowered = str(name or "").lower()
    for predicate, key in rules.name_rules:
        if predicate(lowered):
            return key
    return None


def normalize_anchors(timeline: Any, rules: NormalizationRules = DEFAULT_RULES) -> NormalizedAnchors:
    """
    Convert a raw timeline into canonical anchor readings.

    Unmappable names and malformed times are dropped. Anchors on rollover keys
    that fall between midnight and the rollover threshold are shifted to the
    previous night (negative minutes). Never raises.
    """
    timeline = timeline if isinstance(timeline, dict) else {}
    raw_anchors = timeline.get("anchors")
    if not isinstance(raw_anchors, list):
        raw_anchors = []

    readings: Dict[AnchorKey, AnchorReading] = {}
    confidences: List[float] = []

    for raw in raw_anchors:
        if not isinstance(raw, dict):
            continue
        key = anchor_key_for_name(raw.get("name"), rules)
        minutes = hhmm_to_minutes(raw.get("time"))
        if key is None or minutes is None:
            continue
        confidence = _coerce_confidence(raw.get("confidence"))
        readings[key] = AnchorReading(minutes=minutes, confidence=confidence)
        confidences.append(confidence)

    window_mid = None
    if rules.compute_window_midpoint:
        window_mid = window_midpoint(timeline.get("bedtime_window"))

    rollover_flag = False
    if rules.map_early_morning_to_previous_night:
        for key in rules.rollover_keys:
            reading = readings.get(key)
            if reading is not None and reading.minutes <= rules.rollover_threshold_minutes:
                reading.minutes -= MINUTES_PER_DAY
                rollover_flag = True

    avg_confidence = sum(confidences) / len(confidences) if confidences else 0.0

    return NormalizedAnchors(
        anchors=readings,
        window_mid=window_mid,
        avg_confidence=avg_confidence,
        rollover_flag=rollover_flag,
    )


def window_midpoint(bedtime_window: Any) -> Optional[int]:
    if not bedtime_window:
        return None
    parts = str(bedtime_window).split(WINDOW_SEPARATOR)
    if len(parts) != 2:
        return None
    start = hhmm_to_minutes(parts[0])
    end = hhmm_to_minutes(parts[1])
    if start is None or end is None:
        return None
    return round_half_up((start + end) / 2)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, float(value)))
