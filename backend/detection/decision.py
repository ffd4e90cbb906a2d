from typing import Tuple

from .rules import DecisionThresholds
from .verdict import Action, ThreatLevel


def clamp_score(score) -> int:
    return max(0, min(100, int(round(score))))


def decide(score, thresholds: DecisionThresholds = DecisionThresholds()) -> Tuple[ThreatLevel, Action]:
    """Map a risk score to (threat level, action). Medium stays ALLOW but gets logged upstream."""
    score = clamp_score(score)
    if score >= thresholds.hard_block:
        return ThreatLevel.CRITICAL, Action.HARD_BLOCK
    if score >= thresholds.soft_block:
        return ThreatLevel.HIGH, Action.SOFT_BLOCK
    if score >= thresholds.medium:
        return ThreatLevel.MEDIUM, Action.ALLOW
    if score >= thresholds.suspicious:
        return ThreatLevel.SUSPICIOUS, Action.ALLOW
    return ThreatLevel.LOW, Action.ALLOW
