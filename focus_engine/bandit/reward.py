"""
Reward Model — turns the facts of a finished (or abandoned) session into a
scalar learning signal in [0, 1].

Completed sessions earn the fraction of the committed duration that was
actually spent (never less than a small floor), with a bonus for trusting
the recommendation.
Abandoned sessions earn the same fraction scaled down by a penalty that
depends on what was skipped; every penalty factor is below 1, so a partial
session is always worth less than a completed one with the same ratio.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class SkipReason(str, Enum):
    NONE = "none"
    SKIPPED_FOCUS = "skippedFocus"
    SKIPPED_BREAK = "skippedBreak"


ACCEPTANCE_BONUS = 0.1

# Least a completed session can earn, so it still beats an abandoned one at ratio 0
COMPLETION_FLOOR = 0.05

# Multiplier applied to the completion ratio when the session was not completed
SKIP_PENALTY = {
    SkipReason.SKIPPED_FOCUS: 0.5,   # walked away from the focus block itself
    SkipReason.SKIPPED_BREAK: 0.8,   # focus block done, break cut short
    SkipReason.NONE: 0.6,
}


def _finite(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def calculate_reward(
    completed: bool,
    accepted_recommendation: bool,
    actual_minutes: float,
    target_minutes: float,
    recommended_minutes: float,
    skip_reason: SkipReason = SkipReason.NONE,
) -> float:
    target = _finite(target_minutes)
    if target <= 0:
        return 0.0

    ratio = max(0.0, min(_finite(actual_minutes) / target, 1.0))

    if completed:
        reward = max(ratio, COMPLETION_FLOOR)
        if accepted_recommendation and target == _finite(recommended_minutes):
            reward += ACCEPTANCE_BONUS
        return min(reward, 1.0)

    return ratio * SKIP_PENALTY[SkipReason(skip_reason)]


@dataclass(frozen=True)
class OutcomeFacts:
    """Everything the host knows about how a session ended."""
    completed: bool
    actual_minutes: float
    target_minutes: float
    recommended_minutes: float
    accepted_recommendation: bool = False
    skip_reason: SkipReason = SkipReason.NONE

    def reward(self) -> float:
        return calculate_reward(
            completed=self.completed,
            accepted_recommendation=self.accepted_recommendation,
            actual_minutes=self.actual_minutes,
            target_minutes=self.target_minutes,
            recommended_minutes=self.recommended_minutes,
            skip_reason=self.skip_reason,
        )
