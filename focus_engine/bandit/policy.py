"""
Bandit Policy — epsilon-greedy selection with a cold-start bias toward the
rule-based baseline, plus the incremental running-mean update.

Selection for one request:
  1. empty arm set                   → baseline value
  2. exploration draw (p = epsilon)  → unpulled baseline arm if present,
                                       otherwise a uniformly random arm
  3. exploitation, nothing pulled    → baseline value
  4. exploitation                    → best mean reward, ties broken by
                                       distance to baseline, then fewer pulls,
                                       then shorter duration
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

import numpy as np

from ..errors import InvalidArm
from .arms import ArmStats

logger = logging.getLogger(__name__)


class EpsilonGreedyPolicy:

    def __init__(
        self,
        exploration_rate: float = 0.1,
        cold_start_bias: bool = True,
        rng: Optional[np.random.Generator] = None,
    ):
        if not 0.0 <= exploration_rate <= 1.0:
            raise ValueError("exploration_rate must be between 0 and 1")
        self.exploration_rate = exploration_rate
        self.cold_start_bias = cold_start_bias
        self._rng = rng if rng is not None else np.random.default_rng()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(
        self,
        arm_set: Mapping[int, ArmStats],
        baseline_value: int,
        exploration_rate: Optional[float] = None,
    ) -> int:
        if not arm_set:
            return baseline_value

        rate = self.exploration_rate if exploration_rate is None else exploration_rate
        if rate > 0 and self._rng.random() < rate:
            return self._explore(arm_set, baseline_value)
        return self._exploit(arm_set, baseline_value)

    def _explore(self, arm_set: Mapping[int, ArmStats], baseline_value: int) -> int:
        baseline_stats = arm_set.get(baseline_value)
        if self.cold_start_bias and baseline_stats is not None and baseline_stats.pull_count == 0:
            logger.debug("Exploring unpulled baseline arm %d", baseline_value)
            return baseline_value
        durations = sorted(arm_set)
        choice = durations[int(self._rng.integers(len(durations)))]
        logger.debug("Exploring random arm %d", choice)
        return choice

    @staticmethod
    def _exploit(arm_set: Mapping[int, ArmStats], baseline_value: int) -> int:
        if all(s.pull_count == 0 for s in arm_set.values()):
            return baseline_value

        def rank(item):
            duration, stats = item
            return (
                -stats.mean_reward,
                abs(duration - baseline_value),
                stats.pull_count,
                duration,
            )

        return min(arm_set.items(), key=rank)[0]

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    @staticmethod
    def update(arm_set: Mapping[int, ArmStats], duration: int, reward: float) -> ArmStats:
        """
        Fold *reward* into the running mean of *duration*'s arm.
        Caller must hold the arm set's lock.
        """
        stats = arm_set.get(duration)
        if stats is None:
            raise InvalidArm(duration, f"arm {duration!r} is not in this arm set")
        reward = max(0.0, min(float(reward), 1.0))
        stats.mean_reward += (reward - stats.mean_reward) / (stats.pull_count + 1)
        stats.pull_count += 1
        return stats.copy()
