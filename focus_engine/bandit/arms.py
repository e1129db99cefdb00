"""
Arm Registry — owns every context's candidate durations and their statistics.

An arm set is materialised the first time a key is seen, seeded with the
family's default durations plus whatever dynamic arms exist at that moment.
After that it only ever grows, through ensure_arm() when an outcome is
reported for a duration the set did not contain.

Locking:
  - one registry lock, held only while a key's arm set is inserted
  - one re-entrant lock per key, held for every read or mutation of that set
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Union

from ..errors import InvalidArm
from .context import Family

logger = logging.getLogger(__name__)

ArmSet = Dict[int, "ArmStats"]


@dataclass
class ArmStats:
    pull_count: int = 0
    mean_reward: float = 0.0

    def copy(self) -> "ArmStats":
        return ArmStats(self.pull_count, self.mean_reward)

    def to_dict(self) -> Dict[str, Any]:
        return {"pullCount": self.pull_count, "meanReward": self.mean_reward}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ArmStats":
        pull_count = int(raw["pullCount"])
        if pull_count < 0:
            raise ValueError(f"negative pullCount: {pull_count}")
        if pull_count == 0:
            return cls()
        mean = max(0.0, min(float(raw["meanReward"]), 1.0))
        return cls(pull_count, mean)


def validate_duration(duration) -> int:
    """Return *duration* as an int, or raise InvalidArm if it is not a positive whole number."""
    if isinstance(duration, bool):
        raise InvalidArm(duration)
    try:
        value = int(duration)
    except (TypeError, ValueError):
        raise InvalidArm(duration) from None
    if value != duration or value <= 0:
        raise InvalidArm(duration)
    return value


class ArmRegistry:

    def __init__(self, default_arms: Mapping[Family, Iterable[int]]):
        self._defaults: Dict[Family, List[int]] = {
            Family(f): sorted({validate_duration(d) for d in arms})
            for f, arms in default_arms.items()
        }
        self._arm_sets: Dict[str, ArmSet] = {}
        self._key_locks: Dict[str, threading.RLock] = {}
        self._dynamic: List[int] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Arm universe
    # ------------------------------------------------------------------

    def default_arms(self, family: Union[Family, str]) -> List[int]:
        return list(self._defaults.get(Family(family), []))

    def dynamic_arms(self) -> List[int]:
        with self._lock:
            return list(self._dynamic)

    def is_known_arm(self, family: Union[Family, str], duration: int) -> bool:
        return duration in self._defaults.get(Family(family), []) or duration in self.dynamic_arms()

    def add_dynamic_arm(self, duration) -> bool:
        """Append *duration* to the global dynamic arm list. Returns False if already present."""
        duration = validate_duration(duration)
        with self._lock:
            if duration in self._dynamic:
                return False
            self._dynamic.append(duration)
        logger.info("Added dynamic arm: %d min", duration)
        return True

    # ------------------------------------------------------------------
    # Per-key arm sets
    # ------------------------------------------------------------------

    def get_arms(self, key: str, family: Union[Family, str]) -> ArmSet:
        """Return a copy of the key's arm set, creating it on first access."""
        with self.mutate(key, family) as arms:
            return {d: s.copy() for d, s in arms.items()}

    def ensure_arm(self, key: str, family: Union[Family, str], duration) -> bool:
        """Add *duration* to the key's arm set if absent. Returns True if it was added."""
        duration = validate_duration(duration)
        with self.mutate(key, family) as arms:
            if duration in arms:
                return False
            arms[duration] = ArmStats()
        logger.debug("Arm %d min added to %s", duration, key)
        return True

    def has_key(self, key: str) -> bool:
        with self._lock:
            return key in self._arm_sets

    @contextmanager
    def mutate(self, key: str, family: Union[Family, str]) -> Iterator[ArmSet]:
        """
        Yield the live arm set for *key* while holding that key's lock.
        Only the facade and the methods above may use this.
        """
        arms, lock = self._materialise(key, Family(family))
        with lock:
            yield arms

    def _materialise(self, key: str, family: Family):
        with self._lock:
            arms = self._arm_sets.get(key)
            if arms is None:
                seed = list(self._defaults.get(family, [])) + self._dynamic
                arms = {d: ArmStats() for d in seed}
                self._arm_sets[key] = arms
                self._key_locks[key] = threading.RLock()
                logger.debug("Seeded %s with arms %s", key, sorted(arms))
            return arms, self._key_locks[key]

    # ------------------------------------------------------------------
    # Snapshot / restore
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the whole model in the persisted JSON layout."""
        with self._lock:
            items = [(k, arms, self._key_locks[k]) for k, arms in self._arm_sets.items()]
            dynamic = list(self._dynamic)

        contexts: Dict[str, Dict[str, Any]] = {}
        for key, arms, lock in items:
            with lock:
                contexts[key] = {str(d): s.to_dict() for d, s in sorted(arms.items())}
        return {"contexts": contexts, "dynamicArms": dynamic}

    def restore(self, snapshot: Mapping[str, Any]) -> None:
        """Replace the model with *snapshot*, skipping entries that do not parse."""
        arm_sets: Dict[str, ArmSet] = {}
        for key, raw_arms in (snapshot.get("contexts") or {}).items():
            if not isinstance(raw_arms, Mapping):
                logger.warning("Skipping malformed arm set for %r", key)
                continue
            arms: ArmSet = {}
            for raw_duration, raw_stats in raw_arms.items():
                try:
                    arms[validate_duration(int(raw_duration))] = ArmStats.from_dict(raw_stats)
                except (InvalidArm, KeyError, TypeError, ValueError):
                    logger.warning("Skipping malformed arm %r in %r", raw_duration, key)
            arm_sets[str(key)] = arms

        dynamic: List[int] = []
        for raw in snapshot.get("dynamicArms") or []:
            try:
                duration = validate_duration(raw)
            except InvalidArm:
                logger.warning("Skipping malformed dynamic arm %r", raw)
                continue
            if duration not in dynamic:
                dynamic.append(duration)

        with self._lock:
            self._arm_sets = arm_sets
            self._key_locks = {k: threading.RLock() for k in arm_sets}
            self._dynamic = dynamic

    def clear(self) -> None:
        with self._lock:
            self._arm_sets = {}
            self._key_locks = {}
            self._dynamic = []
