"""
Recommendation Facade — the only entry point the rest of the application
uses to get focus/break durations and to report how a session went.

    engine = RecommendationEngine.from_config()
    ctx = Context.create("Writing", "mid", "morning")
    minutes = engine.recommend(ctx, Family.FOCUS, baseline_value=25)
    ...
    engine.report(ctx, Family.FOCUS, minutes, OutcomeFacts(
        completed=True, actual_minutes=25, target_minutes=25,
        recommended_minutes=minutes, accepted_recommendation=True,
    ))

The engine owns the model. Callers only ever receive copies.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

import numpy as np

from ..bandit.arms import ArmRegistry, validate_duration
from ..bandit.context import Context, Family, encode
from ..bandit.policy import EpsilonGreedyPolicy
from ..bandit.reward import OutcomeFacts
from ..config import Config, config
from ..errors import InvalidArm, PersistenceFailure
from ..storage.model_store import JsonFileModelStore, MemoryModelStore, ModelStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Baseline:
    """Rule-based durations for a context, supplied by the host application."""
    focus_minutes: int
    break_minutes: int


BaselineProvider = Callable[[Context], Baseline]


def constant_baseline(focus_minutes: int = 25, break_minutes: int = 5) -> BaselineProvider:
    """A provider that returns the same durations for every context."""
    baseline = Baseline(focus_minutes, break_minutes)
    return lambda _context: baseline


@dataclass(frozen=True)
class SessionRecommendation:
    focus_minutes: int
    break_minutes: int
    focus_key: str
    break_key: str


class RecommendationEngine:

    def __init__(
        self,
        store: Optional[ModelStore] = None,
        registry: Optional[ArmRegistry] = None,
        policy: Optional[EpsilonGreedyPolicy] = None,
        promotion_threshold: int = 2,
    ):
        self._store = store if store is not None else MemoryModelStore()
        self._registry = registry if registry is not None else ArmRegistry({
            Family.FOCUS: config.default_arms("focus"),
            Family.BREAK: config.default_arms("break"),
        })
        self._policy = policy if policy is not None else EpsilonGreedyPolicy(
            exploration_rate=config.exploration_rate,
            cold_start_bias=config.cold_start_bias,
        )
        self._promotion_threshold = promotion_threshold
        self._custom_counts: Dict[int, int] = {}
        self._lock = threading.Lock()
        self.load()

    @classmethod
    def from_config(
        cls,
        cfg: Config = config,
        store: Optional[ModelStore] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> "RecommendationEngine":
        return cls(
            store=store if store is not None else JsonFileModelStore(cfg.model_path),
            registry=ArmRegistry({
                Family.FOCUS: cfg.default_arms("focus"),
                Family.BREAK: cfg.default_arms("break"),
            }),
            policy=EpsilonGreedyPolicy(
                exploration_rate=cfg.exploration_rate,
                cold_start_bias=cfg.cold_start_bias,
                rng=rng,
            ),
            promotion_threshold=cfg.dynamic_arm_promotion_threshold,
        )

    @property
    def exploration_rate(self) -> float:
        return self._policy.exploration_rate

    @property
    def store(self) -> ModelStore:
        return self._store

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Replace the in-memory model with the stored snapshot. False means cold start."""
        try:
            snapshot = self._store.load()
        except PersistenceFailure as exc:
            logger.warning("Model load failed, starting with an empty model: %s", exc)
            self._registry.clear()
            return False
        self._registry.restore(snapshot)
        return bool(snapshot["contexts"] or snapshot["dynamicArms"])

    def reset(self) -> None:
        """Forget everything learned so far, including dynamic arms."""
        self._registry.clear()
        with self._lock:
            self._custom_counts.clear()
        logger.warning("Model reset")
        self._persist()

    # ------------------------------------------------------------------
    # Recommendations
    # ------------------------------------------------------------------

    def recommend(self, context: Context, family: Union[Family, str], baseline_value: int) -> int:
        family = Family(family)
        key = encode(context, family)
        try:
            arms = self._registry.get_arms(key, family)
            choice = self._policy.select(arms, baseline_value)
        except Exception:
            logger.exception("Selection failed for %s, falling back to baseline %s", key, baseline_value)
            return baseline_value
        logger.debug("Recommended %s min for %s (baseline %s)", choice, key, baseline_value)
        return choice

    def recommend_session(self, context: Context, baseline: BaselineProvider) -> SessionRecommendation:
        """Focus and break durations for one session, each from its own family."""
        rule = baseline(context)
        return SessionRecommendation(
            focus_minutes=self.recommend(context, Family.FOCUS, rule.focus_minutes),
            break_minutes=self.recommend(context, Family.BREAK, rule.break_minutes),
            focus_key=encode(context, Family.FOCUS),
            break_key=encode(context, Family.BREAK),
        )

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def report(
        self,
        context: Context,
        family: Union[Family, str],
        chosen_duration: int,
        outcome: OutcomeFacts,
    ) -> Optional[float]:
        """
        Learn from one finished session. Returns the reward applied, or None
        if the duration or the outcome was rejected.
        """
        family = Family(family)
        reward = self._reward(outcome, encode(context, family))
        if reward is None or not self._apply(context, family, chosen_duration, reward):
            return None
        self._persist()
        return reward

    def report_cycle(
        self,
        context: Context,
        focus_duration: int,
        break_duration: int,
        outcome: OutcomeFacts,
    ) -> Optional[float]:
        """
        Learn from a full focus+break cycle: the focus outcome's reward is
        credited to both the focus arm and the break arm that followed it.
        A skipped break (duration <= 0) only updates the focus family.
        """
        reward = self._reward(outcome, encode(context, Family.FOCUS))
        if reward is None:
            return None
        applied_focus = self._apply(context, Family.FOCUS, focus_duration, reward)
        applied_break = break_duration > 0 and self._apply(context, Family.BREAK, break_duration, reward)
        if not (applied_focus or applied_break):
            return None
        self._persist()
        return reward

    @staticmethod
    def _reward(outcome: OutcomeFacts, key: str) -> Optional[float]:
        try:
            return outcome.reward()
        except (KeyError, ValueError) as exc:
            logger.warning("Ignoring outcome for %s: %s", key, exc)
            return None

    def _apply(self, context: Context, family: Family, duration, reward: float) -> bool:
        key = encode(context, family)
        try:
            duration = validate_duration(duration)
            with self._registry.mutate(key, family) as arms:
                self._registry.ensure_arm(key, family, duration)
                stats = self._policy.update(arms, duration, reward)
        except InvalidArm as exc:
            logger.warning("Ignoring outcome for %s: %s", key, exc)
            return False

        logger.info(
            "Updated %s arm %d: reward=%.3f mean=%.3f pulls=%d",
            key, duration, reward, stats.mean_reward, stats.pull_count,
        )
        self._note_custom_duration(family, duration)
        return True

    # ------------------------------------------------------------------
    # Dynamic arms
    # ------------------------------------------------------------------

    def add_dynamic_arm(self, duration) -> bool:
        try:
            added = self._registry.add_dynamic_arm(duration)
        except InvalidArm as exc:
            logger.warning("Rejected dynamic arm: %s", exc)
            return False
        if added:
            self._persist()
        return added

    def _note_custom_duration(self, family: Family, duration: int) -> None:
        # Dynamic arms seed both families, so only focus lengths are promoted
        if family is not Family.FOCUS:
            return
        if self._promotion_threshold <= 0 or self._registry.is_known_arm(family, duration):
            return
        with self._lock:
            count = self._custom_counts.get(duration, 0) + 1
            self._custom_counts[duration] = count
        if count >= self._promotion_threshold:
            logger.info("Custom duration %d min chosen %d times, promoting", duration, count)
            if self._registry.add_dynamic_arm(duration):
                with self._lock:
                    self._custom_counts.pop(duration, None)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def debug_snapshot(self) -> Dict[str, Any]:
        snapshot = self._registry.snapshot()
        snapshot["explorationRate"] = self._policy.exploration_rate
        return snapshot

    def _persist(self) -> None:
        try:
            self._store.save(self._registry.snapshot)
        except PersistenceFailure as exc:
            logger.error("Model save failed, continuing in memory only: %s", exc)
