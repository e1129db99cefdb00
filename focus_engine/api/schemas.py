"""
Pydantic schemas for the FastAPI local API.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..bandit.context import Context, detect_time_of_day
from ..bandit.reward import SkipReason

# ── Context ────────────────────────────────────────────────────────────────

class ContextIn(BaseModel):
    task_type: Optional[str] = Field(None, description="Free-text task label; empty means 'default'")
    energy_level: Optional[str] = Field(None, description="low | mid | high | unset")
    time_of_day: Optional[str] = Field(
        None, description="morning | afternoon | evening | night (detected from the clock if omitted)"
    )

    def to_context(self) -> Context:
        """Raises InvalidContext for a missing or unknown energy level / time of day."""
        return Context.create(
            self.task_type,
            self.energy_level,
            self.time_of_day or detect_time_of_day(),
        )


# ── Recommendations ────────────────────────────────────────────────────────

class SessionRecommendationIn(ContextIn):
    focus_baseline: Optional[int] = Field(None, gt=0, le=240)
    break_baseline: Optional[int] = Field(None, gt=0, le=120)


class SessionRecommendationOut(BaseModel):
    focus_minutes: int
    break_minutes: int
    focus_key: str
    break_key: str


class FamilyRecommendationIn(ContextIn):
    baseline: Optional[int] = Field(None, gt=0, le=240)


class FamilyRecommendationOut(BaseModel):
    family: str
    minutes: int
    context_key: str


# ── Outcomes ───────────────────────────────────────────────────────────────

class OutcomeFields(BaseModel):
    completed: bool
    accepted_recommendation: bool = False
    actual_minutes: float = Field(..., ge=0)
    target_minutes: float = Field(..., ge=0)
    recommended_minutes: float = Field(..., ge=0)
    skip_reason: SkipReason = SkipReason.NONE


class OutcomeIn(ContextIn, OutcomeFields):
    family: str = Field("focus", description="focus | break")
    chosen_minutes: int


class CycleOutcomeIn(ContextIn, OutcomeFields):
    focus_minutes: int
    break_minutes: int = 0


class OutcomeOut(BaseModel):
    status: str
    reward: Optional[float] = None
    context_key: str


# ── Model ──────────────────────────────────────────────────────────────────

class ArmStatsOut(BaseModel):
    pullCount: int
    meanReward: float


class ModelSnapshotOut(BaseModel):
    contexts: Dict[str, Dict[str, ArmStatsOut]]
    dynamicArms: List[int]
    explorationRate: float


class DynamicArmIn(BaseModel):
    minutes: int = Field(..., gt=0, le=240)


class DynamicArmOut(BaseModel):
    added: bool
    dynamicArms: List[int]
