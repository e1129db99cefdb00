"""
/recommendations — focus and break durations for a context.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...bandit.context import Family, encode
from ...config import config
from ...planner.recommender import Baseline
from ..deps import get_engine, resolve_context
from ..schemas import (
    FamilyRecommendationIn,
    FamilyRecommendationOut,
    SessionRecommendationIn,
    SessionRecommendationOut,
)

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.post("", response_model=SessionRecommendationOut)
def recommend_session(req: SessionRecommendationIn, engine=Depends(get_engine)):
    """Recommend both a focus length and a break length for one session."""
    ctx = resolve_context(req)
    baseline = Baseline(
        focus_minutes=req.focus_baseline or config.default_focus_minutes,
        break_minutes=req.break_baseline or config.default_break_minutes,
    )
    rec = engine.recommend_session(ctx, lambda _ctx: baseline)
    return SessionRecommendationOut(
        focus_minutes=rec.focus_minutes,
        break_minutes=rec.break_minutes,
        focus_key=rec.focus_key,
        break_key=rec.break_key,
    )


@router.post("/{family}", response_model=FamilyRecommendationOut)
def recommend_family(family: Family, req: FamilyRecommendationIn, engine=Depends(get_engine)):
    """Recommend a single duration for one decision family."""
    ctx = resolve_context(req)
    if req.baseline is not None:
        baseline = req.baseline
    elif family is Family.BREAK:
        baseline = config.default_break_minutes
    else:
        baseline = config.default_focus_minutes
    return FamilyRecommendationOut(
        family=family.value,
        minutes=engine.recommend(ctx, family, baseline),
        context_key=encode(ctx, family),
    )
