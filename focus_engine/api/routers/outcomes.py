"""
/outcomes — report how a recommended session actually went.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ...bandit.context import Family, encode
from ...bandit.reward import OutcomeFacts
from ..deps import get_engine, resolve_context
from ..schemas import CycleOutcomeIn, OutcomeFields, OutcomeIn, OutcomeOut

router = APIRouter(prefix="/outcomes", tags=["outcomes"])


def _facts(req: OutcomeFields) -> OutcomeFacts:
    return OutcomeFacts(
        completed=req.completed,
        actual_minutes=req.actual_minutes,
        target_minutes=req.target_minutes,
        recommended_minutes=req.recommended_minutes,
        accepted_recommendation=req.accepted_recommendation,
        skip_reason=req.skip_reason,
    )


@router.post("", response_model=OutcomeOut, status_code=status.HTTP_202_ACCEPTED)
def report_outcome(req: OutcomeIn, engine=Depends(get_engine)):
    """Credit one session's reward to the duration that was actually used."""
    try:
        family = Family(req.family.strip().lower())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown family: {req.family!r}")
    ctx = resolve_context(req)
    reward = engine.report(ctx, family, req.chosen_minutes, _facts(req))
    return OutcomeOut(
        status="accepted" if reward is not None else "ignored",
        reward=reward,
        context_key=encode(ctx, family),
    )


@router.post("/cycle", response_model=OutcomeOut, status_code=status.HTTP_202_ACCEPTED)
def report_cycle(req: CycleOutcomeIn, engine=Depends(get_engine)):
    """Credit a finished focus+break cycle to both families."""
    ctx = resolve_context(req)
    reward = engine.report_cycle(ctx, req.focus_minutes, req.break_minutes, _facts(req))
    return OutcomeOut(
        status="accepted" if reward is not None else "ignored",
        reward=reward,
        context_key=encode(ctx, Family.FOCUS),
    )
