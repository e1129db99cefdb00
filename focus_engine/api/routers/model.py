"""
/model — read-only dump of the learned statistics, and dynamic arm management.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..deps import get_engine
from ..schemas import DynamicArmIn, DynamicArmOut, ModelSnapshotOut

router = APIRouter(prefix="/model", tags=["model"])


@router.get("", response_model=ModelSnapshotOut)
def get_model(engine=Depends(get_engine)):
    return engine.debug_snapshot()


@router.post("/dynamic-arms", response_model=DynamicArmOut)
def add_dynamic_arm(req: DynamicArmIn, engine=Depends(get_engine)):
    """Add a duration to the candidates every newly seen context starts with."""
    added = engine.add_dynamic_arm(req.minutes)
    return DynamicArmOut(added=added, dynamicArms=engine.debug_snapshot()["dynamicArms"])
