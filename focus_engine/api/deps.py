"""
Shared route dependencies.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from ..bandit.context import Context
from ..errors import InvalidContext
from .schemas import ContextIn


def get_engine(request: Request):
    """Dependency — resolved by the app lifespan state."""
    return request.app.state.engine


def resolve_context(body: ContextIn) -> Context:
    try:
        return body.to_context()
    except InvalidContext as exc:
        raise HTTPException(status_code=422, detail=str(exc))
