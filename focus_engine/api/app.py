"""
FastAPI application — local recommendation API for the focus timer.
Runs on http://127.0.0.1:8766 by default.

The engine lives on app.state so that each call to create_app() produces a
fully independent instance with no shared module-level globals. Tests pass
their own engine (backed by a temp file or an in-memory store).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import config
from ..planner.recommender import RecommendationEngine

logger = logging.getLogger(__name__)


def create_app(engine: Optional[RecommendationEngine] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.engine = engine if engine is not None else RecommendationEngine.from_config(config)
        logger.info("Recommendation engine ready (exploration rate %.2f)", app.state.engine.exploration_rate)
        yield

    app = FastAPI(
        title="Adaptive Focus Engine",
        description="Contextual-bandit focus and break length recommendations",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import model, outcomes, recommendations

    app.include_router(recommendations.router)
    app.include_router(outcomes.router)
    app.include_router(model.router)

    @app.get("/health")
    def health(request: Request):
        eng = getattr(request.app.state, "engine", None)
        store = getattr(eng, "store", None)
        return {
            "status": "ok",
            "version": "0.1.0",
            "exploration_rate": eng.exploration_rate if eng else None,
            "storage": str(getattr(store, "path", "memory")) if eng else None,
        }

    return app


app = create_app()
