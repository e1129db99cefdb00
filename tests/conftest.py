"""
Shared pytest fixtures and configuration.
"""

import numpy as np
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from focus_engine.api.app import create_app
from focus_engine.bandit.arms import ArmRegistry
from focus_engine.bandit.context import Context, Family
from focus_engine.bandit.policy import EpsilonGreedyPolicy
from focus_engine.planner.recommender import RecommendationEngine
from focus_engine.storage.model_store import JsonFileModelStore, MemoryModelStore

FOCUS_ARMS = [15, 20, 25, 30, 45, 60]
BREAK_ARMS = [5, 10, 15, 20]


def make_engine(store=None, exploration_rate=0.0, seed=0, promotion_threshold=2):
    """Engine with the standard arm sets and a seeded RNG."""
    return RecommendationEngine(
        store=store if store is not None else MemoryModelStore(),
        registry=ArmRegistry({Family.FOCUS: FOCUS_ARMS, Family.BREAK: BREAK_ARMS}),
        policy=EpsilonGreedyPolicy(
            exploration_rate=exploration_rate,
            rng=np.random.default_rng(seed),
        ),
        promotion_threshold=promotion_threshold,
    )


@pytest.fixture
def writing_ctx():
    return Context.create("writing", "mid", "morning")


@pytest.fixture
def engine():
    """Greedy engine (no exploration) backed by an in-memory store."""
    return make_engine()


@pytest.fixture
def file_store(tmp_path):
    return JsonFileModelStore(tmp_path / "model.json")


@pytest.fixture
def app(tmp_path):
    """A fresh app per test, persisting to a temp file."""
    return create_app(make_engine(store=JsonFileModelStore(tmp_path / "model.json")))


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac


@pytest.fixture
def engine_factory():
    return make_engine
