"""
Integration tests for the FastAPI application.
Uses httpx.AsyncClient with the ASGI transport (no running server needed).
Fixtures are provided by tests/conftest.py.
"""

from __future__ import annotations

import json

import pytest

CTX = {"task_type": "Writing", "energy_level": "mid", "time_of_day": "morning"}


def _outcome(**overrides):
    body = {
        **CTX,
        "family": "focus",
        "chosen_minutes": 25,
        "completed": True,
        "accepted_recommendation": True,
        "actual_minutes": 25,
        "target_minutes": 25,
        "recommended_minutes": 25,
    }
    body.update(overrides)
    return body


class TestHealth:
    async def test_health_ok(self, client):
        r = await client.get("/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["exploration_rate"] == 0.0
        assert body["storage"].endswith("model.json")


class TestRecommendations:
    async def test_cold_session_returns_baselines(self, client):
        r = await client.post("/recommendations", json={**CTX, "focus_baseline": 25, "break_baseline": 5})
        assert r.status_code == 200
        body = r.json()
        assert body["focus_minutes"] == 25
        assert body["break_minutes"] == 5
        assert body["focus_key"] == "writing|mid|morning"
        assert body["break_key"] == "writing|mid|morning-break"

    async def test_default_baselines_used_when_omitted(self, client):
        r = await client.post("/recommendations", json=CTX)
        assert r.status_code == 200
        assert r.json()["focus_minutes"] == 25
        assert r.json()["break_minutes"] == 5

    async def test_single_family(self, client):
        r = await client.post("/recommendations/break", json={**CTX, "baseline": 10})
        assert r.status_code == 200
        assert r.json() == {"family": "break", "minutes": 10, "context_key": "writing|mid|morning-break"}

    async def test_unknown_family_returns_422(self, client):
        r = await client.post("/recommendations/nap", json=CTX)
        assert r.status_code == 422

    async def test_missing_energy_returns_422(self, client):
        r = await client.post("/recommendations", json={"task_type": "writing", "time_of_day": "morning"})
        assert r.status_code == 422
        assert "energy_level" in r.json()["detail"]

    async def test_unknown_time_of_day_returns_422(self, client):
        r = await client.post("/recommendations", json={**CTX, "time_of_day": "brunch"})
        assert r.status_code == 422

    async def test_time_of_day_detected_when_omitted(self, client):
        r = await client.post("/recommendations/focus", json={"task_type": "writing", "energy_level": "low"})
        assert r.status_code == 200
        key = r.json()["context_key"]
        assert key.split("|")[-1] in {"morning", "afternoon", "evening", "night"}

    async def test_non_positive_baseline_returns_422(self, client):
        r = await client.post("/recommendations", json={**CTX, "focus_baseline": 0})
        assert r.status_code == 422


class TestOutcomes:
    async def test_report_then_recommend(self, client):
        r = await client.post("/outcomes", json=_outcome())
        assert r.status_code == 202
        body = r.json()
        assert body["status"] == "accepted"
        assert body["reward"] == pytest.approx(1.0)

        r = await client.post("/recommendations/focus", json={**CTX, "baseline": 30})
        assert r.json()["minutes"] == 25

    async def test_skipped_focus_reward(self, client):
        r = await client.post("/outcomes", json=_outcome(
            completed=False,
            accepted_recommendation=False,
            actual_minutes=10,
            skip_reason="skippedFocus",
        ))
        assert r.status_code == 202
        assert 0.0 < r.json()["reward"] < 0.4

    async def test_invalid_duration_is_ignored(self, client):
        r = await client.post("/outcomes", json=_outcome(chosen_minutes=0))
        assert r.status_code == 202
        assert r.json()["status"] == "ignored"
        assert r.json()["reward"] is None

    async def test_unknown_family_returns_422(self, client):
        r = await client.post("/outcomes", json=_outcome(family="nap"))
        assert r.status_code == 422

    async def test_unknown_skip_reason_returns_422(self, client):
        r = await client.post("/outcomes", json=_outcome(skip_reason="gotBored"))
        assert r.status_code == 422

    async def test_report_persists_to_disk(self, client, tmp_path):
        await client.post("/outcomes", json=_outcome())
        saved = json.loads((tmp_path / "model.json").read_text())
        assert saved["contexts"]["writing|mid|morning"]["25"]["pullCount"] == 1

    async def test_cycle(self, client):
        r = await client.post("/outcomes/cycle", json={
            **CTX,
            "focus_minutes": 25,
            "break_minutes": 10,
            "completed": True,
            "accepted_recommendation": True,
            "actual_minutes": 25,
            "target_minutes": 25,
            "recommended_minutes": 25,
        })
        assert r.status_code == 202
        model = (await client.get("/model")).json()
        assert model["contexts"]["writing|mid|morning"]["25"]["pullCount"] == 1
        assert model["contexts"]["writing|mid|morning-break"]["10"]["pullCount"] == 1


class TestModel:
    async def test_empty_model(self, client):
        r = await client.get("/model")
        assert r.status_code == 200
        assert r.json() == {"contexts": {}, "dynamicArms": [], "explorationRate": 0.0}

    async def test_add_dynamic_arm(self, client):
        r = await client.post("/model/dynamic-arms", json={"minutes": 50})
        assert r.status_code == 200
        assert r.json() == {"added": True, "dynamicArms": [50]}
        r = await client.post("/model/dynamic-arms", json={"minutes": 50})
        assert r.json() == {"added": False, "dynamicArms": [50]}

    async def test_dynamic_arm_seeds_new_contexts(self, client):
        await client.post("/model/dynamic-arms", json={"minutes": 50})
        await client.post("/recommendations", json=CTX)
        model = (await client.get("/model")).json()
        assert "50" in model["contexts"]["writing|mid|morning"]
        assert "50" in model["contexts"]["writing|mid|morning-break"]

    async def test_invalid_dynamic_arm_returns_422(self, client):
        r = await client.post("/model/dynamic-arms", json={"minutes": 0})
        assert r.status_code == 422
