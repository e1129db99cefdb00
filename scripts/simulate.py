"""
Session Simulator — drives the focus engine with a synthetic user so you can
watch recommendations converge without a real timer app.

The simulated user has a preferred focus length per (task, energy) pair.
Sessions close to the preference are usually completed; the further the
recommendation is from it, the more likely the user skips part-way through
or overrides the suggestion with their own duration.

Usage:
    # Make sure the engine is running first:
    #   python -m focus_engine.main
    # Then in a separate terminal:
    python scripts/simulate.py                   # 40 sessions, mixed contexts
    python scripts/simulate.py --sessions 200    # longer run
    python scripts/simulate.py --task writing    # one task only
    python scripts/simulate.py --seed 7          # reproducible run
"""

from __future__ import annotations

import argparse
import json
import random
import urllib.error
import urllib.request

API = "http://127.0.0.1:8766"

# (task, energy) → minutes this user actually likes to focus for
PREFERENCES = {
    ("writing", "high"): 45,
    ("writing", "mid"): 30,
    ("writing", "low"): 20,
    ("reading", "high"): 30,
    ("reading", "mid"): 25,
    ("reading", "low"): 15,
    ("coding", "high"): 60,
    ("coding", "mid"): 45,
    ("coding", "low"): 25,
}
PREFERRED_BREAK = {"high": 5, "mid": 10, "low": 15}
TIMES_OF_DAY = ["morning", "afternoon", "evening", "night"]


# ---------------------------------------------------------------------------
# Low-level HTTP helper
# ---------------------------------------------------------------------------

def _post(path: str, body: dict) -> dict | None:
    try:
        data = json.dumps(body).encode()
        req = urllib.request.Request(
            f"{API}{path}",
            data=data,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        with urllib.request.urlopen(req, timeout=3) as r:
            return json.loads(r.read())
    except (urllib.error.URLError, OSError) as e:
        print(f"  [!] Engine unreachable: {e}")
        return None


def _get(path: str) -> dict | None:
    try:
        with urllib.request.urlopen(f"{API}{path}", timeout=3) as r:
            return json.loads(r.read())
    except (urllib.error.URLError, OSError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Synthetic user
# ---------------------------------------------------------------------------

def simulate_session(rng: random.Random, task: str, energy: str, time_of_day: str) -> str | None:
    context = {"task_type": task, "energy_level": energy, "time_of_day": time_of_day}
    rec = _post("/recommendations", {**context, "focus_baseline": 25, "break_baseline": 5})
    if rec is None:
        return None

    preferred = PREFERENCES[(task, energy)]
    recommended = rec["focus_minutes"]
    gap = abs(recommended - preferred)

    # Far-off suggestions get overridden now and then
    accepted = gap <= 10 or rng.random() > 0.3
    target = recommended if accepted else preferred

    completion_p = max(0.1, 1.0 - abs(target - preferred) / 30.0)
    completed = rng.random() < completion_p
    if completed:
        actual = target
        skip_reason = "none"
    else:
        actual = rng.randint(1, max(1, target - 1))
        skip_reason = "skippedFocus"

    break_minutes = rec["break_minutes"] if completed else 0
    if completed and abs(break_minutes - PREFERRED_BREAK[energy]) > 5 and rng.random() < 0.5:
        skip_reason = "skippedBreak"
        completed = False
        break_minutes = 0

    result = _post("/outcomes/cycle", {
        **context,
        "focus_minutes": target,
        "break_minutes": break_minutes,
        "completed": completed,
        "accepted_recommendation": accepted,
        "actual_minutes": actual,
        "target_minutes": target,
        "recommended_minutes": recommended,
        "skip_reason": skip_reason,
    })
    if result is None:
        return None
    reward = result["reward"]
    reward_s = f"{reward:.2f}" if reward is not None else "--"
    return (
        f"{task:<8} {energy:<4} {time_of_day:<9} "
        f"rec {recommended:>3}m / {rec['break_minutes']:>2}m  "
        f"pref {preferred:>3}m  {'accepted' if accepted else 'override'}  "
        f"{'done' if completed else skip_reason:<12} reward {reward_s}"
    )


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

def main() -> None:
    parser = argparse.ArgumentParser(description="Focus engine session simulator")
    parser.add_argument("--sessions", type=int, default=40)
    parser.add_argument("--task", choices=sorted({t for t, _ in PREFERENCES}), default=None)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    rng = random.Random(args.seed)

    health = _get("/health")
    if health is None:
        print(f"Engine not reachable at {API}. Start it with: python -m focus_engine.main")
        return
    print(f"Engine OK: exploration rate {health['exploration_rate']}, storage {health['storage']}\n")

    tasks = [args.task] if args.task else sorted({t for t, _ in PREFERENCES})
    for i in range(args.sessions):
        task = rng.choice(tasks)
        energy = rng.choice(["low", "mid", "high"])
        line = simulate_session(rng, task, energy, rng.choice(TIMES_OF_DAY))
        if line is None:
            break
        print(f"[{i + 1:>4}] {line}")

    model = _get("/model")
    if model:
        print(f"\nLearned {len(model['contexts'])} context keys, dynamic arms: {model['dynamicArms']}")


if __name__ == "__main__":
    main()
