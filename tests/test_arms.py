"""Tests for the arm registry and dynamic arms."""

import threading

import pytest

from focus_engine.bandit.arms import ArmRegistry, ArmStats, validate_duration
from focus_engine.bandit.context import Family
from focus_engine.errors import InvalidArm


@pytest.fixture
def registry():
    return ArmRegistry({Family.FOCUS: [25, 15, 30], Family.BREAK: [5, 10]})


class TestSeeding:
    def test_first_access_seeds_defaults(self, registry):
        arms = registry.get_arms("writing|mid|morning", Family.FOCUS)
        assert sorted(arms) == [15, 25, 30]
        assert all(s == ArmStats(0, 0.0) for s in arms.values())

    def test_break_family_uses_break_defaults(self, registry):
        arms = registry.get_arms("writing|mid|morning-break", Family.BREAK)
        assert sorted(arms) == [5, 10]

    def test_seeding_happens_once(self, registry):
        key = "writing|mid|morning"
        registry.ensure_arm(key, Family.FOCUS, 50)
        assert 50 in registry.get_arms(key, Family.FOCUS)

    def test_get_arms_returns_copy(self, registry):
        key = "writing|mid|morning"
        arms = registry.get_arms(key, Family.FOCUS)
        arms[25].pull_count = 99
        arms[99] = ArmStats()
        fresh = registry.get_arms(key, Family.FOCUS)
        assert fresh[25].pull_count == 0
        assert 99 not in fresh

    def test_concurrent_first_access_keeps_one_seed(self, registry):
        key = "reading|low|night"
        barrier = threading.Barrier(8)

        def worker(n):
            barrier.wait()
            registry.ensure_arm(key, Family.FOCUS, 40 + n)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert sorted(registry.get_arms(key, Family.FOCUS)) == [15, 25, 30] + list(range(40, 48))


class TestEnsureArm:
    def test_adds_missing_arm_at_zero(self, registry):
        key = "writing|mid|morning"
        assert registry.ensure_arm(key, Family.FOCUS, 35) is True
        assert registry.get_arms(key, Family.FOCUS)[35] == ArmStats()

    def test_existing_arm_untouched(self, registry):
        key = "writing|mid|morning"
        with registry.mutate(key, Family.FOCUS) as arms:
            arms[25].pull_count, arms[25].mean_reward = 3, 0.5
        assert registry.ensure_arm(key, Family.FOCUS, 25) is False
        assert registry.get_arms(key, Family.FOCUS)[25] == ArmStats(3, 0.5)

    @pytest.mark.parametrize("bad", [0, -5, 2.5, "25", None, True])
    def test_invalid_duration_rejected(self, registry, bad):
        key = "writing|mid|morning"
        with pytest.raises(InvalidArm):
            registry.ensure_arm(key, Family.FOCUS, bad)
        assert sorted(registry.get_arms(key, Family.FOCUS)) == [15, 25, 30]


class TestDynamicArms:
    def test_add_is_idempotent_and_ordered(self, registry):
        assert registry.add_dynamic_arm(50) is True
        assert registry.add_dynamic_arm(35) is True
        assert registry.add_dynamic_arm(50) is False
        assert registry.dynamic_arms() == [50, 35]

    def test_new_contexts_include_dynamic_arms(self, registry):
        registry.add_dynamic_arm(50)
        assert 50 in registry.get_arms("new|high|evening", Family.FOCUS)
        assert 50 in registry.get_arms("new|high|evening-break", Family.BREAK)

    def test_existing_contexts_not_widened(self, registry):
        key = "writing|mid|morning"
        before = registry.get_arms(key, Family.FOCUS)
        registry.add_dynamic_arm(50)
        assert registry.get_arms(key, Family.FOCUS) == before
        registry.ensure_arm(key, Family.FOCUS, 50)
        assert 50 in registry.get_arms(key, Family.FOCUS)

    def test_dynamic_arm_matching_default_not_duplicated(self, registry):
        registry.add_dynamic_arm(25)
        arms = registry.get_arms("x|low|night", Family.FOCUS)
        assert sorted(arms) == [15, 25, 30]

    def test_is_known_arm(self, registry):
        registry.add_dynamic_arm(50)
        assert registry.is_known_arm(Family.FOCUS, 25)
        assert registry.is_known_arm(Family.BREAK, 50)
        assert not registry.is_known_arm(Family.BREAK, 25)


class TestSnapshot:
    def test_round_trip(self, registry):
        key = "writing|mid|morning"
        registry.add_dynamic_arm(50)
        with registry.mutate(key, Family.FOCUS) as arms:
            arms[25].pull_count, arms[25].mean_reward = 2, 0.75
        snap = registry.snapshot()
        assert snap["contexts"][key]["25"] == {"pullCount": 2, "meanReward": 0.75}
        assert snap["dynamicArms"] == [50]

        other = ArmRegistry({Family.FOCUS: [25], Family.BREAK: [5]})
        other.restore(snap)
        assert other.snapshot() == snap

    def test_restore_skips_malformed_entries(self, registry):
        registry.restore({
            "contexts": {
                "a|mid|morning": {
                    "25": {"pullCount": 1, "meanReward": 0.5},
                    "abc": {"pullCount": 1, "meanReward": 0.5},
                    "-5": {"pullCount": 1, "meanReward": 0.5},
                    "30": {"pullCount": -1, "meanReward": 0.5},
                    "45": {"meanReward": 0.5},
                },
                "b|mid|morning": "garbage",
            },
            "dynamicArms": [40, "x", 0, 40],
        })
        snap = registry.snapshot()
        assert snap["contexts"] == {"a|mid|morning": {"25": {"pullCount": 1, "meanReward": 0.5}}}
        assert snap["dynamicArms"] == [40]

    def test_zero_pulls_forces_zero_mean(self, registry):
        registry.restore({"contexts": {"a|mid|morning": {"25": {"pullCount": 0, "meanReward": 0.9}}}})
        assert registry.get_arms("a|mid|morning", Family.FOCUS)[25] == ArmStats(0, 0.0)

    def test_clear(self, registry):
        registry.add_dynamic_arm(50)
        registry.get_arms("a|mid|morning", Family.FOCUS)
        registry.clear()
        assert registry.snapshot() == {"contexts": {}, "dynamicArms": []}


def test_validate_duration_accepts_integral_float():
    assert validate_duration(25.0) == 25
