"""Tests for per-plan locking."""

import threading
import time

from journal_app.state.locks import PlanLockRegistry


class TestPlanLockRegistry:
    """Test per-plan lock handout."""

    def test_same_plan_same_lock(self):
        registry = PlanLockRegistry()
        assert registry.lock_for("a") is registry.lock_for("a")
        assert registry.lock_for("a") is not registry.lock_for("b")
        assert len(registry) == 2

    def test_reentrant(self):
        registry = PlanLockRegistry()
        with registry.hold("a"):
            with registry.hold("a"):
                pass

    def test_discard(self):
        registry = PlanLockRegistry()
        registry.lock_for("a")
        registry.discard("a")
        registry.discard("missing")
        assert len(registry) == 0

    def test_serializes_same_plan(self):
        registry = PlanLockRegistry()
        active = []
        overlaps = []

        def worker():
            with registry.hold("a"):
                active.append(1)
                if len(active) > 1:
                    overlaps.append(True)
                time.sleep(0.01)
                active.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []
