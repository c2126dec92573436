"""
Tests for the thinking-step tracker.
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.rasid.agent.domain.entities import AgentRole, StepStatus
from src.rasid.agent.orchestrator.thinking import ThinkingTracker


class SteppingClock:
    """Returns scripted timestamps, then repeats the last."""

    def __init__(self, *times: datetime):
        self.times = list(times)

    def __call__(self) -> datetime:
        return self.times.pop(0) if len(self.times) > 1 else self.times[0]


T0 = datetime(2026, 3, 18, 12, 0, tzinfo=timezone.utc)


class TestThinkingTracker:
    """Tests for two-phase step recording."""

    def test_start_records_running_step(self):
        tracker = ThinkingTracker()
        step_id = tracker.start(AgentRole.EXECUTIVE, "query_leaks", "البحث")

        [step] = tracker.steps
        assert step.id == step_id
        assert step.status == StepStatus.RUNNING
        assert step.agent == AgentRole.EXECUTIVE
        assert step.result is None

    def test_complete_supersedes_running_record(self):
        tracker = ThinkingTracker()
        step_id = tracker.start(AgentRole.EXECUTIVE, "query_leaks", "البحث")
        tracker.complete(step_id, "3 تسريب")

        assert len(tracker.events) == 2
        [step] = tracker.steps
        assert step.status == StepStatus.COMPLETED
        assert step.result == "3 تسريب"

    def test_records_are_immutable(self):
        tracker = ThinkingTracker()
        step_id = tracker.start(AgentRole.AUDIT, "get_audit_log", "سجل")
        running = tracker.events[0]
        tracker.fail(step_id, "خطأ: x")

        assert running.status == StepStatus.RUNNING
        with pytest.raises(Exception):
            running.status = StepStatus.COMPLETED

    def test_fail_marks_error(self):
        tracker = ThinkingTracker()
        step_id = tracker.start(AgentRole.KNOWLEDGE, "get_platform_guide", "دليل")
        tracker.fail(step_id, "خطأ: topic is required")

        assert tracker.steps[0].status == StepStatus.ERROR

    def test_unknown_step_id_raises(self):
        with pytest.raises(KeyError):
            ThinkingTracker().complete("step-missing")

    def test_finishing_twice_raises(self):
        tracker = ThinkingTracker()
        step_id = tracker.start(AgentRole.EXECUTIVE, "query_leaks", "البحث")
        tracker.complete(step_id)

        with pytest.raises(ValueError):
            tracker.fail(step_id)

    def test_record_requires_terminal_status(self):
        tracker = ThinkingTracker()
        with pytest.raises(ValueError):
            tracker.record(AgentRole.GOVERNOR, "analyze_intent", "تحليل", StepStatus.RUNNING)

    def test_steps_keep_start_order(self):
        tracker = ThinkingTracker()
        first = tracker.start(AgentRole.EXECUTIVE, "a", "a")
        second = tracker.start(AgentRole.ANALYTICS, "b", "b")
        tracker.complete(second)
        tracker.complete(first)

        assert [s.id for s in tracker.steps] == [first, second]

    def test_ids_are_unique(self):
        tracker = ThinkingTracker()
        ids = {tracker.start(AgentRole.EXECUTIVE, "t", "t") for _ in range(50)}
        assert len(ids) == 50
        assert all(i.startswith("step-") for i in ids)

    def test_timestamps_never_go_backwards(self):
        clock = SteppingClock(T0, T0 - timedelta(seconds=5), T0 + timedelta(seconds=1))
        tracker = ThinkingTracker(clock=clock)

        tracker.record(AgentRole.GOVERNOR, "a", "a", StepStatus.COMPLETED)
        tracker.record(AgentRole.GOVERNOR, "b", "b", StepStatus.COMPLETED)
        tracker.record(AgentRole.GOVERNOR, "c", "c", StepStatus.COMPLETED)

        stamps = [s.timestamp for s in tracker.steps]
        assert stamps == sorted(stamps)
        assert stamps[1] == T0

    def test_resolved_step_keeps_start_timestamp(self):
        clock = SteppingClock(T0, T0 + timedelta(seconds=3))
        tracker = ThinkingTracker(clock=clock)
        step_id = tracker.start(AgentRole.EXECUTIVE, "query_leaks", "البحث")
        tracker.complete(step_id)

        assert tracker.steps[0].timestamp == T0
        assert tracker.events[1].timestamp == T0 + timedelta(seconds=3)

    def test_fail_open_steps(self):
        tracker = ThinkingTracker()
        done = tracker.start(AgentRole.EXECUTIVE, "a", "a")
        tracker.complete(done)
        tracker.start(AgentRole.EXECUTIVE, "b", "b")
        tracker.start(AgentRole.EXECUTIVE, "c", "c")

        assert tracker.fail_open_steps("timeout") == 2
        assert all(s.status.is_terminal for s in tracker.steps)
        assert [s.status for s in tracker.steps] == [
            StepStatus.COMPLETED,
            StepStatus.ERROR,
            StepStatus.ERROR,
        ]

    def test_to_dict(self):
        tracker = ThinkingTracker(clock=lambda: T0)
        step = tracker.record(
            AgentRole.GOVERNOR, "synthesize", "تجميع", StepStatus.COMPLETED, "done"
        )

        assert step.to_dict() == {
            "id": step.id,
            "agent": AgentRole.GOVERNOR.value,
            "action": "synthesize",
            "description": "تجميع",
            "status": "completed",
            "timestamp": T0.isoformat(),
            "result": "done",
        }
