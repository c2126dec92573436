"""
Thinking-Step Tracker.

Append-only log of reasoning events for one conversation turn. A tool
step is recorded in two phases: a ``running`` record when dispatch
begins, then a terminal ``completed`` or ``error`` record with the same
id. Records are immutable; nothing is updated in place.

Usage:
    tracker = ThinkingTracker()
    step_id = tracker.start(AgentRole.EXECUTIVE, "query_leaks", "البحث في التسريبات")
    tracker.complete(step_id, "تم العثور على 3 نتيجة")

    tracker.steps   # one resolved step per id, in start order
    tracker.events  # every record, in append order
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional

from ..domain.entities import AgentRole, StepStatus, ThinkingStep

logger = logging.getLogger(__name__)


class ThinkingTracker:
    """Ordered, append-only thinking trace scoped to one turn.

    Timestamps are clamped so they never go backwards, even if the wall
    clock does.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._events: list[ThinkingStep] = []
        self._latest: dict[str, ThinkingStep] = {}
        self._last_timestamp: Optional[datetime] = None

    def _now(self) -> datetime:
        now = self._clock()
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    @staticmethod
    def _new_id() -> str:
        return f"step-{uuid.uuid4().hex[:12]}"

    def _append(self, step: ThinkingStep) -> None:
        self._events.append(step)
        self._latest[step.id] = step

    def start(self, agent: AgentRole, action: str, description: str) -> str:
        """Record a running step and return its id."""
        step = ThinkingStep(
            id=self._new_id(),
            agent=agent,
            action=action,
            description=description,
            status=StepStatus.RUNNING,
            timestamp=self._now(),
        )
        self._append(step)
        logger.debug(f"Step started: {action} ({agent.name})")
        return step.id

    def complete(self, step_id: str, result: Optional[str] = None) -> ThinkingStep:
        """Close a running step as completed."""
        return self._finish(step_id, StepStatus.COMPLETED, result)

    def fail(self, step_id: str, result: Optional[str] = None) -> ThinkingStep:
        """Close a running step as failed."""
        return self._finish(step_id, StepStatus.ERROR, result)

    def _finish(self, step_id: str, status: StepStatus, result: Optional[str]) -> ThinkingStep:
        current = self._latest.get(step_id)
        if current is None:
            raise KeyError(f"Unknown thinking step: {step_id}")
        if current.status.is_terminal:
            raise ValueError(f"Thinking step {step_id} is already {current.status.value}")

        step = replace(current, status=status, result=result, timestamp=self._now())
        self._append(step)
        return step

    def record(
        self,
        agent: AgentRole,
        action: str,
        description: str,
        status: StepStatus,
        result: Optional[str] = None,
    ) -> ThinkingStep:
        """Record a step that is terminal from the start."""
        if not status.is_terminal:
            raise ValueError("record() takes a terminal status; use start() for running steps")
        step = ThinkingStep(
            id=self._new_id(),
            agent=agent,
            action=action,
            description=description,
            status=status,
            timestamp=self._now(),
            result=result,
        )
        self._append(step)
        return step

    def fail_open_steps(self, result: str) -> int:
        """Close every still-running step as failed. Returns how many."""
        open_ids = [sid for sid, step in self._latest.items() if not step.status.is_terminal]
        for step_id in open_ids:
            self.fail(step_id, result)
        return len(open_ids)

    @property
    def events(self) -> list[ThinkingStep]:
        """Every record in append order."""
        return list(self._events)

    @property
    def steps(self) -> list[ThinkingStep]:
        """One step per id in start order, carrying its latest status.

        Each resolved step keeps the timestamp of its first record, so
        the list is ordered by time as well as by start.
        """
        first_seen: dict[str, ThinkingStep] = {}
        for event in self._events:
            first_seen.setdefault(event.id, event)
        return [
            replace(self._latest[step_id], timestamp=first.timestamp)
            for step_id, first in first_seen.items()
        ]

    def __len__(self) -> int:
        return len(self._latest)
