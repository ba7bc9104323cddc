"""
Frame-based progress ledger.

Keeps three records of task counts: the cycle currently being accumulated,
the last finished cycle, and a persisted baseline that is counted again in
every cycle. The completion ratio is always read from the last finished cycle.
"""

import logging
from copy import copy
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class Task(Enum):
    """Convenience states for tracking a single task."""
    DONE = "done"
    IN_PROGRESS = "in_progress"


@dataclass
class TaskProgress:
    """Pair of task and done counters."""
    tasks: int = 0
    done: int = 0

    def track(self, tasks: int, done: int) -> None:
        """Add tasks, some of which may already be done."""
        self.tasks += tasks
        self.done += done

        assert self.tasks >= self.done, (
            f"The last track call adding {tasks} tasks and {done} done tasks "
            f"led to more done tasks than there are tasks"
        )

    def task(self, task: Task) -> None:
        if task == Task.DONE:
            self.track(1, 1)
        else:
            self.track(1, 0)

    def clear(self) -> None:
        self.tasks = 0
        self.done = 0

    def ratio(self) -> float:
        """Return done / tasks, capped at 1.0.

        Returns:
            Completion ratio, 0.0 when no tasks were counted
        """
        if self.tasks == 0:
            return 0.0
        return min(self.done / self.tasks, 1.0)


@dataclass(frozen=True)
class LedgerSnapshot:
    """Read-only view of a ledger at one point in time."""
    current: TaskProgress
    previous: TaskProgress
    persisted: TaskProgress
    progress: float

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "current": {"tasks": self.current.tasks, "done": self.current.done},
            "previous": {"tasks": self.previous.tasks, "done": self.previous.done},
            "persisted": {"tasks": self.persisted.tasks, "done": self.persisted.done},
            "progress": self.progress,
        }


@dataclass
class ProgressLedger:
    """Keeps record of current, previous and persisted progress.

    Register work with ``track`` or ``task`` during a cycle, call
    ``finish_cycle`` exactly once at the end of it, then read ``progress``.
    Tracking several kinds of progress in parallel means using one ledger
    per kind (see ``ProgressRegistry``).
    """
    _current: TaskProgress = field(default_factory=TaskProgress)
    _previous: TaskProgress = field(default_factory=TaskProgress)
    _persisted: TaskProgress = field(default_factory=TaskProgress)

    @property
    def current(self) -> TaskProgress:
        return copy(self._current)

    @property
    def previous(self) -> TaskProgress:
        return copy(self._previous)

    @property
    def persisted(self) -> TaskProgress:
        return copy(self._persisted)

    def track(self, tasks: int, done: int) -> None:
        """Track the given amount of tasks of which some can already be done.

        Args:
            tasks: Number of tasks to add to the current cycle
            done: Number of those tasks that are already done
        """
        self._current.tasks += tasks
        self._current.done += done

    def task(self, task: Task) -> None:
        """Track a single task.

        ``ledger.task(Task.DONE)`` is the equivalent of ``ledger.track(1, 1)``
        and ``ledger.task(Task.IN_PROGRESS)`` of ``ledger.track(1, 0)``.
        """
        self._current.task(task)

    def finish_cycle(self) -> None:
        """Stop tracking for this cycle and clear the current count for the next.

        Call this once per cycle, before the progress is read.
        """
        self.track(self._persisted.tasks, self._persisted.done)
        self._previous = copy(self._current)
        self._current.clear()

        logger.debug(
            f"Cycle finished with {self._previous.done}/{self._previous.tasks} tasks done"
        )

    def progress(self) -> float:
        """Return the progress as a number between 0 and 1.

        The values are taken from the last finished cycle. A cycle that
        counted no tasks reports 0.0; use ``has_tasks`` to tell it apart
        from a cycle where nothing is done yet.
        """
        return self._previous.ratio()

    def has_tasks(self) -> bool:
        """Check whether the last finished cycle counted any tasks."""
        return self._previous.tasks > 0

    def is_finished(self) -> bool:
        """Check whether every task of the last finished cycle is done."""
        return self.has_tasks() and self._previous.done >= self._previous.tasks

    def persist_done_tasks(self, done: int) -> None:
        """Persist the given amount of tasks and mark them all as done.

        Calling ``ledger.persist_done_tasks(42)`` once is the equivalent of
        calling ``ledger.track(42, 42)`` in every cycle.
        """
        self._persisted.track(done, done)

    def persist_done(self, done: int) -> None:
        """Persist the given amount of done tasks.

        Equivalent to calling ``ledger.track(0, done)`` in every cycle.
        """
        self._persisted.track(0, done)

    def persist_tasks(self, tasks: int) -> None:
        """Persist the given amount of tasks.

        Equivalent to calling ``ledger.track(tasks, 0)`` in every cycle.
        """
        self._persisted.track(tasks, 0)

    def clear(self) -> None:
        """Reset all records, the persisted baseline included."""
        self._current.clear()
        self._previous.clear()
        self._persisted.clear()

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            current=self.current,
            previous=self.previous,
            persisted=self.persisted,
            progress=self.progress(),
        )
