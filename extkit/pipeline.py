"""Transactional task pipeline.

A :class:`Pipeline` runs an ordered list of :class:`Task` objects as a single
all-or-nothing unit:

1. Tasks run strictly in declaration order, each ``do()`` finishing before
   the next one starts.
2. When a task raises, it is marked ``FAILED`` and iteration stops.
3. Every ``SUCCEEDED`` task is undone in reverse order, then the failed task
   itself is undone to clean up whatever it managed to do before raising.
4. A :class:`~extkit.errors.PipelineError` is raised from the originating
   exception.  Errors raised by ``undo()`` are collected on it but never
   replace the original cause.

Nothing is retried.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from enum import Enum

from rich.markup import escape

from extkit.errors import PipelineError
from extkit.utils import format_duration, print_step, print_warning


class TaskState(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class Task:
    """An atomic, independently reversible unit of work.

    Subclasses implement :meth:`do` and :meth:`undo`.  ``undo`` must be safe
    to call whether ``do`` completed, stopped half-way, or never ran.
    """

    name: str = "task"

    def do(self) -> None:
        raise NotImplementedError

    def undo(self) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class CallbackTask(Task):
    """A task assembled from two plain callables."""

    def __init__(
        self,
        name: str,
        forward: Callable[[], None],
        backward: Callable[[], None] | None = None,
    ) -> None:
        self.name = name
        self.forward = forward
        self.backward = backward or (lambda: None)

    def do(self) -> None:
        self.forward()

    def undo(self) -> None:
        self.backward()


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class Pipeline:
    """Ordered tasks executed with all-or-nothing rollback.

    Attributes:
        tasks: The tasks, in execution order.
        states: Per-task outcome, index-aligned with ``tasks``.
        rollback_errors: Errors raised by ``undo`` during the last rollback.
    """

    def __init__(self, tasks: Sequence[Task], *, verbose: bool = False) -> None:
        self.tasks: list[Task] = list(tasks)
        self.states: list[TaskState] = [TaskState.PENDING] * len(self.tasks)
        self.rollback_errors: list[BaseException] = []
        self.verbose = verbose
        self._ran = False

    def run(self) -> None:
        """Run every task, rolling back all of them if one fails.

        Raises:
            PipelineError: A task failed; the filesystem has been rolled back.
            RuntimeError: The pipeline was already run.
        """
        if self._ran:
            raise RuntimeError("A pipeline can only be run once")
        self._ran = True

        total = len(self.tasks)
        for index, task in enumerate(self.tasks):
            if self.verbose:
                print_step(index + 1, total, task.name)
            started = time.monotonic()
            try:
                task.do()
            except Exception as exc:
                self.states[index] = TaskState.FAILED
                if self.verbose:
                    print_warning(
                        f"  {escape(task.name)} failed after "
                        f"{format_duration(time.monotonic() - started)}, rolling back"
                    )
                self.rollback()
                raise PipelineError(task.name, exc, self.rollback_errors) from exc
            self.states[index] = TaskState.SUCCEEDED

    def rollback(self) -> list[BaseException]:
        """Undo succeeded tasks in reverse order, then the failed task.

        Returns the errors raised by ``undo`` calls; each is also reported as
        a warning.
        """
        self.rollback_errors = []
        succeeded = [
            task
            for task, state in zip(self.tasks, self.states)
            if state is TaskState.SUCCEEDED
        ]
        failed = [
            task
            for task, state in zip(self.tasks, self.states)
            if state is TaskState.FAILED
        ]
        for task in [*reversed(succeeded), *failed]:
            try:
                task.undo()
            except Exception as exc:
                self.rollback_errors.append(exc)
                print_warning(f"Failed to undo {escape(task.name)}: {escape(str(exc))}")
        return self.rollback_errors
