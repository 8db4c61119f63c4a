from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable

from provisioner.errors import ProvisionError

logger = logging.getLogger(__name__)

# Per-stack locks to prevent concurrent provisioning of the same stack
_stack_locks: dict[str, asyncio.Lock] = {}

# In-memory task store
_tasks: dict[str, "TaskState"] = {}

# Task retention: max age in seconds and max count
_TASK_MAX_AGE = 3600  # 1 hour
_TASK_MAX_COUNT = 200


@dataclass
class TaskState:
    task_id: str
    command: str
    stack_name: str
    lines: list[str] = field(default_factory=list)
    summary: str = ""
    done: bool = False
    exit_code: int | None = None
    created_at: float = field(default_factory=time.time)

    def emit(self, line: str) -> None:
        self.lines.append(line)


def _get_lock(stack_name: str) -> asyncio.Lock:
    if stack_name not in _stack_locks:
        _stack_locks[stack_name] = asyncio.Lock()
    return _stack_locks[stack_name]


def _cleanup_tasks() -> None:
    """Remove old completed tasks to prevent memory leaks."""
    now = time.time()
    to_remove = [
        tid for tid, t in _tasks.items()
        if t.done and (now - t.created_at) > _TASK_MAX_AGE
    ]
    for tid in to_remove:
        del _tasks[tid]

    if len(_tasks) > _TASK_MAX_COUNT:
        completed = sorted(
            ((tid, t) for tid, t in _tasks.items() if t.done),
            key=lambda x: x[1].created_at,
        )
        excess = len(_tasks) - _TASK_MAX_COUNT
        for tid, _ in completed[:excess]:
            del _tasks[tid]


def _new_task(stack_name: str, label: str) -> TaskState:
    ts = TaskState(task_id=str(uuid.uuid4()), command=label, stack_name=stack_name)
    _tasks[ts.task_id] = ts
    return ts


def _failed_task(stack_name: str, label: str, message: str) -> TaskState:
    ts = _new_task(stack_name, label)
    ts.lines.append(f"{message}\n")
    ts.done = True
    ts.exit_code = 1
    return ts


def get_task(task_id: str) -> TaskState | None:
    return _tasks.get(task_id)


def is_stack_busy(stack_name: str) -> bool:
    lock = _stack_locks.get(stack_name)
    return lock is not None and lock.locked()


def _run_blocking(script_fn: Callable[[TaskState], str], ts: TaskState) -> None:
    try:
        ts.summary = script_fn(ts)
        ts.exit_code = 0
    except ProvisionError as exc:
        # Tool output was already streamed into ts.lines by the executor sink
        ts.lines.append(f"Error: {exc}\n")
        ts.exit_code = exc.exit_code
    except Exception as exc:
        logger.exception("Task %s failed", ts.command)
        ts.lines.append(f"Error: {exc}\n")
        ts.exit_code = 1


async def run_script(
    script_fn: Callable[[TaskState], str],
    stack_name: str,
    label: str,
) -> TaskState:
    """Run a blocking provisioning script in a worker thread, streaming output into a TaskState.

    script_fn receives the TaskState (to append lines) and returns the rendered
    summary. ProvisionError sets the task's exit code from the error.
    """
    _cleanup_tasks()

    lock = _get_lock(stack_name)
    if lock.locked():
        return _failed_task(stack_name, label, f"Operation '{stack_name}' is already running.")

    ts = _new_task(stack_name, label)

    async def _run():
        async with lock:
            try:
                await asyncio.to_thread(_run_blocking, script_fn, ts)
            finally:
                ts.done = True

    asyncio.create_task(_run())
    await asyncio.sleep(0.05)
    return ts
