from __future__ import annotations

import asyncio

from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse

from provisioner.services.process_service import TaskState, get_task

router = APIRouter()

_POLL_INTERVAL = 0.1


async def _task_events(task: TaskState):
    idx = 0
    while True:
        while idx < len(task.lines):
            yield {"event": "output", "data": task.lines[idx].rstrip("\n")}
            idx += 1

        if task.done:
            if task.summary:
                yield {"event": "summary", "data": task.summary}
            yield {"event": "done", "data": str(task.exit_code)}
            return

        await asyncio.sleep(_POLL_INTERVAL)


async def _not_found():
    yield {"event": "error", "data": "Task not found"}
    yield {"event": "done", "data": "1"}


@router.get("/api/stream/{task_id}")
async def stream_output(task_id: str):
    task = get_task(task_id)
    if task is None:
        return EventSourceResponse(_not_found())
    return EventSourceResponse(_task_events(task))
