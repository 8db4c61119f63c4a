from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from provisioner.config import STACKS_DIRNAME, WORKSPACE_DIRNAME
from provisioner.errors import InvalidInput
from provisioner.main_templates import render_summary
from provisioner.services import (
    docker_service,
    identity_service,
    process_service,
    stack_service,
    workspace_service,
)
from provisioner.services.executor_service import SudoExecutor
from provisioner.services.provision_service import Provisioner

router = APIRouter()


def _stacks_dir():
    return identity_service.resolve_identity().home / WORKSPACE_DIRNAME / STACKS_DIRNAME


@router.get("/api/stacks")
async def get_stacks():
    stacks = stack_service.list_stacks(_stacks_dir())
    result = []
    for s in stacks:
        result.append({**asdict(s), "busy": process_service.is_stack_busy(s.name)})
    return result


@router.get("/api/stacks/{name}")
async def get_stack(name: str):
    stack = stack_service.get_stack(_stacks_dir(), name)
    if stack is None:
        raise HTTPException(status_code=404, detail=f'Stack "{name}" not found.')
    return {**asdict(stack), "busy": process_service.is_stack_busy(stack.name)}


@router.post("/api/stacks/{name}/provision")
async def provision_stack(name: str):
    try:
        name = workspace_service.validate_name(name)
    except InvalidInput as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)

    identity = identity_service.resolve_identity()

    def _script(task: process_service.TaskState) -> str:
        executor = SudoExecutor(sink=task.emit)
        summary = Provisioner(identity, executor, output=task.emit).provision(name)
        return render_summary("provision_summary.txt.j2", summary)

    task = await process_service.run_script(_script, name, f"provision {name}")
    return {"task_id": task.task_id, "command": task.command}


@router.get("/api/tasks/{task_id}")
async def get_task(task_id: str):
    task = process_service.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return {
        "task_id": task.task_id,
        "command": task.command,
        "done": task.done,
        "exit_code": task.exit_code,
        "lines": task.lines,
        "summary": task.summary,
    }


@router.get("/api/status")
async def status():
    engine = docker_service.engine_status()
    stacks = stack_service.list_stacks(_stacks_dir())
    return {
        "docker": asdict(engine),
        "shared_group": identity_service.group_exists(identity_service.GroupPolicy().group),
        "stacks_total": len(stacks),
    }
