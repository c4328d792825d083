"""Task API routes."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.task import (
    SubtaskPayload,
    SubtaskUpdateRequest,
    SubtaskUpdateResponse,
    TaskCreateRequest,
    TaskCreateResponse,
    TaskDeleteResponse,
    TaskListResponse,
    TaskPayload,
)
from app.core.auth import get_current_user_id
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.task_creation import create_task_from_input
from app.services.task_store import delete_task, list_tasks, update_subtask_checked

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/tasks",
    response_model=TaskCreateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["tasks"],
)
def create_task_endpoint(
    payload: TaskCreateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TaskCreateResponse:
    """Break free-text input into subtasks and store the result."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": "/tasks",
        "user_id": str(user_id),
        "text_length": len(payload.task),
        "request_id": request_id,
    }

    start_time = perf_counter()
    success = False
    try:
        with trace("task.create", metadata=metadata, user_id=str(user_id), request_id=request_id):
            task = create_task_from_input(db, user_id, payload.task, request_id=request_id)
            success = True
    finally:
        latency_ms = (perf_counter() - start_time) * 1000
        log_metric("task.create.success", 1 if success else 0, metadata={"user_id": str(user_id)})
        logger.info("POST /tasks completed in %.0fms (success=%s)", latency_ms, success)

    return TaskCreateResponse(task=TaskPayload.model_validate(task))


@router.get("/tasks", response_model=TaskListResponse, tags=["tasks"])
def list_tasks_endpoint(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TaskListResponse:
    """List the caller's tasks, newest first."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "task.list",
        metadata={"route": "/tasks", "user_id": str(user_id), "request_id": request_id},
        user_id=str(user_id),
        request_id=request_id,
    ):
        tasks = list_tasks(db, user_id)

    log_metric("task.list.count", len(tasks), metadata={"user_id": str(user_id)})
    return TaskListResponse(tasks=[TaskPayload.model_validate(task) for task in tasks])


@router.patch(
    "/tasks/{task_id}/subtasks/{subtask_id}",
    response_model=SubtaskUpdateResponse,
    tags=["tasks"],
)
def update_subtask_endpoint(
    task_id: UUID,
    subtask_id: UUID,
    payload: SubtaskUpdateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> SubtaskUpdateResponse:
    """Mark a subtask checked or unchecked."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": f"/tasks/{task_id}/subtasks/{subtask_id}",
        "task_id": str(task_id),
        "subtask_id": str(subtask_id),
        "checked": payload.checked,
        "request_id": request_id,
    }
    with trace("task.subtask.update", metadata=metadata, user_id=str(user_id), request_id=request_id):
        subtask = update_subtask_checked(db, user_id, task_id, subtask_id, payload.checked)

    log_metric(
        "task.subtask.update.success",
        1,
        metadata={"user_id": str(user_id), "task_id": str(task_id), "checked": payload.checked},
    )
    return SubtaskUpdateResponse(subtask=SubtaskPayload.model_validate(subtask))


@router.delete("/tasks/{task_id}", response_model=TaskDeleteResponse, tags=["tasks"])
def delete_task_endpoint(
    task_id: UUID,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> TaskDeleteResponse:
    """Delete a task and its subtasks."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "task.delete",
        metadata={"route": f"/tasks/{task_id}", "task_id": str(task_id), "request_id": request_id},
        user_id=str(user_id),
        request_id=request_id,
    ):
        delete_task(db, user_id, task_id)

    log_metric("task.delete.success", 1, metadata={"user_id": str(user_id), "task_id": str(task_id)})
    return TaskDeleteResponse(success=True)
