"""Breakdown preview route: generate subtasks without saving them."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from app.api.schemas.breakdown import BreakdownRequest, BreakdownResponse
from app.core.auth import get_current_user_id
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.task_creation import preview_breakdown

router = APIRouter()


@router.post("/breakdown", response_model=BreakdownResponse, tags=["breakdown"])
def preview_breakdown_endpoint(
    payload: BreakdownRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
) -> BreakdownResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "task.breakdown.preview",
        metadata={"route": "/breakdown", "text_length": len(payload.task), "request_id": request_id},
        user_id=str(user_id),
        request_id=request_id,
    ):
        breakdown = preview_breakdown(payload.task, request_id=request_id)

    log_metric("task.breakdown.preview.subtask_count", len(breakdown.subtask_texts), metadata={"user_id": str(user_id)})
    return BreakdownResponse(title=breakdown.title, subtasks=breakdown.subtask_texts)
