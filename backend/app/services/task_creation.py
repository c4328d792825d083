"""Turn free-text input into a stored task with AI-derived subtasks."""
from __future__ import annotations

import logging
from enum import Enum
from time import perf_counter
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import PersistenceError, TaskBreakerError
from app.db.models.task import Task
from app.observability.metrics import log_metric
from app.services.breakdown_interpreter import Breakdown, interpret_breakdown
from app.services.completion_client import request_breakdown
from app.services.task_store import create_subtasks, create_task, delete_task
from app.services.task_validation import validate_task_input

logger = logging.getLogger(__name__)


class CreationStage(str, Enum):
    VALIDATING = "validating"
    GENERATING = "generating"
    INTERPRETING = "interpreting"
    PERSISTING = "persisting"
    DONE = "done"


def preview_breakdown(raw_text: object, *, request_id: str | None = None) -> Breakdown:
    """Validate, generate, and interpret without touching the database."""
    text = validate_task_input(raw_text)
    content = request_breakdown(text, request_id=request_id)
    breakdown = interpret_breakdown(content, text)
    if not settings.ai_titles_enabled:
        breakdown.title = text
    return breakdown


def create_task_from_input(
    db: Session,
    user_id: UUID,
    raw_text: object,
    *,
    request_id: str | None = None,
) -> Task:
    """Run the full creation pipeline.

    Either a task with all of its subtasks is stored, or nothing is. Failures
    surface as the TaskBreakerError subclass of the stage that failed; no stage
    is retried.
    """
    stage = CreationStage.VALIDATING
    start_time = perf_counter()
    try:
        text = validate_task_input(raw_text)

        stage = CreationStage.GENERATING
        logger.info("Calling OpenAI for title and subtasks")
        content = request_breakdown(text, request_id=request_id)

        stage = CreationStage.INTERPRETING
        breakdown = interpret_breakdown(content, text)
        title = breakdown.title if settings.ai_titles_enabled else text

        stage = CreationStage.PERSISTING
        task = create_task(db, user_id, title)
        task_id = task.id
        try:
            create_subtasks(db, task_id, breakdown.subtask_texts)
        except PersistenceError:
            _compensate(db, user_id, task_id)
            raise

        db.refresh(task)
        stage = CreationStage.DONE
    except TaskBreakerError as exc:
        logger.warning("Task creation failed while %s: %s", stage.value, exc.message)
        log_metric("task.create.failed_stage", 1, metadata={"stage": stage.value, "error": type(exc).__name__})
        raise

    latency_ms = (perf_counter() - start_time) * 1000
    logger.info("Created task %s with %d subtasks", task.id, len(task.subtasks))
    log_metric("task.create.subtask_count", len(task.subtasks), metadata={"user_id": str(user_id)})
    log_metric("task.create.latency_ms", latency_ms, metadata={"breakdown_tier": breakdown.tier})
    return task


def _compensate(db: Session, user_id: UUID, task_id: UUID) -> None:
    """Remove a task whose subtasks could not be stored."""
    try:
        delete_task(db, user_id, task_id)
    except TaskBreakerError:
        logger.exception("Compensating delete failed for task %s", task_id)
    else:
        logger.info("Removed task %s after subtask insert failure", task_id)
