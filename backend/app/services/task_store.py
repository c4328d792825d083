"""User-scoped persistence for tasks and their subtasks."""
from __future__ import annotations

import logging
from typing import List, Sequence
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import NotFound, PersistenceError
from app.db.models.subtask import Subtask
from app.db.models.task import Task
from app.db.models.user import User

logger = logging.getLogger(__name__)


def create_task(db: Session, user_id: UUID, title: str) -> Task:
    """Insert and commit a task owned by ``user_id``."""
    try:
        _ensure_user(db, user_id)
        task = Task(user_id=user_id, title=title)
        db.add(task)
        db.commit()
        db.refresh(task)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create task for user %s", user_id)
        raise PersistenceError("Failed to create task") from exc
    return task


def create_subtasks(db: Session, task_id: UUID, texts: Sequence[str]) -> List[Subtask]:
    """Insert one subtask per text with positions 0..n-1, all unchecked.

    The parent task is left in place on failure; callers own the compensating
    delete.
    """
    subtasks = [
        Subtask(task_id=task_id, text=text.strip(), checked=False, position=index)
        for index, text in enumerate(texts)
    ]
    try:
        db.add_all(subtasks)
        db.commit()
        for subtask in subtasks:
            db.refresh(subtask)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create subtasks for task %s", task_id)
        raise PersistenceError("Failed to create subtasks") from exc
    return subtasks


def list_tasks(db: Session, user_id: UUID) -> List[Task]:
    """Return the user's tasks newest first, subtasks ordered by position."""
    try:
        return (
            db.query(Task)
            .options(selectinload(Task.subtasks))
            .filter(Task.user_id == user_id)
            .order_by(desc(Task.created_at), desc(Task.id))
            .all()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database error fetching tasks for user %s", user_id)
        raise PersistenceError("Failed to fetch tasks") from exc


def get_owned_task(db: Session, user_id: UUID, task_id: UUID) -> Task:
    try:
        task = db.query(Task).filter(Task.id == task_id, Task.user_id == user_id).one_or_none()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("Failed to fetch task") from exc
    if task is None:
        logger.warning("Task not found or unauthorized: %s", task_id)
        raise NotFound()
    return task


def update_subtask_checked(
    db: Session,
    user_id: UUID,
    task_id: UUID,
    subtask_id: UUID,
    checked: bool,
) -> Subtask:
    """Set ``checked`` on a single subtask of a task the user owns."""
    get_owned_task(db, user_id, task_id)
    try:
        subtask = (
            db.query(Subtask)
            .filter(Subtask.id == subtask_id, Subtask.task_id == task_id)
            .one_or_none()
        )
        if subtask is None:
            logger.warning("Subtask %s not found on task %s", subtask_id, task_id)
            raise NotFound("Subtask not found")
        subtask.checked = checked
        db.commit()
        db.refresh(subtask)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to update subtask %s", subtask_id)
        raise PersistenceError("Failed to update subtask") from exc
    return subtask


def delete_task(db: Session, user_id: UUID, task_id: UUID) -> None:
    """Delete a task the user owns together with all of its subtasks."""
    task = get_owned_task(db, user_id, task_id)
    try:
        db.delete(task)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to delete task %s", task_id)
        raise PersistenceError("Failed to delete task") from exc


def _ensure_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        # Another request created the row first.
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise
