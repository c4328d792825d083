"""Schemas for task creation, listing, and subtask updates."""
from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, StrictBool


class TaskCreateRequest(BaseModel):
    # Bounds are checked after trimming by the validation layer.
    task: str


class SubtaskPayload(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    text: str
    checked: bool
    position: int


class TaskPayload(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    created_at: datetime
    subtasks: List[SubtaskPayload]


class TaskCreateResponse(BaseModel):
    task: TaskPayload


class TaskListResponse(BaseModel):
    tasks: List[TaskPayload]


class SubtaskUpdateRequest(BaseModel):
    checked: StrictBool


class SubtaskUpdateResponse(BaseModel):
    subtask: SubtaskPayload


class TaskDeleteResponse(BaseModel):
    success: bool
