"""Shape and bounds checks for task input and LLM breakdowns."""
from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.errors import InvalidInput

TASK_INPUT_MAX_LENGTH = 200
TITLE_MIN_LENGTH = 2
TITLE_MAX_LENGTH = 50
SUBTASKS_MIN_COUNT = 3
SUBTASKS_MAX_COUNT = 5
SUBTASK_MAX_LENGTH = 100


class AITaskResponse(BaseModel):
    """Structured breakdown the completion service is asked to return."""

    model_config = ConfigDict(strict=True)

    title: str = Field(..., min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    subtasks: List[str] = Field(..., min_length=SUBTASKS_MIN_COUNT, max_length=SUBTASKS_MAX_COUNT)

    @field_validator("subtasks")
    @classmethod
    def check_subtask_lengths(cls, value: List[str]) -> List[str]:
        for item in value:
            trimmed = item.strip()
            if not trimmed:
                raise ValueError("subtasks must not be empty")
            if len(trimmed) > SUBTASK_MAX_LENGTH:
                raise ValueError(f"subtasks must be {SUBTASK_MAX_LENGTH} characters or less")
        return value


def validate_task_input(text: Any) -> str:
    """Return the trimmed task text or raise InvalidInput."""
    if not isinstance(text, str):
        raise InvalidInput("Task is required")
    trimmed = text.strip()
    if not trimmed:
        raise InvalidInput("Task is required")
    if len(trimmed) > TASK_INPUT_MAX_LENGTH:
        raise InvalidInput(f"Task must be {TASK_INPUT_MAX_LENGTH} characters or less")
    return trimmed


def validate_ai_response(obj: Any) -> AITaskResponse:
    """Validate a parsed completion payload.

    Raises pydantic.ValidationError when the payload does not match the
    expected ``{title, subtasks}`` shape.
    """
    return AITaskResponse.model_validate(obj)
