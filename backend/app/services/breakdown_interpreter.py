"""Turn raw completion text into a title and subtask list."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, List

from pydantic import ValidationError

from app.core.errors import BreakdownParseError
from app.observability.metrics import log_metric
from app.services.task_validation import (
    SUBTASK_MAX_LENGTH,
    SUBTASKS_MAX_COUNT,
    TASK_INPUT_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TITLE_MIN_LENGTH,
    validate_ai_response,
)

logger = logging.getLogger(__name__)


@dataclass
class Breakdown:
    title: str
    subtask_texts: List[str] = field(default_factory=list)
    tier: str = "validated"


def interpret_breakdown(raw_text: str, original_input: str) -> Breakdown:
    """Interpret completion output, salvaging what we can.

    Fully valid payloads are returned verbatim. Otherwise usable subtasks are
    recovered and the title falls back to the user's own input. Raises
    BreakdownParseError when the text is not JSON or holds no usable subtask.
    """
    try:
        parsed = json.loads(_strip_code_fence(raw_text))
    except (TypeError, ValueError) as exc:
        logger.warning("Completion output is not valid JSON")
        log_metric("task.breakdown.tier", 3, metadata={"reason": "invalid_json"})
        raise BreakdownParseError() from exc

    try:
        validated = validate_ai_response(parsed)
    except ValidationError as exc:
        logger.warning(
            "AI response validation failed, attempting partial parse: %s",
            [error.get("msg") for error in exc.errors()],
        )
    else:
        log_metric("task.breakdown.tier", 1)
        return Breakdown(title=validated.title, subtask_texts=list(validated.subtasks))

    subtask_texts = _salvage_subtasks(parsed)
    if not subtask_texts:
        logger.warning("Could not extract subtasks from completion output")
        log_metric("task.breakdown.tier", 3, metadata={"reason": "no_subtasks"})
        raise BreakdownParseError()

    title = _salvage_title(parsed)
    if title is None:
        title = original_input.strip()[:TASK_INPUT_MAX_LENGTH]
        tier = "partial_input_title"
    else:
        tier = "partial"

    log_metric("task.breakdown.tier", 2, metadata={"subtask_count": len(subtask_texts), "title_source": tier})
    return Breakdown(title=title, subtask_texts=subtask_texts, tier=tier)


def _strip_code_fence(raw_text: str) -> str:
    text = raw_text.strip()
    if text.startswith("```json"):
        text = text[len("```json"):]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def _salvage_subtasks(parsed: Any) -> List[str]:
    if not isinstance(parsed, dict):
        return []
    raw_subtasks = parsed.get("subtasks")
    if not isinstance(raw_subtasks, list):
        return []
    usable = [item for item in raw_subtasks if isinstance(item, str) and item.strip()]
    return [item.strip()[:SUBTASK_MAX_LENGTH] for item in usable[:SUBTASKS_MAX_COUNT]]


def _salvage_title(parsed: dict) -> str | None:
    raw_title = parsed.get("title")
    if isinstance(raw_title, str) and len(raw_title.strip()) >= TITLE_MIN_LENGTH:
        # Hard character cut; no word-boundary handling.
        return raw_title.strip()[:TITLE_MAX_LENGTH]
    return None
