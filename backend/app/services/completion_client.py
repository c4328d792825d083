"""OpenAI-backed generation of task breakdowns."""
from __future__ import annotations

import logging
from typing import Any, Dict

import openai

from app.core.config import settings
from app.core.errors import CompletionUnavailable
from app.observability.metrics import log_metric
from app.observability.tracing import trace

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a task organization assistant. Given a task description, you will:
1. Generate a short, friendly title (2-5 words) that captures the essence of the task
2. Break down the task into 3-5 specific, actionable subtasks

Rules for title:
- Keep it between 2-5 words
- Use title case (capitalize major words)
- Make it scannable and memorable
- Avoid articles (a, an, the) when possible
- No punctuation at the end

Rules for subtasks:
- Each subtask should be a clear action item
- Keep each subtask under 100 characters
- Return between 3 and 5 subtasks

Return a JSON object with this exact structure:
{
  "title": "Friendly Title Here",
  "subtasks": ["Subtask 1", "Subtask 2", "Subtask 3"]
}

Example input: "Plan my daughter's 5th birthday party for Saturday"
Example output: {"title": "Birthday Party Planning", "subtasks": ["Send party invitations to friends", "Order birthday cake and decorations", "Plan age-appropriate party games", "Prepare goody bags for guests", "Set up party area"]}"""


def request_breakdown(task_text: str, *, request_id: str | None = None) -> str:
    """Ask the completion service for a breakdown and return its raw text.

    No retries are attempted here; any failure surfaces as
    CompletionUnavailable.
    """
    api_key = settings.openai_api_key
    if not api_key:
        logger.error("OPENAI_API_KEY missing; cannot generate task breakdown.")
        raise CompletionUnavailable()

    trace_metadata: Dict[str, Any] = {
        "model": settings.openai_model,
        "llm_input_text": task_text[:500],
    }
    with trace("task.breakdown.generate", metadata=trace_metadata, request_id=request_id) as generate_trace:
        client = openai.OpenAI(
            api_key=api_key,
            timeout=settings.openai_timeout_seconds,
            max_retries=0,
        )
        try:
            completion = client.chat.completions.create(
                model=settings.openai_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": task_text},
                ],
                temperature=settings.openai_temperature,
                max_tokens=settings.openai_max_tokens,
            )
        except Exception as exc:
            logger.warning("Completion request failed: %s", exc)
            log_metric("task.breakdown.generate.success", 0, metadata={"reason": type(exc).__name__})
            raise CompletionUnavailable() from exc

        choices = getattr(completion, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content or not content.strip():
            logger.error("OpenAI returned empty content")
            log_metric("task.breakdown.generate.success", 0, metadata={"reason": "empty_content"})
            raise CompletionUnavailable()

        if generate_trace:
            try:
                generate_trace.update(metadata={**trace_metadata, "llm_output_text": content[:500]})
            except Exception:  # pragma: no cover - best-effort
                logger.debug("Failed to attach completion output to trace", exc_info=True)

    log_metric("task.breakdown.generate.success", 1, metadata={"model": settings.openai_model})
    return content
