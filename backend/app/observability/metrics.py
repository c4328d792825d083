"""Metric helpers recorded as Opik traces."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from app.core.context import get_request_id
from app.observability.client import get_opik_client

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric when Opik is enabled; otherwise do nothing."""
    client = get_opik_client()
    if not client:
        return

    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)
    request_id = get_request_id()
    if request_id:
        payload.setdefault("request_id", request_id)

    try:
        metric_trace = client.trace(name=f"metric:{name}", metadata=payload)
        metric_trace.end()
    except Exception as exc:  # pragma: no cover - telemetry must not break requests
        logger.debug("Unable to record metric %s: %s", name, exc)
