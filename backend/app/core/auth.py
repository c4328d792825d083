"""Resolve the signed-in user from the incoming request."""
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Request

from app.core.config import settings
from app.core.errors import Unauthorized

logger = logging.getLogger(__name__)


def get_current_user_id(request: Request) -> UUID:
    """Return the caller's identity forwarded by the auth gateway.

    The identity is rebuilt from the request headers every time; nothing is
    cached between requests.
    """
    raw_value = request.headers.get(settings.auth_user_header)
    if not raw_value:
        logger.warning("Unauthorized access attempt on %s", request.url.path)
        raise Unauthorized()
    try:
        return UUID(raw_value.strip())
    except ValueError as exc:
        logger.warning("Malformed user header on %s", request.url.path)
        raise Unauthorized() from exc
