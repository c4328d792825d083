"""Schemas for the breakdown preview endpoint."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel


class BreakdownRequest(BaseModel):
    task: str


class BreakdownResponse(BaseModel):
    title: str
    subtasks: List[str]
