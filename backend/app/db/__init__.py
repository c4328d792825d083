"""Database metadata and ORM models."""

from app.db.base import Base
from app.db.models import Subtask, Task, User

__all__ = ["Base", "Subtask", "Task", "User"]
