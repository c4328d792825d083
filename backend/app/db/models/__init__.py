"""ORM models exposed for metadata discovery."""
from app.db.models.subtask import Subtask
from app.db.models.task import Task
from app.db.models.user import User

__all__ = [
    "Subtask",
    "Task",
    "User",
]
