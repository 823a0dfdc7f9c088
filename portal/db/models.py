"""Import every SQLAlchemy model so they register on ``Base.metadata``."""

from portal.db.email_history.model import EmailHistory
from portal.db.projects.model import Project, Screen, ScreenHistory, Task, TaskHistory
from portal.db.users.model import User

__all__ = [
    "EmailHistory",
    "Project",
    "Screen",
    "ScreenHistory",
    "Task",
    "TaskHistory",
    "User",
]
