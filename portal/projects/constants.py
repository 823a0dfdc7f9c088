"""
Project constants and enums.

This module contains the enums and static values shared by the project
import, project views and update-email features.
"""

from enum import Enum


class TaskStatus(str, Enum):
    """Lifecycle states of a task."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    WAITING = "waiting"
    REVIEW = "review"
    DONE = "done"


DEFAULT_PROJECT_DESCRIPTION = "No description provided"

PARSE_FAILURE_MESSAGE = "Failed to parse markdown file. Please check the format."

MARKDOWN_EXTENSION = ".md"
