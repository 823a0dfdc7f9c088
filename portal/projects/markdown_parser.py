"""
Markdown project parser.

Turns the constrained markdown format used for project uploads into a
``ParsedProject`` tree:

    # Project Name
    > One-line tagline
    Free text lines become the project description.

    ## Screen Title
    First free text line is the screen description.
    - [ ] A task
    - [x] Another task (checked state is ignored)

Parsing is a single pass over trimmed lines and has no side effects.
"""

import re

from portal.projects.constants import DEFAULT_PROJECT_DESCRIPTION, PARSE_FAILURE_MESSAGE
from portal.projects.schemas import ParsedProject, ParsedScreen, ParsedTask

PROJECT_PREFIX = "# "
TAGLINE_PREFIX = "> "
SCREEN_PREFIX = "## "
CHECKBOX_PATTERN = re.compile(r"^-\s*\[[ xX]\]\s*")


class ProjectParseError(Exception):
    """Raised when a document cannot be read as a project."""

    def __init__(self, message: str = PARSE_FAILURE_MESSAGE):
        super().__init__(message)
        self.message = message


def parse_project_markdown(text: str) -> ParsedProject:
    """
    Parse a markdown project document.

    Args:
        text: Full document text

    Returns:
        ParsedProject: Project name, tagline, description and ordered screens

    Raises:
        ProjectParseError: If the document has no ``# `` project heading
    """
    name = ""
    tagline: str | None = None
    description_parts: list[str] = []
    screens: list[ParsedScreen] = []
    current: ParsedScreen | None = None
    in_description = False

    for raw_line in text.splitlines():
        line = raw_line.strip()

        if line.startswith(PROJECT_PREFIX):
            # A repeated heading overwrites the name
            name = line[len(PROJECT_PREFIX) :]
            in_description = True
            continue

        if line.startswith(TAGLINE_PREFIX):
            tagline = line[len(TAGLINE_PREFIX) :]
            continue

        if line.startswith(SCREEN_PREFIX):
            if current is not None:
                screens.append(current)
            current = ParsedScreen(title=line[len(SCREEN_PREFIX) :])
            in_description = False
            continue

        checkbox = CHECKBOX_PATTERN.match(line)
        if checkbox:
            if current is not None:
                current.tasks.append(ParsedTask(title=line[checkbox.end() :]))
            continue

        if not line or line.startswith("#"):
            continue

        if in_description and current is None:
            description_parts.append(line)
        elif current is not None and not current.description:
            current.description = line

    if current is not None:
        screens.append(current)

    if not name:
        raise ProjectParseError()

    return ParsedProject(
        name=name,
        tagline=tagline,
        description=" ".join(description_parts) or DEFAULT_PROJECT_DESCRIPTION,
        screens=screens,
    )
