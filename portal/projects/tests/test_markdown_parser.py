"""Tests for the markdown project parser."""

import pytest

from portal.projects.constants import DEFAULT_PROJECT_DESCRIPTION, PARSE_FAILURE_MESSAGE
from portal.projects.markdown_parser import ProjectParseError, parse_project_markdown

SAMPLE_DOCUMENT = """# Habit Tracker
> Build better habits, one day at a time
A mobile app for tracking daily habits.
Syncs across devices.

## Onboarding
Welcome flow for new users
- [ ] Splash screen
- [x] Sign up form

## Dashboard
- [ ] Habit list
"""


class TestParseProjectMarkdown:
    """Test suite for parse_project_markdown."""

    def test_parses_sample_document(self):
        """Test the sample document keeps screen and task order."""
        project = parse_project_markdown(SAMPLE_DOCUMENT)

        assert project.name == "Habit Tracker"
        assert project.tagline == "Build better habits, one day at a time"
        assert project.description == "A mobile app for tracking daily habits. Syncs across devices."
        assert [s.title for s in project.screens] == ["Onboarding", "Dashboard"]
        assert [t.title for t in project.screens[0].tasks] == ["Splash screen", "Sign up form"]
        assert [t.title for t in project.screens[1].tasks] == ["Habit list"]
        assert project.screens[0].description == "Welcome flow for new users"
        assert project.screens[1].description is None

    def test_parsing_is_deterministic(self):
        """Test parsing the same document twice yields equal trees."""
        assert parse_project_markdown(SAMPLE_DOCUMENT) == parse_project_markdown(SAMPLE_DOCUMENT)

    def test_missing_project_heading_fails(self):
        """Test a document without a # heading raises instead of returning an empty name."""
        with pytest.raises(ProjectParseError) as exc_info:
            parse_project_markdown("## Screen\n- [ ] Task\n")

        assert exc_info.value.message == PARSE_FAILURE_MESSAGE

    def test_empty_document_fails(self):
        with pytest.raises(ProjectParseError):
            parse_project_markdown("")

    def test_orphan_checkbox_is_dropped(self):
        """Test a checkbox before any screen heading is silently dropped."""
        project = parse_project_markdown("# App\n- [ ] Orphan\n## Screen\n- [ ] Kept\n")

        assert len(project.screens) == 1
        assert [t.title for t in project.screens[0].tasks] == ["Kept"]
        assert project.description == DEFAULT_PROJECT_DESCRIPTION

    def test_last_project_heading_wins(self):
        project = parse_project_markdown("# First\n# Second\n")

        assert project.name == "Second"

    def test_repeated_tagline_overwrites(self):
        project = parse_project_markdown("# App\n> One\n> Two\n")

        assert project.tagline == "Two"

    def test_only_first_free_line_becomes_screen_description(self):
        project = parse_project_markdown("# App\n## Screen\nFirst line\nSecond line\n")

        assert project.screens[0].description == "First line"

    def test_description_stops_at_first_screen(self):
        """Test free text after a screen heading never joins the project description."""
        project = parse_project_markdown("# App\nIntro\n## Screen\nScreen text\n")

        assert project.description == "Intro"

    def test_lines_are_trimmed_before_classification(self):
        project = parse_project_markdown("   # App  \n   ## Screen\n    - [ ] Indented task  \n")

        assert project.name == "App"
        assert project.screens[0].title == "Screen"
        assert project.screens[0].tasks[0].title == "Indented task"

    def test_deeper_headings_are_ignored(self):
        """Test ### lines are neither screens nor description text."""
        project = parse_project_markdown("# App\n### Notes\n## Screen\n### More\n")

        assert project.description == DEFAULT_PROJECT_DESCRIPTION
        assert project.screens[0].description is None

    def test_checked_state_is_ignored(self):
        project = parse_project_markdown("# App\n## Screen\n- [X] Upper\n- [x] Lower\n")

        assert [t.title for t in project.screens[0].tasks] == ["Upper", "Lower"]
        assert all(t.description is None for t in project.screens[0].tasks)

    def test_screen_without_tasks_is_kept(self):
        project = parse_project_markdown("# App\n## Empty\n## Full\n- [ ] Task\n")

        assert [s.title for s in project.screens] == ["Empty", "Full"]
        assert project.screens[0].tasks == []

    def test_windows_line_endings(self):
        project = parse_project_markdown("# App\r\n## Screen\r\n- [ ] Task\r\n")

        assert project.name == "App"
        assert project.screens[0].tasks[0].title == "Task"
