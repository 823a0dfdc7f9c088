"""Tests for update email rendering."""

from datetime import UTC, datetime

from portal.updates.rendering import (
    render_update_email,
    render_update_text,
    summary_lines,
    update_subject,
)
from portal.updates.schemas import (
    ChangesSummary,
    NewScreenChange,
    ReviewTaskChange,
    UpdatedScreenChange,
)

NOW = datetime(2025, 6, 2, 15, 30, tzinfo=UTC)


def sample_summary() -> ChangesSummary:
    return ChangesSummary(
        review_tasks=[ReviewTaskChange(task_id="t1", title="Login form", screen_title="Auth")],
        new_screens=[NewScreenChange(title="Settings", created_at=NOW)],
        updated_screens=[
            UpdatedScreenChange(title="Home", description="New hero image", edited_at=NOW)
        ],
    )


def test_update_subject():
    assert update_subject("Recipe Box") == "Project Update - Recipe Box"


def test_summary_lines_only_list_non_empty_buckets():
    lines = summary_lines(sample_summary())

    assert lines == [
        "READY FOR YOUR REVIEW (1)",
        "  - Login form (Auth)",
        "NEW SCREENS (1)",
        "  - Settings",
        "SCREENS UPDATED (1)",
        "  - Home - New hero image",
    ]


def test_summary_lines_empty():
    assert summary_lines(ChangesSummary()) == []


def test_html_includes_sections_and_signature():
    html = render_update_email("Recipe Box", "Great week!", sample_summary(), "AppCatalyst")

    assert "Recent Progress" in html
    assert "READY FOR YOUR REVIEW (1)" in html
    assert "Login form (Auth)" in html
    assert "AppCatalyst Team" in html
    assert "APPROVED" not in html


def test_html_omits_changes_block_when_empty():
    html = render_update_email("Recipe Box", "Quiet week", ChangesSummary(), "AppCatalyst")

    assert "Recent Progress" not in html
    assert "Quiet week" in html


def test_html_escapes_interpolated_text():
    """Test user-supplied text cannot inject markup."""
    summary = ChangesSummary(
        review_tasks=[
            ReviewTaskChange(task_id="t1", title="<script>x</script>", screen_title="A & B")
        ]
    )

    html = render_update_email("<b>App</b>", "Hi <img src=x>", summary, "Studio & Co")

    assert "<script>" not in html
    assert "&lt;script&gt;x&lt;/script&gt; (A &amp; B)" in html
    assert "&lt;b&gt;App&lt;/b&gt;" in html
    assert "Hi &lt;img src=x&gt;" in html
    assert "Studio &amp; Co Team" in html


def test_plain_text_alternative():
    text = render_update_text("Recipe Box", "Great week!", sample_summary())

    assert text.splitlines()[:3] == ["Project Update - Recipe Box", "", "Great week!"]
    assert "Recent Progress" in text
    assert "  - Settings" in text
