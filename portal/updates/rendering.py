"""
HTML and plain-text rendering of project update emails.

All interpolated values are escaped; the changes block is left out when the
summary has nothing in it.
"""

from html import escape

from portal.updates.schemas import ChangesSummary

_STYLE = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { margin-bottom: 30px; }
    .message { margin-bottom: 30px; white-space: pre-wrap; }
    .changes { background: #f5f5f5; padding: 20px; border-radius: 8px; margin-bottom: 30px; }
    .changes h3 { margin-top: 0; color: #000; font-size: 16px; }
    .section { margin-bottom: 20px; }
    .section-title { font-weight: 600; font-size: 14px; margin-bottom: 10px; }
    .review { color: #A855F7; }
    .completed { color: #4ADE80; }
    .new-screen { color: #3B82F6; }
    .updated { color: #EAB308; }
    .new-task { color: #666; }
    .item { padding-left: 15px; margin-bottom: 5px; font-size: 14px; }
    .footer { color: #666; font-size: 13px; border-top: 1px solid #ddd; padding-top: 20px; margin-top: 30px; }
"""


def update_subject(project_name: str) -> str:
    return f"Project Update - {project_name}"


def _sections(summary: ChangesSummary) -> list[tuple[str, str, list[str]]]:
    """(heading, css class, item lines) for every non-empty bucket."""
    sections = [
        (
            "READY FOR YOUR REVIEW",
            "review",
            [f"{t.title} ({t.screen_title})" for t in summary.review_tasks],
        ),
        (
            "APPROVED",
            "completed",
            [f"{t.title} ({t.screen_title})" for t in summary.review_to_done],
        ),
        (
            "BACK IN PROGRESS",
            "updated",
            [f"{t.title} ({t.screen_title})" for t in summary.review_to_progress],
        ),
        (
            "COMPLETED TASKS",
            "completed",
            [f"{t.title} ({t.screen_title})" for t in summary.completed_tasks],
        ),
        ("NEW SCREENS", "new-screen", [s.title for s in summary.new_screens]),
        (
            "SCREENS UPDATED",
            "updated",
            [
                f"{s.title} - {s.description}" if s.description else s.title
                for s in summary.updated_screens
            ],
        ),
        (
            "NEW TASKS",
            "new-task",
            [f"{t.title} ({t.screen_title})" for t in summary.new_tasks],
        ),
    ]
    return [section for section in sections if section[2]]


def summary_lines(summary: ChangesSummary) -> list[str]:
    """Plain-text lines describing the summary, one heading per non-empty bucket."""
    lines: list[str] = []
    for heading, _, items in _sections(summary):
        lines.append(f"{heading} ({len(items)})")
        lines.extend(f"  - {item}" for item in items)
    return lines


def render_update_email(
    project_name: str,
    personal_message: str,
    summary: ChangesSummary,
    studio_name: str,
) -> str:
    """
    Render the HTML body of a project update email.

    Args:
        project_name: Shown in the heading
        personal_message: Admin's message, shown verbatim (line breaks kept)
        summary: Changes since the last email
        studio_name: Used in the signature

    Returns:
        str: Complete HTML document
    """
    parts = [
        "<!DOCTYPE html>",
        "<html>",
        '<head><meta charset="utf-8"><style>',
        _STYLE,
        "</style></head>",
        "<body>",
        '  <div class="container">',
        f'    <div class="header"><h2>{escape(update_subject(project_name))}</h2></div>',
        f'    <div class="message">{escape(personal_message)}</div>',
    ]

    sections = _sections(summary)
    if sections:
        parts.append('    <div class="changes"><h3>Recent Progress</h3>')
        for heading, css_class, items in sections:
            parts.append('      <div class="section">')
            parts.append(
                f'        <div class="section-title {css_class}">'
                f"{escape(heading)} ({len(items)})</div>"
            )
            parts.extend(f'        <div class="item">{escape(item)}</div>' for item in items)
            parts.append("      </div>")
        parts.append("    </div>")

    parts.extend(
        [
            '    <div class="footer">',
            f"      Best regards,<br>{escape(studio_name)} Team<br><br>",
            "      Questions? Reply to this email.",
            "    </div>",
            "  </div>",
            "</body>",
            "</html>",
        ]
    )
    return "\n".join(parts)


def render_update_text(project_name: str, personal_message: str, summary: ChangesSummary) -> str:
    """Plain-text alternative of the update email."""
    lines = [update_subject(project_name), "", personal_message]
    changes = summary_lines(summary)
    if changes:
        lines.extend(["", "Recent Progress", *changes])
    return "\n".join(lines)
