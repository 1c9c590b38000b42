"""Markdown note rendering for Canvas assignments."""

import re
from datetime import datetime, timezone, tzinfo

from .html import html_to_markdown
from ..models.assignment import RemoteAssignment, RubricCriterion
from ..models.course import CourseConfig
from ..models.settings import RubricMode

BASE_TAG = "assignment"

# Characters Obsidian or common filesystems refuse in file names
UNSAFE_NAME_CHARS = re.compile(r'[/\\:\[\]|#^*&<>?]')


def join_paths(*paths: str) -> str:
    """Join vault-relative path pieces with single slashes, skipping empty ones."""
    parts = [p for p in paths if p]
    if not parts:
        return ""
    joined = parts[0]
    for part in parts[1:]:
        joined = joined.rstrip("/") + "/" + part.lstrip("/")
    return joined


def sanitize_file_name(name: str) -> str:
    """Make an assignment name safe to use as a note file name.

    ``"Quiz 1/2"`` becomes ``"Quiz 1_2"``; double quotes become apostrophes.
    """
    return UNSAFE_NAME_CHARS.sub("_", name).replace('"', "'")


def assignment_note_path(course: CourseConfig, assignment: RemoteAssignment) -> str:
    """Vault-relative path of the note for a newly seen assignment."""
    return join_paths(course.folder, sanitize_file_name(assignment.name)) + ".md"


def parse_timestamp(ts: str) -> datetime:
    """Parse a Canvas ISO 8601 timestamp; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_due(due_at: str | None, tz: tzinfo | None = None) -> str:
    """Format a due timestamp as local ``YYYY-MM-DD HH:MM:SS``, or ``""``.

    Args:
        due_at: Raw UTC timestamp from the API
        tz: Display timezone; None means the machine's local timezone
    """
    if not due_at:
        return ""
    return parse_timestamp(due_at).astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")


def format_assigned(created_at: str) -> str:
    """Date part of the creation timestamp."""
    return created_at.split("T")[0]


def _frontmatter_line(key: str, value: str) -> str:
    return f"{key}: {value}".rstrip()


def render_frontmatter(
    assignment: RemoteAssignment,
    course: CourseConfig,
    tz: tzinfo | None = None,
) -> str:
    lines = ["---", "tags:", f"  - {BASE_TAG}"]
    lines.extend(f"  - {tag}" for tag in course.extra_tags)
    lines.append(_frontmatter_line("due", format_due(assignment.due_at, tz)))
    lines.append(_frontmatter_line("assigned", format_assigned(assignment.created_at)))
    lines.append(_frontmatter_line("url", assignment.url))
    # Not derived from has_submission yet; see DESIGN.md
    lines.append("done: false")
    lines.extend(_frontmatter_line(key, value) for key, value in course.extra_frontmatter)
    lines.append("---")
    return "\n".join(lines) + "\n"


def prepare_description_html(description: str) -> str:
    """Drop the first newline and demote the first ``h2`` element to ``h3``.

    Only the first occurrence of each is touched. Unlike a plain
    ``replace("h2", "h3", 1)``, the matching ``</h2>`` is renamed too, and
    ``h2`` inside text or attribute values (``<h2x>``, ``class="h2"``) is left alone.
    """
    html_content = description.replace("\n", "", 1)
    opening = re.search(r"<h2(?=[\s>])", html_content, re.IGNORECASE)
    if opening is None:
        return html_content
    start = opening.start()
    head = html_content[:start]
    tail = "<h3" + html_content[opening.end():]
    tail = re.sub(r"</h2\s*>", "</h3>", tail, count=1, flags=re.IGNORECASE)
    return head + tail


def render_rubric_todo_list(rubric: list[RubricCriterion]) -> str:
    lines = []
    for item in rubric:
        lines.append(f"- [ ] **{item.description}** ({item.points_display} points)")
        if item.long_description:
            lines.append(f"\t- _{item.long_description}_")
    return "".join(line + "\n" for line in lines)


def render_rubric_table(rubric: list[RubricCriterion]) -> str:
    lines = [
        "| Criteria | Points | Description |",
        "| -------- | ------ | ----------- |",
    ]
    for item in rubric:
        lines.append(
            f"| {item.description} | {item.points_display} | {item.long_description or ''} |"
        )
    return "".join(line + "\n" for line in lines)


def render_assignment_note(
    assignment: RemoteAssignment,
    course: CourseConfig,
    rubric_mode: RubricMode = "todo-list",
    tz: tzinfo | None = None,
) -> str:
    """Render the full note for an assignment.
    
    Layout: frontmatter, then ``## Description`` if the assignment has one,
    then ``## Rubric`` if it has a rubric (even an empty one).
    
    Args:
        assignment: Assignment from the API
        course: Course rule that owns the assignment
        rubric_mode: "todo-list" or "table"
        tz: Timezone for the due date; None means local time
        
    Returns:
        Complete markdown text
    """
    text = render_frontmatter(assignment, course, tz)

    if assignment.description is not None:
        text += "## Description\n"
        text += html_to_markdown(prepare_description_html(assignment.description))

    if assignment.rubric is not None:
        text += "\n## Rubric\n"
        if rubric_mode == "table":
            text += render_rubric_table(assignment.rubric)
        else:
            text += render_rubric_todo_list(assignment.rubric)

    return text
