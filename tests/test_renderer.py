"""Tests for assignment note rendering."""

from datetime import timedelta, timezone

from conftest import make_assignment

from lmsnotes.canvas.renderer import (
    assignment_note_path,
    format_due,
    join_paths,
    prepare_description_html,
    render_assignment_note,
    sanitize_file_name,
)
from lmsnotes.models.course import CourseConfig

RUBRIC = [
    {"points": 10, "description": "Correctness", "long_description": "All tests pass"},
    {"points": 2.5, "description": "Style"},
]


def test_render_full_note(course):
    """Test exact frontmatter and description layout."""
    text = render_assignment_note(make_assignment(1), course, "todo-list", tz=timezone.utc)

    assert text == (
        "---\n"
        "tags:\n"
        "  - assignment\n"
        "  - math\n"
        "due: 2026-01-20 23:59:00\n"
        "assigned: 2026-01-05\n"
        "url: https://canvas.example.edu/courses/42/assignments/1\n"
        "done: false\n"
        "class: MATH 101\n"
        "---\n"
        "## Description\n"
        "Do the reading.\n"
    )


def test_render_without_due_date_or_description():
    course = CourseConfig(id=1)
    text = render_assignment_note(make_assignment(2, due_at=None, description=None), course, tz=timezone.utc)

    assert "\ndue:\n" in text
    assert "tags:\n  - assignment\ndue:" in text
    assert "## Description" not in text
    assert "## Rubric" not in text


def test_done_is_false_even_with_submission(course):
    text = render_assignment_note(make_assignment(3, has_submitted_submissions=True), course, tz=timezone.utc)
    assert "done: false" in text


def test_due_is_converted_to_display_timezone():
    tz = timezone(timedelta(hours=-6))
    assert format_due("2026-01-21T05:59:00Z", tz) == "2026-01-20 23:59:00"
    assert format_due(None, tz) == ""


def test_render_rubric_table(course):
    """Test header row and one data row per criterion, in order."""
    text = render_assignment_note(make_assignment(4, rubric=RUBRIC), course, "table", tz=timezone.utc)

    rubric_section = text.split("## Rubric\n", 1)[1]
    rows = [line for line in rubric_section.splitlines() if line.startswith("|")]
    assert rows[0] == "| Criteria | Points | Description |"
    assert rows[1] == "| -------- | ------ | ----------- |"
    assert rows[2:] == [
        "| Correctness | 10 | All tests pass |",
        "| Style | 2.5 |  |",
    ]


def test_render_rubric_todo_list(course):
    """Test one checklist line per criterion plus italic long descriptions."""
    text = render_assignment_note(make_assignment(5, rubric=RUBRIC), course, "todo-list", tz=timezone.utc)

    rubric_section = text.split("## Rubric\n", 1)[1]
    checklist = [line for line in rubric_section.splitlines() if line.startswith("- [ ] **")]
    assert checklist == [
        "- [ ] **Correctness** (10 points)",
        "- [ ] **Style** (2.5 points)",
    ]
    assert "\t- _All tests pass_\n" in rubric_section


def test_render_empty_rubric_still_has_section(course):
    text = render_assignment_note(make_assignment(6, rubric=[]), course, "table", tz=timezone.utc)
    assert text.endswith("## Rubric\n| Criteria | Points | Description |\n| -------- | ------ | ----------- |\n")


def test_render_is_deterministic(course):
    assignment = make_assignment(7, rubric=RUBRIC)
    first = render_assignment_note(assignment, course, "table", tz=timezone.utc)
    second = render_assignment_note(assignment, course, "table", tz=timezone.utc)
    assert first == second


def test_prepare_description_only_touches_first_match():
    html_content = "\n<h2>Overview</h2>\n<p>a</p><h2>Details</h2>"

    prepared = prepare_description_html(html_content)

    assert prepared == "<h3>Overview</h3>\n<p>a</p><h2>Details</h2>"


def test_description_first_heading_is_demoted(course):
    assignment = make_assignment(8, description="<h2>Goal</h2><p>Build it</p><h2>Notes</h2>")
    text = render_assignment_note(assignment, course, tz=timezone.utc)

    assert "### Goal" in text
    assert "## Notes" in text
    assert "Build it" in text


def test_sanitize_file_name():
    assert sanitize_file_name("Quiz 1/2") == "Quiz 1_2"
    assert sanitize_file_name('Lab: "Intro" [A|B] #1 ^x *y & z\\w') == "Lab_ 'Intro' _A_B_ _1 _x _y _ z_w"


def test_assignment_note_path():
    course = CourseConfig(id=1, folder="School/Math/")
    assert assignment_note_path(course, make_assignment(1, name="Quiz 1/2")).endswith("Quiz 1_2.md")
    assert assignment_note_path(course, make_assignment(1, name="Quiz 1/2")) == "School/Math/Quiz 1_2.md"
    assert assignment_note_path(CourseConfig(id=1), make_assignment(1, name="HW")) == "HW.md"


def test_join_paths():
    assert join_paths("a/", "/b", "", "c") == "a/b/c"
    assert join_paths("", "x.md") == "x.md"
