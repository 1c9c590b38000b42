"""Parser for course rule lines (``id = 123; folder = School/Math; tags = a, b``)."""

import logging

from .models.course import CourseConfig

logger = logging.getLogger(__name__)

KNOWN_KEYS = ("id", "folder", "tags")


class ParseError(ValueError):
    """Raised when a course rule line cannot be turned into a CourseConfig."""

    def __init__(self, message: str, line: str):
        super().__init__(message)
        self.line = line


class UnsafeFolderError(ParseError):
    """Raised when a course folder would place notes outside the vault."""


def _split_pairs(rule: str) -> dict[str, str]:
    """Split ``key = value; key = value`` into an ordered mapping.

    Segments without ``=`` or with an empty key are ignored. A repeated key
    keeps its first position and its last value.
    """
    pairs: dict[str, str] = {}
    for segment in rule.split(";"):
        if "=" not in segment:
            continue
        key, value = segment.split("=", 1)
        key = key.strip()
        if not key:
            continue
        pairs[key] = value.strip()
    return pairs


def parse_course_rule(rule: str) -> CourseConfig:
    """Parse one course rule line.

    Args:
        rule: A single configuration line

    Returns:
        CourseConfig with known fields extracted and the rest kept as
        extra frontmatter pairs in source order

    Raises:
        ParseError: If ``id`` is missing or not an integer, or ``folder``
            points outside the vault
    """
    pairs = _split_pairs(rule)

    raw_id = pairs.get("id")
    if raw_id is None:
        raise ParseError("Course rule is missing an id", rule)
    try:
        course_id = int(raw_id)
    except ValueError:
        raise ParseError(f"Course id is not a number: {raw_id!r}", rule)

    folder = pairs.get("folder", "")
    if ".." in folder.replace("\\", "/").split("/"):
        raise UnsafeFolderError(f"Course folder must stay inside the vault: {folder!r}", rule)

    tags_value = pairs.get("tags")
    extra_tags = [t.strip() for t in tags_value.split(",")] if tags_value is not None else []

    return CourseConfig(
        id=course_id,
        folder=folder,
        extra_tags=extra_tags,
        extra_frontmatter=[(k, v) for k, v in pairs.items() if k not in KNOWN_KEYS],
    )


def iter_rule_lines(text: str) -> list[str]:
    """Return the lines of a rules block that hold a rule (no blanks, no comments)."""
    lines = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        lines.append(line)
    return lines


def parse_course_rules(text: str) -> list[CourseConfig]:
    """Parse a whole block of course rules, all or nothing.

    Raises:
        ParseError: For the first line that fails; no partial list is returned
    """
    courses = [parse_course_rule(line) for line in iter_rule_lines(text)]
    logger.debug(f"Parsed {len(courses)} course rule(s)")
    return courses
