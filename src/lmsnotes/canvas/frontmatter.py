"""In-place edits to a note's frontmatter that leave everything else alone."""

import re

FENCE = "---"


def _frontmatter_bounds(lines: list[str]) -> tuple[int, int] | None:
    """Return (open, close) line indexes of the frontmatter fences, if any."""
    if not lines or lines[0].rstrip("\r\n") != FENCE:
        return None
    for i in range(1, len(lines)):
        if lines[i].rstrip("\r\n") == FENCE:
            return 0, i
    return None


def update_frontmatter_fields(content: str, fields: dict[str, str]) -> str:
    """Set top-level frontmatter keys, touching only their lines.

    Existing ``key:`` lines are rewritten in place (along with any indented
    continuation lines belonging to them). Missing keys are appended just
    before the closing fence. A note without frontmatter gets a new block
    holding only these keys. Body text is returned byte for byte.

    Args:
        content: Current note text
        fields: Keys and already-formatted scalar values

    Returns:
        Updated note text
    """
    lines = content.splitlines(keepends=True)
    bounds = _frontmatter_bounds(lines)

    if bounds is None:
        block = [FENCE + "\n"]
        block.extend(f"{key}: {value}".rstrip() + "\n" for key, value in fields.items())
        block.append(FENCE + "\n")
        return "".join(block) + content

    start, end = bounds
    newline = "\r\n" if lines[start].endswith("\r\n") else "\n"
    header = lines[start + 1:end]
    remaining = dict(fields)
    updated: list[str] = []

    i = 0
    while i < len(header):
        line = header[i]
        key = _top_level_key(line)
        if key is not None and key in remaining:
            updated.append(f"{key}: {remaining.pop(key)}".rstrip() + newline)
            i += 1
            # Drop the old value's continuation lines (block scalars, lists)
            while i < len(header) and _is_continuation(header[i]):
                i += 1
            continue
        updated.append(line)
        i += 1

    if updated and not updated[-1].endswith(("\n", "\r")):
        updated[-1] += newline
    updated.extend(f"{key}: {value}".rstrip() + newline for key, value in remaining.items())

    return "".join(lines[: start + 1] + updated + lines[end:])


_KEY_PATTERN = re.compile(r"^([A-Za-z0-9_\-]+)\s*:")


def _top_level_key(line: str) -> str | None:
    match = _KEY_PATTERN.match(line)
    return match.group(1) if match else None


def _is_continuation(line: str) -> bool:
    return line.startswith((" ", "\t", "-")) and line.strip() != ""


def read_frontmatter_field(content: str, key: str) -> str | None:
    """Raw value of a top-level frontmatter key, or None if absent."""
    lines = content.splitlines()
    bounds = _frontmatter_bounds(lines)
    if bounds is None:
        return None
    start, end = bounds
    for line in lines[start + 1:end]:
        if _top_level_key(line) == key:
            return line.split(":", 1)[1].strip()
    return None
