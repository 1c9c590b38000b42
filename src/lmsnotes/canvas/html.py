"""HTML to markdown conversion for Canvas assignment descriptions."""

import re

from bs4 import BeautifulSoup
from bs4.element import NavigableString, Tag

HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}
BLOCK_TAGS = {"p", "div", "section", "article", "header", "footer", "figure"}
SKIP_TAGS = {"script", "style", "head", "title", "meta", "link"}


def html_to_markdown(html_content: str) -> str:
    """Convert an HTML fragment to Obsidian-flavoured markdown.

    Covers what Canvas's rich content editor produces: paragraphs, headings,
    emphasis, links, images, lists, code, quotes, tables and line breaks.
    Unknown tags contribute their text.
    """
    if not html_content:
        return ""

    soup = BeautifulSoup(html_content, "html.parser")
    text = _render_children(soup)

    # Collapse runs of blank lines left by nested blocks
    text = re.sub(r" +\n", "\n", text)
    text = re.sub(r"\n\n +", "\n\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip() + "\n"


def _render_children(element: Tag, list_depth: int = 0) -> str:
    return "".join(_render(child, list_depth) for child in element.children)


def _inline_text(text: str) -> str:
    return re.sub(r"\s+", " ", text)


def _render(node, list_depth: int = 0) -> str:
    """Recursively render one node."""
    if isinstance(node, NavigableString):
        if type(node) is not NavigableString:
            # Comments, doctypes, CDATA
            return ""
        return _inline_text(str(node))

    if not isinstance(node, Tag):
        return ""

    name = node.name
    if name in SKIP_TAGS:
        return ""

    if name in HEADING_LEVELS:
        content = _render_children(node, list_depth).strip()
        return f"\n\n{'#' * HEADING_LEVELS[name]} {content}\n\n"

    if name in BLOCK_TAGS:
        content = _render_children(node, list_depth).strip()
        return f"\n\n{content}\n\n" if content else ""

    if name == "br":
        return "\n"

    if name == "hr":
        return "\n\n---\n\n"

    if name in ("strong", "b"):
        content = _render_children(node, list_depth).strip()
        return f"**{content}**" if content else ""

    if name in ("em", "i"):
        content = _render_children(node, list_depth).strip()
        return f"_{content}_" if content else ""

    if name in ("s", "del", "strike"):
        content = _render_children(node, list_depth).strip()
        return f"~~{content}~~" if content else ""

    if name == "code":
        return f"`{node.get_text()}`"

    if name == "pre":
        return f"\n\n```\n{node.get_text().strip(chr(10))}\n```\n\n"

    if name == "a":
        content = _render_children(node, list_depth).strip()
        href = node.get("href")
        if not href:
            return content
        return f"[{content or href}]({href})"

    if name == "img":
        src = node.get("src", "")
        alt = node.get("alt", "")
        return f"![{alt}]({src})" if src else ""

    if name in ("ul", "ol"):
        return _render_list(node, list_depth)

    if name == "blockquote":
        content = _render_children(node, list_depth).strip()
        quoted = "\n".join(f"> {line}" if line else ">" for line in content.split("\n"))
        return f"\n\n{quoted}\n\n"

    if name == "table":
        return _render_table(node)

    return _render_children(node, list_depth)


def _render_list(node: Tag, list_depth: int) -> str:
    ordered = node.name == "ol"
    indent = "\t" * list_depth
    lines = []
    index = 1
    for item in node.find_all("li", recursive=False):
        nested = ""
        parts = []
        for child in item.children:
            if isinstance(child, Tag) and child.name in ("ul", "ol"):
                nested += _render_list(child, list_depth + 1)
            else:
                parts.append(_render(child, list_depth + 1))
        content = re.sub(r"\s*\n\s*", " ", "".join(parts)).strip()
        marker = f"{index}." if ordered else "-"
        lines.append(f"{indent}{marker} {content}\n{nested}")
        index += 1
    body = "".join(lines)
    if list_depth:
        return body
    return f"\n\n{body}\n"


def _render_table(node: Tag) -> str:
    rows = []
    for tr in node.find_all("tr"):
        cells = [
            _render_children(cell).strip().replace("|", "\\|").replace("\n", " ")
            for cell in tr.find_all(["th", "td"], recursive=False)
        ]
        if cells:
            rows.append(cells)
    if not rows:
        return ""

    width = max(len(r) for r in rows)
    rows = [r + [""] * (width - len(r)) for r in rows]
    lines = ["| " + " | ".join(rows[0]) + " |", "| " + " | ".join(["---"] * width) + " |"]
    lines.extend("| " + " | ".join(r) + " |" for r in rows[1:])
    return "\n\n" + "\n".join(lines) + "\n\n"
