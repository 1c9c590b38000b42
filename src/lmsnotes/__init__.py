"""lmsnotes - sync Canvas LMS assignments into Obsidian markdown notes."""

__version__ = "0.1.0"
