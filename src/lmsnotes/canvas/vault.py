"""File storage for notes, addressed by vault-relative paths."""

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class NoteStorage(Protocol):
    """What the reconciler needs from the note store."""

    def folder_exists(self, path: str) -> bool: ...

    def create_folder(self, path: str) -> None: ...

    def file_exists(self, path: str) -> bool: ...

    def read(self, path: str) -> str: ...

    def create(self, path: str, content: str) -> None: ...

    def modify(self, path: str, content: str) -> None: ...


class VaultStorage:
    """NoteStorage backed by an Obsidian vault directory on disk."""

    def __init__(self, vault_root: Path):
        self.root = vault_root

    def resolve(self, path: str) -> Path:
        """Absolute path for a vault-relative path.

        Raises:
            ValueError: If the path escapes the vault root
        """
        resolved = (self.root / path.lstrip("/")).resolve()
        root = self.root.resolve()
        if resolved != root and root not in resolved.parents:
            raise ValueError(f"Path escapes vault root: {path}")
        return resolved

    def folder_exists(self, path: str) -> bool:
        return self.resolve(path).is_dir()

    def create_folder(self, path: str) -> None:
        self.resolve(path).mkdir(parents=True, exist_ok=True)

    def file_exists(self, path: str) -> bool:
        return self.resolve(path).is_file()

    def read(self, path: str) -> str:
        with open(self.resolve(path), "r", encoding="utf-8", newline="") as f:
            return f.read()

    def create(self, path: str, content: str) -> None:
        """Create a new note; parent folders are created as needed.

        Raises:
            FileExistsError: If a file is already at ``path``
        """
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "x", encoding="utf-8", newline="") as f:
            f.write(content)
        logger.info(f"Created note: {path}")

    def modify(self, path: str, content: str) -> None:
        """Overwrite an existing note.

        Raises:
            FileNotFoundError: If no file is at ``path``
        """
        target = self.resolve(path)
        if not target.is_file():
            raise FileNotFoundError(f"Note not found: {path}")
        with open(target, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        logger.debug(f"Modified note: {path}")
