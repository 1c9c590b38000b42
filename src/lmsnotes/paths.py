"""Locations of lmsnotes state inside a vault."""

from pathlib import Path

from .config import LmsNotesConfig


class VaultPaths:
    """Manages paths of the files lmsnotes keeps in a vault."""

    def __init__(self, vault_root: Path):
        """Initialize vault paths from root directory.
        
        Args:
            vault_root: Root directory of the Obsidian vault
        """
        self.root = vault_root
        self.system = vault_root / ".lmsnotes"

        self.data_file = self.system / "data.json"
        self.ledger_file = self.system / "ledger.jsonl"
        self.lock_file = self.system / "sync.lock"

    @classmethod
    def from_config(cls, config: LmsNotesConfig) -> "VaultPaths":
        """Create VaultPaths from a LmsNotesConfig."""
        return cls(config.vault_path)
