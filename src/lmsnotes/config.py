"""Configuration management for lmsnotes."""

import os
from datetime import tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent

        # Stop if we reach filesystem root
        if parent_dir == current_dir:
            return start_dir

        current_dir = parent_dir


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .lmsnotes/config.toml if it exists."""
    config_file = repo_root / ".lmsnotes" / "config.toml"

    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        # If config file is malformed, ignore it
        return None


def _get_repo_config_value(data: Optional[dict], key: str) -> Optional[str]:
    """Safely get a top-level string value from repo config."""
    if not data:
        return None
    value = data.get(key)
    if isinstance(value, str):
        return value
    return None


def resolve_vault_root(cli_vault_path: Optional[str] = None) -> Path:
    """Resolve vault root path with the following precedence:

    1. CLI --vault option (if provided)
    2. repo-local .lmsnotes/config.toml (walk upward from CWD)
    3. LMSNOTES_VAULT environment variable
    4. ./vault

    Returns:
        Absolute path to vault root directory
    """
    if cli_vault_path:
        return Path(cli_vault_path).expanduser().resolve()

    repo_config = _load_repo_config_data(_find_repo_root(Path.cwd()))
    repo_vault = _get_repo_config_value(repo_config, "vault_root")
    if repo_vault:
        return Path(repo_vault).expanduser().resolve()

    env_vault = os.environ.get("LMSNOTES_VAULT")
    if env_vault:
        return Path(env_vault).expanduser().resolve()

    return (Path.cwd() / "vault").resolve()


class LmsNotesConfig(BaseModel):
    """Host configuration: where the vault is and how to show times."""

    vault_path: Path = Field(default_factory=lambda: Path("./vault"))
    timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone for due dates; None uses the machine's local time",
    )

    @classmethod
    def from_env(cls, cli_vault_path: Optional[str] = None) -> "LmsNotesConfig":
        """Load configuration from CLI option, repo config, environment or defaults.

        Args:
            cli_vault_path: Vault path from CLI --vault option (highest precedence)
        """
        vault_path = resolve_vault_root(cli_vault_path)
        repo_config = _load_repo_config_data(_find_repo_root(Path.cwd()))

        return cls(
            vault_path=vault_path,
            timezone=os.environ.get("LMSNOTES_TIMEZONE") or _get_repo_config_value(repo_config, "timezone"),
        )

    def tzinfo(self) -> tzinfo | None:
        """Timezone object for due dates.

        Raises:
            ValueError: If the configured timezone name is unknown
        """
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError as e:
            raise ValueError(f"Unknown timezone: {self.timezone}") from e
