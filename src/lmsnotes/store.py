"""Persistence for settings and the known-assignments cache."""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .models.cache import AssignmentCache, CachedAssignmentRecord
from .models.settings import Settings

logger = logging.getLogger(__name__)


class StoredData(BaseModel):
    """On-disk shape of the data file."""

    settings: Settings = Field(default_factory=Settings)
    known_assignments: dict[int, CachedAssignmentRecord] = Field(default_factory=dict)


class SyncStore:
    """Loads and saves settings and cache together as one JSON blob."""

    def __init__(self, data_file: Path):
        self.data_file = data_file

    def load(self) -> tuple[Settings, AssignmentCache]:
        """Load settings and cache, falling back to defaults."""
        if not self.data_file.exists():
            logger.info(f"Data file {self.data_file} does not exist, using defaults")
            return Settings(), {}

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            stored = StoredData.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to load data file {self.data_file}: {e}, using defaults")
            return Settings(), {}

        return stored.settings, dict(stored.known_assignments)

    def save(self, settings: Settings, cache: AssignmentCache) -> None:
        """Save settings and cache atomically.

        Raises:
            OSError: If the file cannot be written
        """
        self.data_file.parent.mkdir(parents=True, exist_ok=True)

        data = StoredData(settings=settings, known_assignments=cache).model_dump(mode="json")

        temp_file = self.data_file.with_suffix(".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            temp_file.replace(self.data_file)
            logger.debug(f"Saved {len(cache)} cached assignment(s) to {self.data_file}")

        except OSError as e:
            logger.error(f"Failed to save data to {self.data_file}: {e}")
            temp_file.unlink(missing_ok=True)
            raise
