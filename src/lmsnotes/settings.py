"""Validated edits to persisted settings."""

import logging

from .course_rules import ParseError, UnsafeFolderError, parse_course_rules
from .models.settings import RUBRIC_MODES, ChangeEvent, Settings

logger = logging.getLogger(__name__)

INVALID_COURSES_MESSAGE = "Invalid course data. Make sure you defined a numerical id."


class SettingsValidationError(ValueError):
    """Raised when a settings change is rejected."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


def apply_change(settings: Settings, change: ChangeEvent) -> Settings:
    """Return a copy of ``settings`` with ``change`` applied.

    The input is never mutated. Course rules are validated as a batch: if any
    line fails, neither ``courses_text`` nor ``courses`` changes.

    Raises:
        SettingsValidationError: If the new value is not acceptable
    """
    if change.field == "rubric_mode":
        mode = change.value.strip()
        if mode not in RUBRIC_MODES:
            raise SettingsValidationError(
                change.field,
                f"Rubric mode must be one of {', '.join(RUBRIC_MODES)}",
            )
        return settings.model_copy(update={"rubric_mode": mode})

    if change.field == "courses_text":
        try:
            courses = parse_course_rules(change.value)
        except UnsafeFolderError as e:
            raise SettingsValidationError(change.field, str(e)) from e
        except ParseError as e:
            logger.warning(f"Rejected course rules at line {e.line!r}: {e}")
            raise SettingsValidationError(change.field, INVALID_COURSES_MESSAGE) from e
        return settings.model_copy(
            update={"courses_text": change.value, "courses": courses}
        )

    return settings.model_copy(update={change.field: change.value.strip()})
