"""Pydantic models for persisted user settings."""

from typing import Literal

from pydantic import BaseModel, Field

from .course import CourseConfig

RubricMode = Literal["todo-list", "table"]
RUBRIC_MODES: tuple[str, ...] = ("todo-list", "table")


class Settings(BaseModel):
    """User-facing settings, persisted next to the assignment cache."""

    access_token: str = Field("", description="Canvas API access token")
    canvas_url: str = Field("", description="Canvas host, e.g. example.instructure.com")
    rubric_mode: RubricMode = Field("todo-list", description="How rubrics are rendered")
    courses: list[CourseConfig] = Field(default_factory=list, description="Parsed course rules")
    courses_text: str = Field("", description="Raw course rules as typed by the user")


class ChangeEvent(BaseModel):
    """A single edit to one settings field."""

    field: Literal["access_token", "canvas_url", "rubric_mode", "courses_text"]
    value: str
