"""Pydantic models for course rules."""

from pydantic import BaseModel, Field


class CourseConfig(BaseModel):
    """One parsed course rule.

    Built from a line like ``id = 123; folder = School/Math; tags = math``.
    """

    id: int = Field(..., description="Canvas course identifier")
    folder: str = Field("", description="Vault-relative folder for the course's notes")
    extra_tags: list[str] = Field(default_factory=list, description="Tags added after 'assignment'")
    extra_frontmatter: list[tuple[str, str]] = Field(
        default_factory=list,
        description="Literal frontmatter key/value pairs, in source order",
    )

    model_config = {"frozen": True}
