"""Pydantic models for Canvas assignment data."""

from pydantic import BaseModel, Field


class RubricCriterion(BaseModel):
    """A single scored rubric criterion."""

    points: float = Field(..., description="Points available for this criterion")
    description: str = Field(..., description="Short criterion title")
    long_description: str | None = Field(None, description="Optional longer explanation")

    model_config = {"frozen": True}

    @property
    def points_display(self) -> str:
        """Points as Canvas shows them (``5`` rather than ``5.0``)."""
        if float(self.points).is_integer():
            return str(int(self.points))
        return str(self.points)


class RemoteAssignment(BaseModel):
    """An assignment as returned by the Canvas REST API.

    Timestamps are kept as the raw strings the API sent: ``updated_at`` is
    compared by string equality against the cache.
    """

    id: int
    name: str
    description: str | None = None
    created_at: str
    updated_at: str
    due_at: str | None = None
    course_id: int
    has_submission: bool = Field(False, alias="has_submitted_submissions")
    url: str = Field("", alias="html_url")
    rubric: list[RubricCriterion] | None = None

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}
