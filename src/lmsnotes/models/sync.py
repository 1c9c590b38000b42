"""Pydantic models for sync results."""

from enum import Enum

from pydantic import BaseModel, Field


class AssignmentAction(str, Enum):
    """What the reconciler did with one remote assignment."""

    SKIPPED = "skipped"
    CREATED = "created"
    RECREATED = "recreated"
    UPDATED = "updated"
    COLLISION = "collision"


class CourseSyncResult(BaseModel):
    """Outcome of syncing one course."""

    course_id: int
    pages: int = Field(..., description="Number of pages fetched")
    assignments_count: int = Field(..., description="Remote assignments seen")
    created: int = 0
    recreated: int = 0
    updated: int = 0
    skipped: int = 0
    collisions: int = 0

    def record(self, action: AssignmentAction) -> None:
        """Count one assignment outcome."""
        name = {
            AssignmentAction.SKIPPED: "skipped",
            AssignmentAction.CREATED: "created",
            AssignmentAction.RECREATED: "recreated",
            AssignmentAction.UPDATED: "updated",
            AssignmentAction.COLLISION: "collisions",
        }[action]
        setattr(self, name, getattr(self, name) + 1)

    @property
    def files_written(self) -> int:
        return self.created + self.recreated + self.updated


class SyncSummary(BaseModel):
    """Outcome of a full sync run across all configured courses."""

    run_id: str
    courses: list[CourseSyncResult] = Field(default_factory=list)
    elapsed_ms: int = 0

    @property
    def files_written(self) -> int:
        return sum(c.files_written for c in self.courses)
