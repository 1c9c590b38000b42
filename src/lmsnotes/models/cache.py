"""Pydantic models for the known-assignments cache."""

from pydantic import BaseModel, Field


class CachedAssignmentRecord(BaseModel):
    """What we remember about an assignment that already has a note.

    ``file_path`` is where the note should be; it may have been moved or
    deleted in the vault since.
    """

    name: str = Field(..., description="Assignment name at first sight")
    course_id: int = Field(..., description="Course the assignment belongs to")
    last_updated: str = Field(..., description="Raw updated_at seen at last sync")
    file_path: str = Field(..., description="Vault-relative note path")


AssignmentCache = dict[int, CachedAssignmentRecord]
