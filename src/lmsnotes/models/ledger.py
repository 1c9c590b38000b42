"""Pydantic models for ledger events."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

LedgerEventType = Literal[
    "SYNC_STARTED",
    "COURSE_FETCHED",
    "ASSIGNMENT_CREATED",
    "ASSIGNMENT_RECREATED",
    "ASSIGNMENT_UPDATED",
    "ASSIGNMENT_COLLISION",
    "COURSE_SYNCED",
    "SYNC_COMPLETED",
    "SYNC_FAILED",
]


class LedgerEvent(BaseModel):
    """Append-only ledger event record.
    
    Written as JSONL to <vault>/.lmsnotes/ledger.jsonl.
    Never mutate or delete; only append.
    """

    event_id: str = Field(description="Unique event identifier (uuid4)")
    run_id: str = Field(description="Run identifier (uuid4)")
    ts: datetime = Field(description="Event timestamp (ISO8601 UTC)")
    event_type: LedgerEventType = Field(description="Event type")
    course_id: int | None = Field(default=None, description="Related course ID if applicable")
    payload: dict = Field(default_factory=dict, description="Event-specific data")

    model_config = {"frozen": True}
