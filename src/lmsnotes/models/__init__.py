"""Pydantic models for lmsnotes."""

from .assignment import RemoteAssignment, RubricCriterion
from .cache import AssignmentCache, CachedAssignmentRecord
from .course import CourseConfig
from .ledger import LedgerEvent, LedgerEventType
from .settings import RUBRIC_MODES, ChangeEvent, RubricMode, Settings
from .sync import AssignmentAction, CourseSyncResult, SyncSummary

__all__ = [
    "CourseConfig",
    # Canvas data
    "RemoteAssignment",
    "RubricCriterion",
    # Cache
    "AssignmentCache",
    "CachedAssignmentRecord",
    # Settings
    "RUBRIC_MODES",
    "RubricMode",
    "Settings",
    "ChangeEvent",
    # Ledger
    "LedgerEvent",
    "LedgerEventType",
    # Sync results
    "AssignmentAction",
    "CourseSyncResult",
    "SyncSummary",
]
