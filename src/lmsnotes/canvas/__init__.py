"""Canvas integration for lmsnotes.

Provides the API client, note rendering and the assignment reconciler.
"""

from .client import CanvasClient, PaginationError, SyncError, TransportError
from .reconciler import AssignmentReconciler, SyncInProgressError
from .renderer import render_assignment_note
from .vault import NoteStorage, VaultStorage

__all__ = [
    "CanvasClient",
    "AssignmentReconciler",
    "render_assignment_note",
    "NoteStorage",
    "VaultStorage",
    "SyncError",
    "PaginationError",
    "TransportError",
    "SyncInProgressError",
]
