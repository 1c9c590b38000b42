"""Incremental sync of Canvas assignments into vault notes."""

import logging
import time
import uuid
from datetime import tzinfo

from .client import CanvasClient, SyncError, total_pages
from .frontmatter import update_frontmatter_fields
from .renderer import assignment_note_path, format_assigned, format_due, render_assignment_note
from .vault import NoteStorage
from ..ledger import LedgerWriter
from ..lock import SyncLock
from ..models.assignment import RemoteAssignment
from ..models.cache import AssignmentCache, CachedAssignmentRecord
from ..models.course import CourseConfig
from ..models.ledger import LedgerEventType
from ..models.settings import Settings
from ..models.sync import AssignmentAction, CourseSyncResult, SyncSummary
from ..store import SyncStore

logger = logging.getLogger(__name__)


class SyncInProgressError(SyncError):
    """A sync was started while another one was still running."""


class AssignmentReconciler:
    """Brings each course's notes in line with Canvas.

    The cache decides the work: an assignment whose ``updated_at`` matches
    its cached ``last_updated`` is skipped without touching the vault. A
    changed assignment only has its ``due`` and ``assigned`` frontmatter
    rewritten, so hand edits elsewhere in the note survive. The cache is
    saved once per course.
    """

    def __init__(
        self,
        client: CanvasClient,
        storage: NoteStorage,
        store: SyncStore,
        settings: Settings,
        cache: AssignmentCache,
        ledger_writer: LedgerWriter | None = None,
        tz: tzinfo | None = None,
        run_lock: SyncLock | None = None,
    ):
        self.client = client
        self.storage = storage
        self.store = store
        self.settings = settings
        self.cache = cache
        self.ledger_writer = ledger_writer
        self.tz = tz
        # One sync per vault, shared with other processes through a lock file
        self.run_lock = run_lock or SyncLock(store.data_file.parent / "sync.lock")

    def _log_event(self, event_type: LedgerEventType, payload: dict, course_id: int | None = None) -> None:
        if self.ledger_writer is not None:
            self.ledger_writer.append_event(event_type=event_type, payload=payload, course_id=course_id)

    def sync_all(self) -> SyncSummary:
        """Sync every configured course, in configuration order.

        The first fatal error stops the run. Notes and cache entries from
        courses already finished stay in place.

        Raises:
            SyncInProgressError: If another sync or refresh holds the vault lock
            SyncError: If fetching any course fails
            OSError: If a note or the cache cannot be written
        """
        self._acquire_run_lock()

        try:
            run_id = self.ledger_writer.run_id if self.ledger_writer else str(uuid.uuid4())
            summary = SyncSummary(run_id=run_id)
            start = time.perf_counter()
            self._log_event("SYNC_STARTED", {"courses": [c.id for c in self.settings.courses]})

            course_id = None
            try:
                for course in self.settings.courses:
                    course_id = course.id
                    summary.courses.append(self.sync_course(course))
            except Exception as e:
                failed_course = getattr(e, "course_id", None)
                self._log_event(
                    "SYNC_FAILED",
                    {"error_kind": type(e).__name__, "message": str(e)},
                    course_id=failed_course if failed_course is not None else course_id,
                )
                raise

            summary.elapsed_ms = round((time.perf_counter() - start) * 1000)
            self._log_event(
                "SYNC_COMPLETED",
                {"elapsed_ms": summary.elapsed_ms, "files_written": summary.files_written},
            )
            return summary
        finally:
            self.run_lock.release()

    def _acquire_run_lock(self) -> None:
        if not self.run_lock.acquire():
            raise SyncInProgressError(f"A sync is already running (lock file {self.run_lock.lock_file})")

    def fetch_all_assignments(self, course_id: int) -> tuple[list[RemoteAssignment], int]:
        """Fetch every page of a course's assignments, in page order.

        Returns:
            (assignments in remote order, number of pages)

        Raises:
            PaginationError: If the first page has no last-page link
            TransportError: If any page request fails
        """
        first_page = self.client.fetch_assignment_page(course_id, 0)
        num_pages = total_pages(first_page.headers, course_id)

        assignments = list(first_page.assignments)
        for page_index in range(1, num_pages):
            assignments.extend(self.client.fetch_assignment_page(course_id, page_index).assignments)

        return assignments, num_pages

    def sync_course(self, course: CourseConfig) -> CourseSyncResult:
        """Sync one course and persist the cache afterwards."""
        logger.info(f"Syncing course {course.id} into '{course.folder or '/'}'")

        if course.folder and not self.storage.folder_exists(course.folder):
            self.storage.create_folder(course.folder)

        assignments, num_pages = self.fetch_all_assignments(course.id)
        self._log_event(
            "COURSE_FETCHED",
            {"pages": num_pages, "assignments_count": len(assignments)},
            course_id=course.id,
        )

        result = CourseSyncResult(
            course_id=course.id,
            pages=num_pages,
            assignments_count=len(assignments),
        )
        for assignment in assignments:
            result.record(self.reconcile_assignment(course, assignment))

        self.store.save(self.settings, self.cache)

        self._log_event("COURSE_SYNCED", result.model_dump(exclude={"course_id"}), course_id=course.id)
        logger.info(
            f"Course {course.id}: {result.created} created, {result.updated} updated, "
            f"{result.recreated} recreated, {result.skipped} unchanged"
        )
        return result

    def refresh_assignment(self, course: CourseConfig, assignment_id: int) -> AssignmentAction:
        """Fetch one assignment and reconcile it on its own.

        Raises:
            SyncInProgressError: If a sync holds the vault lock
            TransportError: If the request fails
        """
        self._acquire_run_lock()
        try:
            if course.folder and not self.storage.folder_exists(course.folder):
                self.storage.create_folder(course.folder)

            assignment = self.client.fetch_assignment(course.id, assignment_id)
            action = self.reconcile_assignment(course, assignment)
            self.store.save(self.settings, self.cache)
            return action
        finally:
            self.run_lock.release()

    def reconcile_assignment(self, course: CourseConfig, assignment: RemoteAssignment) -> AssignmentAction:
        """Decide create / update / skip for one assignment and apply it."""
        known = self.cache.get(assignment.id)

        if known is not None:
            if known.last_updated == assignment.updated_at:
                logger.debug(f"Assignment {assignment.id} unchanged, skipping")
                return AssignmentAction.SKIPPED

            if not self.storage.file_exists(known.file_path):
                self._write_note(known.file_path, assignment, course)
                action = AssignmentAction.RECREATED
                event_type = "ASSIGNMENT_RECREATED"
            else:
                content = self.storage.read(known.file_path)
                self.storage.modify(
                    known.file_path,
                    update_frontmatter_fields(
                        content,
                        {
                            "due": format_due(assignment.due_at, self.tz),
                            "assigned": format_assigned(assignment.created_at),
                        },
                    ),
                )
                action = AssignmentAction.UPDATED
                event_type = "ASSIGNMENT_UPDATED"

            self.cache[assignment.id] = known.model_copy(update={"last_updated": assignment.updated_at})
            self._log_event(
                event_type,
                {"assignment_id": assignment.id, "file_path": known.file_path},
                course_id=course.id,
            )
            return action

        file_path = assignment_note_path(course, assignment)
        # Tracked before writing so a failed write is not re-created under a second entry
        self.cache[assignment.id] = CachedAssignmentRecord(
            name=assignment.name,
            course_id=course.id,
            last_updated=assignment.updated_at,
            file_path=file_path,
        )

        if self.storage.file_exists(file_path):
            logger.warning(
                f"Note already exists at {file_path} for untracked assignment {assignment.id}, leaving it alone"
            )
            self._log_event(
                "ASSIGNMENT_COLLISION",
                {"assignment_id": assignment.id, "file_path": file_path},
                course_id=course.id,
            )
            return AssignmentAction.COLLISION

        self._write_note(file_path, assignment, course)
        self._log_event(
            "ASSIGNMENT_CREATED",
            {"assignment_id": assignment.id, "file_path": file_path, "name": assignment.name},
            course_id=course.id,
        )
        return AssignmentAction.CREATED

    def _write_note(self, file_path: str, assignment: RemoteAssignment, course: CourseConfig) -> None:
        text = render_assignment_note(assignment, course, self.settings.rubric_mode, self.tz)
        self.storage.create(file_path, text)
