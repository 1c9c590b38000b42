"""Pytest fixtures for lmsnotes tests."""

from datetime import timezone

import pytest

from lmsnotes.canvas.client import AssignmentPage
from lmsnotes.canvas.reconciler import AssignmentReconciler
from lmsnotes.canvas.vault import VaultStorage
from lmsnotes.ledger import LedgerWriter
from lmsnotes.models.assignment import RemoteAssignment
from lmsnotes.models.course import CourseConfig
from lmsnotes.models.settings import Settings
from lmsnotes.paths import VaultPaths
from lmsnotes.store import SyncStore


def make_assignment(assignment_id: int = 1, **overrides) -> RemoteAssignment:
    """Build a RemoteAssignment the way the API would send it."""
    data = {
        "id": assignment_id,
        "name": f"Homework {assignment_id}",
        "description": "<p>Do the reading.</p>",
        "created_at": "2026-01-05T15:00:00Z",
        "updated_at": "2026-01-06T09:30:00Z",
        "due_at": "2026-01-20T23:59:00Z",
        "course_id": 42,
        "has_submitted_submissions": False,
        "html_url": f"https://canvas.example.edu/courses/42/assignments/{assignment_id}",
        "rubric": None,
    }
    data.update(overrides)
    return RemoteAssignment.model_validate(data)


def link_header(last_page: int) -> dict[str, str]:
    base = "https://canvas.example.edu/api/v1/courses/42/assignments"
    return {
        "Link": (
            f'<{base}?page=1&per_page=100>; rel="current",'
            f'<{base}?page=1&per_page=100>; rel="first",'
            f'<{base}?page={last_page}&per_page=100>; rel="last"'
        )
    }


class FakeCanvasClient:
    """In-memory stand-in for CanvasClient, keyed by course id."""

    def __init__(self, pages: dict[int, list[list[RemoteAssignment]]] | None = None):
        self.pages = pages or {}
        self.calls: list[tuple[int, int]] = []
        self.headers_override: dict[int, dict[str, str]] = {}

    def fetch_assignment_page(self, course_id: int, page_index: int) -> AssignmentPage:
        self.calls.append((course_id, page_index))
        course_pages = self.pages.get(course_id, [[]])
        headers = self.headers_override.get(course_id, link_header(len(course_pages)))
        return AssignmentPage(assignments=list(course_pages[page_index]), headers=headers)

    def fetch_assignment(self, course_id: int, assignment_id: int) -> RemoteAssignment:
        for page in self.pages.get(course_id, []):
            for assignment in page:
                if assignment.id == assignment_id:
                    return assignment
        raise KeyError(assignment_id)


@pytest.fixture
def temp_vault(tmp_path):
    """Create a temporary Obsidian vault root."""
    vault_root = tmp_path / "test_vault"
    vault_root.mkdir()
    return vault_root


@pytest.fixture
def vault_paths(temp_vault):
    return VaultPaths(temp_vault)


@pytest.fixture
def store(vault_paths):
    return SyncStore(vault_paths.data_file)


@pytest.fixture
def course():
    return CourseConfig(id=42, folder="School/Math", extra_tags=["math"], extra_frontmatter=[("class", "MATH 101")])


@pytest.fixture
def fake_client():
    return FakeCanvasClient()


@pytest.fixture
def make_reconciler(temp_vault, vault_paths, store, course, fake_client):
    """Factory for a reconciler over the temp vault with a fake client."""

    def _make(cache=None, settings=None, client=None, storage=None):
        return AssignmentReconciler(
            client=client or fake_client,
            storage=storage or VaultStorage(temp_vault),
            store=store,
            settings=settings or Settings(courses=[course]),
            cache={} if cache is None else cache,
            ledger_writer=LedgerWriter(vault_paths.ledger_file),
            tz=timezone.utc,
        )

    return _make
