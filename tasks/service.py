"""
tasks/service.py -- Task operations bound to an authenticated Identity.

Every operation takes the caller's Identity first. The owner of a new task is
identity.subject; single-task operations load the row and pass it through the
ownership guard before anything is returned or changed.

Titles are re-validated here (1-100 chars after stripping) before any write,
so a caller that skips the HTTP models still cannot store a bad title.
"""

from __future__ import annotations

import logging

from auth.models import Identity
from auth.ownership import require_mutate_access, require_read_access
from core.errors import AuthorizationError, ValidationError
from tasks.models import Task
from tasks.store import TaskStore

logger = logging.getLogger("tasklist.tasks")

TITLE_MAX_LENGTH = 100

# Largest value a 64-bit signed INTEGER column can hold.
MAX_TASK_ID = 2**63 - 1


def clean_title(title: str) -> str:
    """Return the stripped title or raise ValidationError."""
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required.", field="title")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title cannot be longer than {TITLE_MAX_LENGTH} characters.", field="title")
    return title


class TaskService:
    def __init__(self, store: TaskStore) -> None:
        self._store = store

    def list_tasks(self, identity: Identity) -> list[Task]:
        return self._store.list_for_owner(identity.subject)

    def create_task(self, identity: Identity, title: str, done: bool = False) -> Task:
        task = Task(owner_id=identity.subject, title=clean_title(title), done=done)
        task_id = self._store.create_task(task)
        logger.info("task.created task_id=%s owner=%s", task_id, identity.subject)
        return self._store.get_task(task_id)

    def _load(self, task_id: int) -> Task | None:
        # An id the database cannot represent names no row.
        if not 1 <= task_id <= MAX_TASK_ID:
            return None
        return self._store.get_task(task_id)

    def get_task(self, identity: Identity, task_id: int) -> Task:
        return require_read_access(identity, self._load(task_id))

    def update_task(self, identity: Identity, task_id: int, title: str, done: bool) -> Task:
        title = clean_title(title)
        task = require_mutate_access(identity, self._load(task_id))
        if not self._store.update_task(task.id, identity.subject, title, done):
            # Row vanished between load and update.
            raise AuthorizationError("Resource not found.")
        task.title = title
        task.done = done
        return task

    def delete_task(self, identity: Identity, task_id: int) -> None:
        task = require_mutate_access(identity, self._load(task_id))
        if not self._store.delete_task(task.id, identity.subject):
            raise AuthorizationError("Resource not found.")
        logger.info("task.deleted task_id=%s owner=%s", task_id, identity.subject)
