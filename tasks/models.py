"""
tasks/models.py -- Domain dataclass for the task list.

Pure data container with zero logic. Title rules live in tasks/service.py,
persistence in tasks/store.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Task:
    """A to-do item owned by exactly one account for its whole lifetime.

    owner_id is copied from the creator's validated Identity and is never
    updated afterwards.

    id is None before the record is written to the database.
    """

    owner_id: int
    title: str
    done: bool = False
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
