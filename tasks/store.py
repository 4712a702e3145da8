"""
tasks/store.py -- SQLAlchemy-backed persistence layer for tasks.

Uses SQLAlchemy Core (not ORM) so the Task dataclass in tasks/models.py
remains the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. TaskStore is the repository, _row_to_task
is the mapper. Service and route code never touch SQL directly.

Ownership in SQL:
  list_for_owner() filters by owner_id, so listing never loads foreign rows.
  update_task() and delete_task() put owner_id in the WHERE clause next to
  the id, so a statement can only affect a row the caller owns even if a
  guard upstream were skipped. owner_id is never in an UPDATE's SET list.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TaskStore("sqlite:///./tasklist.db")
    task_id = store.create_task(Task(owner_id=1, title="buy milk"))
    tasks = store.list_for_owner(1)
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, Index, Integer, MetaData, String, Table, create_engine, event
from sqlalchemy.engine import Engine

from tasks.models import Task

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tasks = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Integer, nullable=False),
    Column("title", String(100), nullable=False),
    Column("done", Boolean, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Index("ix_tasks_owner_id", "owner_id"),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety (per connection)."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TaskStore:
    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    def create_task(self, task: Task) -> int:
        """Insert a task and return its ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.insert().values(
                    owner_id=task.owner_id,
                    title=task.title,
                    done=task.done,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_task(self, task_id: int) -> Optional[Task]:
        """Load a task by id regardless of owner. Callers must run the ownership guard."""
        with self.engine.connect() as conn:
            row = conn.execute(_tasks.select().where(_tasks.c.id == task_id)).fetchone()
        return _row_to_task(row) if row is not None else None

    def list_for_owner(self, owner_id: int) -> list[Task]:
        """Return every task owned by owner_id, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _tasks.select().where(_tasks.c.owner_id == owner_id).order_by(_tasks.c.id)
            ).fetchall()
        return [_row_to_task(r) for r in rows]

    def update_task(self, task_id: int, owner_id: int, title: str, done: bool) -> bool:
        """Replace title and done. Returns False if no row matched id AND owner."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.update()
                .where((_tasks.c.id == task_id) & (_tasks.c.owner_id == owner_id))
                .values(title=title, done=done)
            )
            conn.commit()
        return result.rowcount > 0

    def delete_task(self, task_id: int, owner_id: int) -> bool:
        """Delete a task. Returns False if no row matched id AND owner."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.delete().where((_tasks.c.id == task_id) & (_tasks.c.owner_id == owner_id))
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        done=bool(row.done),
        created_at=row.created_at,
    )
