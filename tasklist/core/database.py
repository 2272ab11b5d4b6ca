"""
tasklist - Task Store
Persistent task table behind a single re-entrant lock (SQLAlchemy Core over SQLite)
"""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from sqlalchemy import (
    Boolean, Column, Integer, MetaData, Table, Text,
    create_engine, delete, func, insert, select, update,
)
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from tasklist.core.models import Task, TaskListError, validate_text

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class StoreError(TaskListError):
    """Any persistence failure. The message carries the driver error."""

    def __init__(self, action: str, cause: Exception):
        self.action = action
        self.cause = cause
        super().__init__(f"{action}: {cause}")

# ===== SCHEMA =====

metadata = MetaData()

# The column is called "task" in existing databases
tasks_table = Table(
    "tasks", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("task", Text, nullable=False, key="text"),
    Column("completed", Boolean, nullable=False, server_default="0"),
    sqlite_autoincrement=True,
)

# SQLite INTEGER range; ids outside it cannot name a row
MIN_ROW_ID = -2**63
MAX_ROW_ID = 2**63 - 1

def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Engine for the configured URL. SQLite connections are shared across worker threads."""
    url = make_url(database_url)
    kwargs = {"echo": echo}

    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # one connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(url, **kwargs)

# ===== STORE =====

class TaskStore:
    """
    Owner of the canonical task set.

    Every operation takes the store lock, so at most one statement runs at a
    time. The lock is re-entrant: a request handler can hold ``locked()``
    across a query and the rendering of its result.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.engine = build_engine(database_url, echo=echo)
        self.tasks = tasks_table
        self._lock = threading.RLock()

    def initialize(self) -> None:
        """Create the tasks table if it does not exist"""
        with self._lock:
            try:
                metadata.create_all(self.engine)
            except SQLAlchemyError as e:
                logger.error(f"Database initialization failed: {e}")
                raise StoreError("Error initializing database", e) from e
        logger.info(f"✅ Task store ready ({self.engine.url.render_as_string(hide_password=True)})")

    def close(self) -> None:
        with self._lock:
            self.engine.dispose()

    @contextmanager
    def locked(self) -> Iterator["TaskStore"]:
        with self._lock:
            yield self

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Connection]:
        """Connection in its own transaction, under the store lock"""
        with self._lock:
            try:
                with self.engine.begin() as conn:
                    yield conn
            except SQLAlchemyError as e:
                logger.error(f"{action}: {e}")
                raise StoreError(action, e) from e

    @staticmethod
    def _is_row_id(task_id: int) -> bool:
        if MIN_ROW_ID <= task_id <= MAX_ROW_ID:
            return True
        logger.debug(f"Task id {task_id} is out of range, nothing to update")
        return False

    # ===== QUERIES =====

    def list_by_status(self, completed: bool) -> List[Task]:
        """All tasks with the given flag, newest first"""
        stmt = (
            select(
                self.tasks.c.id,
                self.tasks.c.text.label("text"),
                self.tasks.c.completed,
            )
            .where(self.tasks.c.completed == completed)
            .order_by(self.tasks.c.id.desc())
        )
        with self._transaction("Error fetching tasks") as conn:
            rows = conn.execute(stmt).mappings().all()
        return [Task.from_row(row) for row in rows]

    def count(self, completed: Optional[bool] = None) -> int:
        stmt = select(func.count()).select_from(self.tasks)
        if completed is not None:
            stmt = stmt.where(self.tasks.c.completed == completed)
        with self._transaction("Error counting tasks") as conn:
            return conn.execute(stmt).scalar_one()

    # ===== MUTATIONS =====

    def create(self, text: str) -> int:
        """Insert an active task and return its id"""
        validate_text(text)
        stmt = insert(self.tasks).values(text=text, completed=False)
        with self._transaction("Error adding task") as conn:
            task_id = conn.execute(stmt).inserted_primary_key[0]
        logger.debug(f"Task {task_id} created")
        return task_id

    def set_completed(self, task_id: int, completed: bool) -> None:
        """Flip the flag. An unknown id matches no row and is not an error."""
        if not self._is_row_id(task_id):
            return
        stmt = update(self.tasks).where(self.tasks.c.id == task_id).values(completed=completed)
        with self._transaction("Error updating task") as conn:
            rows = conn.execute(stmt).rowcount
        logger.debug(f"Task {task_id} completed={completed} (rows: {rows})")

    def set_text(self, task_id: int, text: str) -> None:
        validate_text(text)
        if not self._is_row_id(task_id):
            return
        stmt = update(self.tasks).where(self.tasks.c.id == task_id).values(text=text)
        with self._transaction("Error updating task") as conn:
            rows = conn.execute(stmt).rowcount
        logger.debug(f"Task {task_id} renamed (rows: {rows})")

    def delete(self, task_id: int) -> None:
        if not self._is_row_id(task_id):
            return
        stmt = delete(self.tasks).where(self.tasks.c.id == task_id)
        with self._transaction("Error deleting task") as conn:
            rows = conn.execute(stmt).rowcount
        logger.debug(f"Task {task_id} deleted (rows: {rows})")
