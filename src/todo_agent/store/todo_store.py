"""
CRUD operations against the ``todos`` table.

Every method opens its own short session, commits on success and converts ORM rows to
:class:`~todo_agent.core.schema.TodoItem` before returning, so no ORM object leaves this module.
Database failures surface as :class:`StoreError`.
"""

import logging
from typing import List

from sqlalchemy import (
    delete,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import (
    Session,
    sessionmaker,
)

from todo_agent.core.schema import TodoItem
from todo_agent.store.models import TodoRow

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the database cannot complete a to-do operation."""


class TodoStore:
    """SQLAlchemy-backed to-do store."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def insert(self, title: str) -> int:
        """Insert a new, not yet completed item and return its id."""
        try:
            with self._session_factory.begin() as session:
                row = TodoRow(title=title, completed=False)
                session.add(row)
                session.flush()
                new_id = row.id
        except SQLAlchemyError as exc:
            logger.error("Failed to insert todo %r: %s", title, exc)
            raise StoreError(f"could not create todo: {exc}") from exc
        logger.info("Created todo #%d", new_id)
        return new_id

    def list_all(self) -> List[TodoItem]:
        """Return every item in insertion order (possibly empty)."""
        return self._select(select(TodoRow).order_by(TodoRow.id), "list todos")

    def search_by_title(self, substring: str) -> List[TodoItem]:
        """Case-insensitive substring match on the title; ``%`` and ``_`` match literally."""
        stmt = (
            select(TodoRow)
            .where(TodoRow.title.icontains(substring, autoescape=True))
            .order_by(TodoRow.id)
        )
        return self._select(stmt, "search todos")

    def delete_by_id(self, todo_id: int) -> bool:
        """
        Delete the item with *todo_id*.

        Returns
        -------
        bool
            ``True`` if a row was removed, ``False`` if no such id existed.  Deleting a missing id
            is a no-op, never an error.
        """
        try:
            with self._session_factory.begin() as session:
                result = session.execute(delete(TodoRow).where(TodoRow.id == todo_id))
                deleted = result.rowcount > 0
        except SQLAlchemyError as exc:
            logger.error("Failed to delete todo #%s: %s", todo_id, exc)
            raise StoreError(f"could not delete todo {todo_id}: {exc}") from exc
        logger.info("Delete todo #%s -> %s", todo_id, "deleted" if deleted else "not found")
        return deleted

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _select(self, stmt, what: str) -> List[TodoItem]:
        try:
            with self._session_factory() as session:
                rows = session.scalars(stmt).all()
                return [TodoItem.model_validate(row) for row in rows]
        except SQLAlchemyError as exc:
            logger.error("Failed to %s: %s", what, exc)
            raise StoreError(f"could not {what}: {exc}") from exc
