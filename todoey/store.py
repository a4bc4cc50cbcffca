"""Persistent storage for users, todo lists and todos."""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from os import PathLike

from .models import Todo, TodoCompletionFilter, TodoList, User

log = logging.getLogger(__name__)


class DataAccessError(Exception):
    """Raised when the storage backend cannot carry out a request."""


class NotFoundError(DataAccessError):
    """Raised when a requested record does not exist."""


class TodoDataAccess(ABC):
    """Storage operations the web handlers depend on."""

    @abstractmethod
    def connect(self) -> None:
        """Open the connection to the backing store."""

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection to the backing store."""

    @abstractmethod
    def register_user(
        self,
        user_name: str,
        email: str,
        first_name: str,
        last_name: str,
        hashed_password: str,
        salt: str,
    ) -> User:
        """Store a new user and return it."""

    @abstractmethod
    def get_user_by_username(self, username: str) -> User:
        """Return the user with this user name."""

    @abstractmethod
    def get_todo_lists(self) -> list[TodoList]:
        """Return every list with its incomplete todos, ordered by id."""

    @abstractmethod
    def create_todo_list(self, todo_list: TodoList) -> TodoList:
        """Store a new list and return it with its id set."""

    @abstractmethod
    def update_todo_list(self, todo_list_id: int, title: str) -> None:
        """Change the title of a list."""

    @abstractmethod
    def delete_todo_list(self, todo_list_id: int) -> None:
        """Remove a list."""

    @abstractmethod
    def get_todos(self, status: TodoCompletionFilter) -> list[Todo]:
        """Return todos filtered by completion state."""

    @abstractmethod
    def get_todo_by_id(self, todo_id: int) -> Todo:
        """Return a single todo."""

    @abstractmethod
    def create_todo(self, todo: Todo) -> Todo:
        """Store a new todo and return it with its id set."""

    @abstractmethod
    def update_todo(self, todo: Todo) -> Todo:
        """Save the completion state, completion time and value of a todo."""

    @abstractmethod
    def delete_todo(self, todo_id: int) -> None:
        """Remove a todo."""

    @abstractmethod
    def delete_historical_todos(self) -> None:
        """Remove every completed todo."""

    def __enter__(self) -> TodoDataAccess:
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()


_SCHEMA = """
CREATE TABLE IF NOT EXISTS todo_list (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS todo (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    completed INTEGER NOT NULL DEFAULT 0,
    value TEXT NOT NULL DEFAULT '',
    todo_list_id INTEGER NOT NULL REFERENCES todo_list(id) ON DELETE CASCADE,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    completed_at TEXT
);
CREATE TABLE IF NOT EXISTS "user" (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_name TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    password_hash TEXT NOT NULL,
    password_salt TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    is_active INTEGER NOT NULL DEFAULT 1
);
"""

_TODO_SELECT = """
    SELECT t.id, t.completed, t.value, tl.id, tl.title, t.created_at, t.completed_at
    FROM todo t
    INNER JOIN todo_list tl ON t.todo_list_id = tl.id
"""

_STATUS_CLAUSES = {
    TodoCompletionFilter.COMPLETED: " WHERE t.completed = 1",
    TodoCompletionFilter.INCOMPLETE: " WHERE t.completed = 0",
}


def _to_db_time(moment: datetime | None) -> str | None:
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(sep=" ")


def _from_db_time(text: str | None) -> datetime | None:
    if text is None:
        return None
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _todo_from_row(row: tuple) -> Todo:
    t_id, completed, value, list_id, list_title, created_at, completed_at = row
    return Todo(
        id=t_id or 0,
        completed=bool(completed),
        value=value or "",
        todo_list_id=list_id or 0,
        todo_list_title=list_title or "",
        created_at=_from_db_time(created_at),
        completed_at=_from_db_time(completed_at),
    )


class SqliteTodoDataAccess(TodoDataAccess):
    """Todo storage kept in an SQLite database file (or ``":memory:"``)."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = path
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        if self._conn is not None:
            return
        try:
            conn = sqlite3.connect(
                self.path, isolation_level=None, check_same_thread=False
            )
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as exc:
            raise DataAccessError(f"unable to open database: {exc}") from exc
        self._conn = conn
        log.info("Connected to database %s", self.path)

    def disconnect(self) -> None:
        if self._conn is None:
            raise DataAccessError("not connected")
        try:
            self._conn.close()
        except sqlite3.Error as exc:
            raise DataAccessError(f"unable to close database: {exc}") from exc
        finally:
            self._conn = None
        log.info("Disconnected from database %s", self.path)

    def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        with self._guard("unable to create schema") as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _guard(self, message: str) -> Iterator[sqlite3.Connection]:
        if self._conn is None:
            raise DataAccessError("not connected")
        try:
            yield self._conn
        except sqlite3.Error as exc:
            raise DataAccessError(f"{message}: {exc}") from exc

    # Users

    def register_user(
        self,
        user_name: str,
        email: str,
        first_name: str,
        last_name: str,
        hashed_password: str,
        salt: str,
    ) -> User:
        with self._guard("failed to register user") as conn:
            conn.execute(
                'INSERT INTO "user" (user_name, email, first_name, last_name, '
                "password_hash, password_salt) VALUES (?, ?, ?, ?, ?, ?)",
                (user_name, email, first_name, last_name, hashed_password, salt),
            )
        return self.get_user_by_username(user_name)

    def get_user_by_username(self, username: str) -> User:
        with self._guard("failed to get user") as conn:
            row = conn.execute(
                "SELECT id, user_name, email, first_name, last_name, password_hash, "
                'password_salt, created_at, is_active FROM "user" WHERE user_name = ?',
                (username,),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"user not found with username: {username}")
        return User(
            id=str(row[0]),
            username=row[1],
            email=row[2],
            first_name=row[3],
            last_name=row[4],
            password_hash=row[5],
            password_salt=row[6],
            created_at=_from_db_time(row[7]),
            is_active=bool(row[8]),
        )

    # Todo lists

    def get_todo_lists(self) -> list[TodoList]:
        with self._guard("unable to get todo lists") as conn:
            rows = conn.execute(
                """
                SELECT tl.id, tl.title, tl.created_at,
                       t.id, t.completed, t.value, t.created_at, t.todo_list_id
                FROM todo_list AS tl
                LEFT JOIN todo AS t ON t.todo_list_id = tl.id
                ORDER BY tl.id, t.id
                """
            ).fetchall()

        lists: dict[int, TodoList] = {}
        for tl_id, tl_title, tl_created, t_id, t_completed, t_value, t_created, t_list in rows:
            todo_list = lists.setdefault(
                tl_id,
                TodoList(id=tl_id, title=tl_title, created_at=_from_db_time(tl_created)),
            )
            if t_id and not t_completed:
                todo_list.todos.append(
                    Todo(
                        id=t_id,
                        completed=False,
                        value=t_value or "",
                        created_at=_from_db_time(t_created),
                        todo_list_id=t_list or 0,
                    )
                )

        result = sorted(lists.values(), key=lambda item: item.id)
        for todo_list in result:
            todo_list.todos.sort(key=lambda todo: todo.id)
        return result

    def create_todo_list(self, todo_list: TodoList) -> TodoList:
        with self._guard("failed to create the todo list") as conn:
            cursor = conn.execute(
                "INSERT INTO todo_list (title) VALUES (?)", (todo_list.title,)
            )
        return replace(todo_list, id=cursor.lastrowid)

    def update_todo_list(self, todo_list_id: int, title: str) -> None:
        with self._guard("failed to update the todo list") as conn:
            conn.execute(
                "UPDATE todo_list SET title = ? WHERE id = ?", (title, todo_list_id)
            )

    def delete_todo_list(self, todo_list_id: int) -> None:
        with self._guard("failed to delete the todolist") as conn:
            conn.execute("DELETE FROM todo_list WHERE id = ?", (todo_list_id,))

    # Todos

    def get_todos(self, status: TodoCompletionFilter) -> list[Todo]:
        status = TodoCompletionFilter(status)
        query = _TODO_SELECT + _STATUS_CLAUSES.get(status, "") + " ORDER BY t.id"
        log.debug("Executing query: %s", query)
        with self._guard("unable to get todos") as conn:
            rows = conn.execute(query).fetchall()
        return [_todo_from_row(row) for row in rows]

    def get_todo_by_id(self, todo_id: int) -> Todo:
        with self._guard("unable to get todo with that id") as conn:
            row = conn.execute(_TODO_SELECT + " WHERE t.id = ?", (todo_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"unable to get todo with that id: {todo_id}")
        return _todo_from_row(row)

    def create_todo(self, todo: Todo) -> Todo:
        with self._guard("unable to create todo") as conn:
            cursor = conn.execute(
                "INSERT INTO todo (completed, value, todo_list_id) VALUES (?, ?, ?)",
                (int(todo.completed), todo.value, todo.todo_list_id),
            )
        return replace(todo, id=cursor.lastrowid)

    def update_todo(self, todo: Todo) -> Todo:
        with self._guard("unable to update todo") as conn:
            conn.execute(
                "UPDATE todo SET completed = ?, completed_at = ?, value = ? WHERE id = ?",
                (int(todo.completed), _to_db_time(todo.completed_at), todo.value, todo.id),
            )
        return todo

    def delete_todo(self, todo_id: int) -> None:
        with self._guard("unable to delete todo") as conn:
            conn.execute("DELETE FROM todo WHERE id = ?", (todo_id,))

    def delete_historical_todos(self) -> None:
        with self._guard("unable to delete completed todos") as conn:
            conn.execute("DELETE FROM todo WHERE completed = 1")