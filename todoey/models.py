"""Domain records shared by the storage layer and the web handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum


class TodoCompletionFilter(IntEnum):
    """Which todos a query should return, by completion state."""

    COMPLETED = 0
    INCOMPLETE = 1
    NO_APPLY_COMPLETED = 2


@dataclass
class Todo:
    """A single todo item, optionally joined with the title of its list."""

    id: int = 0
    completed: bool = False
    value: str = ""
    todo_list_id: int = 0
    todo_list_title: str = ""
    created_at: datetime | None = None
    completed_at: datetime | None = None
    completed_at_formatted: str = ""
    focus_input: bool = False


@dataclass
class TodoList:
    """A named list holding todo items."""

    id: int = 0
    title: str = ""
    created_at: datetime | None = None
    todos: list[Todo] = field(default_factory=list)


@dataclass
class User:
    """A registered user with salted password credentials."""

    id: str = ""
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    password_hash: str = ""
    password_salt: str = ""
    created_at: datetime | None = None
    is_active: bool = False