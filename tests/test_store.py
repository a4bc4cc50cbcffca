from dataclasses import replace
from datetime import datetime, timezone

import pytest

from todoey.models import Todo, TodoCompletionFilter, TodoList
from todoey.password import generate_salt, hash_password_with_salt
from todoey.store import (
    DataAccessError,
    NotFoundError,
    SqliteTodoDataAccess,
    TodoDataAccess,
)


@pytest.fixture
def store():
    data_access = SqliteTodoDataAccess(":memory:")
    data_access.connect()
    data_access.create_schema()
    yield data_access
    data_access.disconnect()


def _add_list(store, title="List"):
    return store.create_todo_list(TodoList(title=title))


def _add_todo(store, list_id, value="item", completed=False):
    todo = store.create_todo(Todo(todo_list_id=list_id, value=value))
    if completed:
        todo = store.update_todo(replace(todo, completed=True))
    return todo


def test_create_todo_list_assigns_increasing_ids(store):
    assert isinstance(store, TodoDataAccess)
    first = _add_list(store, "a")
    second = _add_list(store, "b")
    assert first.id > 0
    assert second.id > first.id
    assert first.title == "a"


def test_empty_list_has_no_todos(store):
    created = _add_list(store, "empty")
    lists = store.get_todo_lists()
    assert [item.id for item in lists] == [created.id]
    assert lists[0].todos == []
    assert lists[0].title == "empty"
    assert lists[0].created_at.tzinfo is not None


def test_get_todo_lists_sorted_and_only_incomplete(store):
    one = _add_list(store, "one")
    two = _add_list(store, "two")
    b = _add_todo(store, two.id, "b")
    a = _add_todo(store, one.id, "a")
    done = _add_todo(store, one.id, "done", completed=True)
    c = _add_todo(store, one.id, "c")

    lists = store.get_todo_lists()
    assert [item.id for item in lists] == [one.id, two.id]
    assert [todo.id for todo in lists[0].todos] == [a.id, c.id]
    assert done.id not in [todo.id for todo in lists[0].todos]
    assert [todo.value for todo in lists[1].todos] == ["b"]
    assert lists[1].todos[0].todo_list_id == two.id
    assert lists[1].todos[0].id == b.id


def test_update_todo_list_changes_title(store):
    created = _add_list(store, "old")
    store.update_todo_list(created.id, "new")
    assert store.get_todo_lists()[0].title == "new"


def test_delete_todo_list_removes_list_and_todos(store):
    created = _add_list(store)
    todo = _add_todo(store, created.id)
    store.delete_todo_list(created.id)
    assert store.get_todo_lists() == []
    with pytest.raises(NotFoundError):
        store.get_todo_by_id(todo.id)


def test_create_todo_round_trip(store):
    todo_list = _add_list(store, "groceries")
    created = store.create_todo(Todo(todo_list_id=todo_list.id, value="milk"))
    fetched = store.get_todo_by_id(created.id)
    assert fetched.id == created.id
    assert fetched.value == "milk"
    assert fetched.completed is False
    assert fetched.todo_list_id == todo_list.id
    assert fetched.todo_list_title == "groceries"
    assert fetched.completed_at is None
    assert fetched.created_at.tzinfo is not None


def test_create_todo_for_missing_list_fails(store):
    with pytest.raises(DataAccessError):
        store.create_todo(Todo(todo_list_id=999, value="orphan"))


def test_get_todo_by_id_missing(store):
    with pytest.raises(NotFoundError):
        store.get_todo_by_id(42)


def test_update_todo_persists_completion(store):
    todo_list = _add_list(store)
    todo = _add_todo(store, todo_list.id, "before")
    moment = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    updated = replace(todo, completed=True, value="after", completed_at=moment)
    assert store.update_todo(updated) == updated

    fetched = store.get_todo_by_id(todo.id)
    assert fetched.completed is True
    assert fetched.value == "after"
    assert fetched.completed_at == moment


def test_update_todo_treats_naive_time_as_utc(store):
    todo_list = _add_list(store)
    todo = _add_todo(store, todo_list.id)
    moment = datetime(2023, 1, 2, 3, 4, 5)
    store.update_todo(replace(todo, completed=True, completed_at=moment))
    fetched = store.get_todo_by_id(todo.id)
    assert fetched.completed_at == moment.replace(tzinfo=timezone.utc)


def test_get_todos_filters(store):
    todo_list = _add_list(store)
    open_todo = _add_todo(store, todo_list.id, "open")
    done_todo = _add_todo(store, todo_list.id, "done", completed=True)

    completed = store.get_todos(TodoCompletionFilter.COMPLETED)
    incomplete = store.get_todos(TodoCompletionFilter.INCOMPLETE)
    everything = store.get_todos(TodoCompletionFilter.NO_APPLY_COMPLETED)

    assert [todo.id for todo in completed] == [done_todo.id]
    assert [todo.id for todo in incomplete] == [open_todo.id]
    assert sorted(todo.id for todo in everything) == sorted([open_todo.id, done_todo.id])


def test_get_todos_rejects_unknown_filter(store):
    with pytest.raises(ValueError):
        store.get_todos(7)


def test_delete_todo(store):
    todo_list = _add_list(store)
    keep = _add_todo(store, todo_list.id, "keep")
    gone = _add_todo(store, todo_list.id, "gone")
    store.delete_todo(gone.id)
    remaining = store.get_todos(TodoCompletionFilter.NO_APPLY_COMPLETED)
    assert [todo.id for todo in remaining] == [keep.id]


def test_delete_historical_todos_keeps_open_ones(store):
    todo_list = _add_list(store)
    open_todo = _add_todo(store, todo_list.id, "open")
    _add_todo(store, todo_list.id, "done", completed=True)
    store.delete_historical_todos()
    assert store.get_todos(TodoCompletionFilter.COMPLETED) == []
    remaining = store.get_todos(TodoCompletionFilter.NO_APPLY_COMPLETED)
    assert [todo.id for todo in remaining] == [open_todo.id]


def test_register_and_fetch_user(store):
    salt = generate_salt(16)
    hashed_password = hash_password_with_salt("password", salt)
    registered = store.register_user(
        "alice", "alice@example.com", "Alice", "Smith", hashed_password, salt
    )
    fetched = store.get_user_by_username("alice")
    assert fetched == registered
    assert fetched.username == "alice"
    assert fetched.email == "alice@example.com"
    assert fetched.first_name == "Alice"
    assert fetched.last_name == "Smith"
    assert fetched.password_hash == hashed_password
    assert fetched.password_salt == salt
    assert fetched.is_active is True
    assert fetched.id.isdigit()


def test_register_duplicate_user_fails(store):
    salt = generate_salt(4)
    hashed_password = hash_password_with_salt("password", salt)
    store.register_user("bob", "bob@example.com", "Bob", "Jones", hashed_password, salt)
    with pytest.raises(DataAccessError):
        store.register_user(
            "bob", "other@example.com", "Bob", "Other", hashed_password, salt
        )


def test_missing_user_raises_not_found(store):
    with pytest.raises(NotFoundError, match="user not found with username: nobody"):
        store.get_user_by_username("nobody")


def test_operations_require_connection():
    data_access = SqliteTodoDataAccess(":memory:")
    with pytest.raises(DataAccessError):
        data_access.get_todo_lists()
    with pytest.raises(DataAccessError):
        data_access.disconnect()


def test_data_survives_reconnect(tmp_path):
    path = tmp_path / "todo.db"
    with SqliteTodoDataAccess(path) as first:
        first.create_schema()
        created = first.create_todo_list(TodoList(title="kept"))
    with SqliteTodoDataAccess(path) as second:
        lists = second.get_todo_lists()
    assert [(item.id, item.title) for item in lists] == [(created.id, "kept")]


def test_context_manager_disconnects(tmp_path):
    data_access = SqliteTodoDataAccess(tmp_path / "x.db")
    with data_access as opened:
        opened.create_schema()
        assert opened.get_todo_lists() == []
    with pytest.raises(DataAccessError):
        data_access.get_todo_lists()