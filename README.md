# todoey

A small todo-list web application built on Flask. Pages are rendered on the
server from HTML templates and are meant to be updated in place by HTMX
requests: handlers answer with HTML fragments and, where the browser should
move to another page, with an `HX-Redirect` header. Users sign in with a
username and password; the session is kept in a signed cookie named
`todoey-session` that lasts a week.

## Features

- Several todo lists, each holding its todos; lists and todos come back
  ordered by id.
- Completing a todo stamps it with the time it was completed. Completed todos
  are shown on the history page, where one can be restored or all of them
  cleared at once.
- Passwords are stored as salted SHA-256 hashes (`todoey.password`).
- Everything is kept in one SQLite database (`todoey.store`).

## Running the server

The package installs one command:

    todoey

It opens (or creates) the database, creates the tables if they are missing,
builds the application and serves it until interrupted. Options:

| Option        | Default                                   | Meaning                                      |
|---------------|-------------------------------------------|----------------------------------------------|
| `--port`      | `60235`                                   | port to listen on                            |
| `--host`      | `0.0.0.0`                                 | address to listen on                         |
| `--database`  | `$DB_NAME`, or `todoey.db` when unset     | SQLite database file                         |
| `--templates` | `templates`                               | folder holding the HTML templates            |
| `--static`    | `.`                                       | folder holding `favicon.ico` and `css/`      |

The key that signs session cookies is read from the `TODOEY_SECRET_KEY`
environment variable. When it is not set a random key is made at start-up, so
sessions do not survive a restart. The command exits with status 1 if the
database cannot be opened or the template folder does not exist.

## Templates and static files

The package does not ship any templates, stylesheets or icons; the folders
given to `--templates` and `--static` must supply them. Every `*.html` file
under the template folder, at any depth, is found by its file name without the
extension. These names are rendered, with these variables:

| Template           | Variables                                                       |
|--------------------|-----------------------------------------------------------------|
| `index`            | `show_logout_button` (true)                                     |
| `history`          | `show_logout_button` (true)                                     |
| `login`            | `show_logout_button` (false)                                    |
| `todoLists`        | `todo_lists`: list of `TodoList`, each with its open todos      |
| `todoList`         | `todo_list`: the newly created `TodoList`                       |
| `todos`            | `todos`: list of `Todo`                                         |
| `todo`             | `todo`: a `Todo` (`focus_input` is true for a newly created one) |
| `historical-todos` | `todos`: completed todos, with `completed_at_formatted` set     |

`completed_at_formatted` is the completion time in local time, written like
`03:04:05 PM 01/02/2006`, or `N/A` when there is none
(`todoey.app.format_completed_at`).

Static files are served from `/favicon.ico` (the file `favicon.ico` in the
static folder) and `/css/<file>` (files in its `css` subfolder).

## HTTP routes

Public:

| Method | Path       | Purpose                                          |
|--------|------------|--------------------------------------------------|
| GET    | `/`        | main page                                        |
| GET    | `/history` | history page                                     |
| GET    | `/login`   | login page                                       |
| POST   | `/login`   | sign in with form fields `userName`, `password`  |
| POST   | `/logout`  | sign out                                         |

A successful sign-in answers 200 with `HX-Redirect: /`; a missing field or a
wrong username or password answers 400 with a short message. Signing out
clears the session and answers with `HX-Redirect: /login`.

Signed-in users only; anyone else gets `401` with `HX-Redirect: /login`:

| Method | Path                | Purpose                                                   |
|--------|---------------------|-----------------------------------------------------------|
| GET    | `/todo-lists`       | all lists with their open todos                           |
| POST   | `/todo-lists`       | create an empty list                                      |
| PUT    | `/todo-lists`       | rename a list (form fields `id`, `title`)                 |
| DELETE | `/todo-lists`       | delete a list (`?todolistid=`)                            |
| GET    | `/todos`            | all todos                                                 |
| POST   | `/todos`            | add an empty todo to a list (form field `todolistid`)     |
| PUT    | `/todos`            | update a todo (`id`, `todolistid`, `value`, `completed`)  |
| DELETE | `/todos`            | delete a todo (`?id=`)                                    |
| GET    | `/historical-todos` | completed todos with their completion time                |
| DELETE | `/historical-todos` | delete all completed todos                                |
| PUT    | `/restore-todo`     | mark a completed todo as open again (`?id=`)              |

A todo updated with `completed=true` that was not completed before is stamped
with the current time. Missing or malformed ids and storage failures are
answered with a plain-text error.

## Using it from Python

`todoey.app.create_app(data_access, template_folder, static_folder,
secret_key)` builds the Flask application around a store that is already
connected. `template_folder` defaults to `templates`, `static_folder` to `.`,
and `secret_key` to a random key.

```python
from todoey.app import create_app
from todoey.store import SqliteTodoDataAccess

store = SqliteTodoDataAccess("todoey.db")
store.connect()
store.create_schema()

app = create_app(store, "templates", "static", secret_key="secret")
app.run(port=60235)
```

The store can be used on its own, and also as a context manager that connects
on entry and disconnects on exit:

```python
from todoey.models import Todo, TodoCompletionFilter, TodoList
from todoey.password import generate_salt, hash_password_with_salt
from todoey.store import SqliteTodoDataAccess

with SqliteTodoDataAccess(":memory:") as store:
    store.create_schema()

    salt = generate_salt(16)
    store.register_user(
        "alice", "alice@example.com", "Alice", "Example",
        hash_password_with_salt("password", salt), salt,
    )

    todo_list = store.create_todo_list(TodoList(title="Groceries"))
    store.create_todo(Todo(value="Milk", todo_list_id=todo_list.id))

    for todo in store.get_todos(TodoCompletionFilter.INCOMPLETE):
        print(todo.id, todo.value)
```

`TodoCompletionFilter` has three members: `COMPLETED`, `INCOMPLETE` and
`NO_APPLY_COMPLETED` (no filter). Failures in the store raise
`todoey.store.DataAccessError`; a missing user or todo raises its subclass
`todoey.store.NotFoundError`. `todoey.store.TodoDataAccess` is the abstract
base a different storage backend would implement.

`todoey.mapping.map_todo_from_form(form)` builds a `Todo` from a mapping of
form fields and raises `ValueError` when `id` or `todolistid` is missing or not
an integer.

## What it does not do

- There is no sign-up page or registration route. Users are added from Python
  with `register_user`, hashing the password with
  `todoey.password.hash_password_with_salt` and a salt from `generate_salt`.
- Lists and todos are not tied to a user: every signed-in user sees and
  changes the same lists.
- No templates, stylesheets or icons are included (see above).

## Running the tests

The test suite uses pytest, available through the `test` extra:

    pip install -e ".[test]"
    pytest