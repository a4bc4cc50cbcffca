"""The web application: routes, session handling and the command entry point."""

from __future__ import annotations

import argparse
import functools
import logging
import os
import re
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from flask import Flask, Response, g, render_template, request, send_from_directory, session

from .mapping import map_todo_from_form
from .models import Todo, TodoCompletionFilter, TodoList
from .password import verify_password_with_salt
from .store import DataAccessError, SqliteTodoDataAccess, TodoDataAccess

log = logging.getLogger(__name__)

DEFAULT_PORT = 60235
SESSION_COOKIE_NAME = "todoey-session"
SESSION_MAX_AGE = 604800

_INTEGER = re.compile(r"[+-]?[0-9]+")


def _parse_int(raw: str | None) -> int | None:
    if raw is None or not _INTEGER.fullmatch(raw):
        return None
    return int(raw)


def _plain_error(message: str, status: int) -> Response:
    log.info(message)
    return Response(
        message + "\n",
        status=status,
        mimetype="text/plain",
        headers={"X-Content-Type-Options": "nosniff"},
    )


def _server_error(message: str) -> Response:
    return _plain_error(message, 500)


def _bad_request(message: str, detail: str = "") -> Response:
    response = _plain_error(message, 400)
    if detail:
        log.info(detail)
    return response


def _html(text: str, status: int) -> Response:
    return Response(text, status=status, mimetype="text/html")


def _redirect_hint(location: str, status: int) -> Response:
    return Response(status=status, headers={"HX-Redirect": location})


def format_completed_at(completed_at: datetime | None) -> str:
    """Render a completion time in local time, or ``N/A`` when there is none."""
    if completed_at is None:
        return "N/A"
    if completed_at.tzinfo is None:
        completed_at = completed_at.replace(tzinfo=timezone.utc)
    return completed_at.astimezone().strftime("%I:%M:%S %p %m/%d/%Y")


def auth_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """Refuse the request with 401 unless the session holds a signed-in user."""

    @functools.wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        user_id = session.get("user_id")
        if user_id is None:
            return _redirect_hint("/login", 401)
        g.user_id = user_id
        return view(*args, **kwargs)

    return wrapper


def _collect_templates(root: Path) -> dict[str, str]:
    if not root.is_dir():
        raise FileNotFoundError(f"template folder not found: {root}")
    return {
        path.stem: path.relative_to(root).as_posix()
        for path in sorted(root.rglob("*.html"))
        if path.is_file()
    }


def create_app(
    data_access: TodoDataAccess,
    template_folder: str | os.PathLike[str] = "templates",
    static_folder: str | os.PathLike[str] = ".",
    secret_key: str | bytes | None = None,
) -> Flask:
    """Build the application around an already connected data store."""
    template_root = Path(template_folder).resolve()
    templates = _collect_templates(template_root)
    public_root = Path(static_folder).resolve()

    app = Flask(__name__, template_folder=str(template_root), static_folder=None)
    app.config.update(
        SECRET_KEY=secret_key if secret_key is not None else secrets.token_hex(32),
        SESSION_COOKIE_NAME=SESSION_COOKIE_NAME,
        SESSION_COOKIE_PATH="/",
        SESSION_COOKIE_SECURE=False,
        SESSION_COOKIE_HTTPONLY=True,
        PERMANENT_SESSION_LIFETIME=timedelta(seconds=SESSION_MAX_AGE),
    )
    store = data_access

    def render(name: str, **context: Any) -> str:
        return render_template(templates.get(name, f"{name}.html"), **context)

    # Public pages and assets

    @app.get("/favicon.ico")
    def favicon() -> Response:
        return send_from_directory(public_root, "favicon.ico")

    @app.get("/css/<path:filename>")
    def css(filename: str) -> Response:
        return send_from_directory(public_root / "css", filename)

    @app.get("/")
    def index() -> str:
        return render("index", show_logout_button=True)

    @app.get("/history")
    def history() -> str:
        return render("history", show_logout_button=True)

    @app.get("/login")
    def login_page() -> str:
        return render("login", show_logout_button=False)

    # Authentication

    @app.post("/login")
    def login() -> Response:
        user_name = request.form.get("userName", "")
        if not user_name:
            return _html("Please provide a username", 400)
        password = request.form.get("password", "")
        if not password:
            return _html("Please provide a password", 400)

        try:
            user = store.get_user_by_username(user_name)
        except DataAccessError as exc:
            log.info("%s", exc)
            return _html("Username or password was incorrect", 400)

        if not verify_password_with_salt(password, user.password_salt, user.password_hash):
            log.info("Couldn't verify the password for user %s", user_name)
            return _html("Username or password was incorrect", 400)

        session.permanent = True
        session["user_id"] = user.id
        log.info("The user %s successfully signed in", user.username)
        return _redirect_hint("/", 200)

    @app.post("/logout")
    def logout() -> Response:
        session.clear()
        return _redirect_hint("/login", 200)

    # Todo lists

    @app.get("/todo-lists")
    @auth_required
    def get_todo_lists() -> Any:
        try:
            todo_lists = store.get_todo_lists()
        except DataAccessError as exc:
            return _server_error(str(exc))
        return render("todoLists", todo_lists=todo_lists)

    @app.post("/todo-lists")
    @auth_required
    def create_todo_list() -> Any:
        try:
            todo_list = store.create_todo_list(TodoList())
        except DataAccessError as exc:
            return _server_error(str(exc))
        return render("todoList", todo_list=todo_list)

    @app.put("/todo-lists")
    @auth_required
    def update_todo_list() -> Any:
        raw_id = request.form.get("id", "")
        title = request.form.get("title", "")
        if not raw_id:
            return _server_error("please provide a todolist id")
        todo_list_id = _parse_int(raw_id)
        if todo_list_id is None:
            return _server_error(f"invalid todolist id: {raw_id!r}")
        try:
            store.update_todo_list(todo_list_id, title)
        except DataAccessError as exc:
            log.warning("%s", exc)
        return Response(status=200)

    @app.delete("/todo-lists")
    @auth_required
    def delete_todo_list() -> Any:
        raw_id = request.args.get("todolistid", "")
        if not raw_id:
            return _server_error("please provide a todolist id")
        todo_list_id = _parse_int(raw_id)
        if todo_list_id is None:
            return _server_error("invalid id")
        try:
            store.delete_todo_list(todo_list_id)
        except DataAccessError as exc:
            return _server_error(str(exc))
        return Response(status=200)

    # Todos

    @app.get("/todos")
    @auth_required
    def get_todos() -> Any:
        try:
            todos = store.get_todos(TodoCompletionFilter.NO_APPLY_COMPLETED)
        except DataAccessError as exc:
            return _server_error(str(exc))
        return render("todos", todos=todos)

    @app.post("/todos")
    @auth_required
    def create_todo() -> Any:
        raw_list_id = request.form.get("todolistid", "")
        if not raw_list_id:
            return _server_error("No todo list id was supplied")
        todo_list_id = _parse_int(raw_list_id)
        if todo_list_id is None:
            return _server_error("invalid todo list id")
        try:
            todo = store.create_todo(Todo(todo_list_id=todo_list_id))
        except DataAccessError as exc:
            return _server_error(str(exc))
        todo.focus_input = True
        return render("todo", todo=todo)

    @app.put("/todos")
    @auth_required
    def update_todo() -> Any:
        try:
            todo = map_todo_from_form(request.form)
        except ValueError as exc:
            return _server_error(str(exc))
        try:
            original = store.get_todo_by_id(todo.id)
        except DataAccessError as exc:
            return _bad_request("Unable to find todo with that id", str(exc))
        if todo.completed and not original.completed:
            todo.completed_at = datetime.now(timezone.utc)
        try:
            todo = store.update_todo(todo)
        except DataAccessError as exc:
            return _server_error(str(exc))
        log.info("%s", todo)
        return render("todo", todo=todo)

    @app.delete("/todos")
    @auth_required
    def delete_todo() -> Any:
        raw_id = request.args.get("id", "")
        if not raw_id:
            return _server_error("Please provide an id")
        todo_id = _parse_int(raw_id)
        if todo_id is None:
            return _server_error(f"invalid id: {raw_id!r}")
        try:
            store.delete_todo(todo_id)
        except DataAccessError as exc:
            return _server_error(str(exc))
        return Response(status=200)

    @app.get("/historical-todos")
    @auth_required
    def get_historical_todos() -> Any:
        try:
            todos = store.get_todos(TodoCompletionFilter.COMPLETED)
        except DataAccessError as exc:
            return _server_error(str(exc))
        for todo in todos:
            todo.completed_at_formatted = format_completed_at(todo.completed_at)
        return render("historical-todos", todos=todos)

    @app.delete("/historical-todos")
    @auth_required
    def delete_historical_todos() -> Any:
        try:
            store.delete_historical_todos()
        except DataAccessError as exc:
            return _server_error(
                f"{exc}\nUnable to clear your history at this time. Try again later."
            )
        return _html("Successfully cleared your task history!", 200)

    @app.put("/restore-todo")
    @auth_required
    def restore_todo() -> Any:
        raw_id = request.args.get("id", "")
        if not raw_id:
            return _bad_request("No id provided")
        todo_id = _parse_int(raw_id)
        if todo_id is None:
            return _bad_request("Invalid Id", f"invalid id: {raw_id!r}")
        try:
            original = store.get_todo_by_id(todo_id)
        except DataAccessError as exc:
            return _bad_request("Unable to find todo with that id", str(exc))
        original.completed = False
        try:
            store.update_todo(original)
        except DataAccessError as exc:
            return _server_error(str(exc))
        return Response(status=200)

    return app


def main(argv: list[str] | None = None) -> int:
    """Run the web server until interrupted."""
    parser = argparse.ArgumentParser(prog="todoey", description="Serve the todo web application.")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--database", default=os.environ.get("DB_NAME", "todoey.db"))
    parser.add_argument("--templates", default="templates")
    parser.add_argument("--static", default=".")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    secret_key = os.environ.get("TODOEY_SECRET_KEY")
    try:
        with SqliteTodoDataAccess(args.database) as store:
            store.create_schema()
            app = create_app(store, args.templates, args.static, secret_key)
            log.info("Server listening on: %s", args.port)
            app.run(host=args.host, port=args.port)
    except (DataAccessError, FileNotFoundError, OSError) as exc:
        log.error("%s", exc)
        return 1
    return 0