"""Turning submitted form fields into domain records."""

from __future__ import annotations

import re
from collections.abc import Mapping

from .models import Todo

_INTEGER = re.compile(r"[+-]?[0-9]+")


def _parse_int(raw: str | None) -> int | None:
    if raw is None or not _INTEGER.fullmatch(raw):
        return None
    return int(raw)


def map_todo_from_form(form: Mapping[str, str]) -> Todo:
    """Build a todo from the ``id``, ``todolistid``, ``completed`` and ``value`` fields.

    Raises ``ValueError`` when either id is missing or not an integer.
    """
    todo_id = _parse_int(form.get("id"))
    if todo_id is None:
        raise ValueError("invalid id")

    todo_list_id = _parse_int(form.get("todolistid"))
    if todo_list_id is None:
        raise ValueError("invalid todolistid")

    return Todo(
        id=todo_id,
        todo_list_id=todo_list_id,
        completed=form.get("completed") == "true",
        value=form.get("value", ""),
    )