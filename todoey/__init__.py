"""A server-rendered todo-list web application with SQLite storage and session login."""

__version__ = "0.1.0"