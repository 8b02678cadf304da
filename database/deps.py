"""Dependency helpers that expose request-scoped DB sessions.

The storage handle lives on `app.state.database` (opened by the lifespan
handler in `main`). `get_db_write` is for endpoints that mutate state,
`get_db_read` for read-only routes that may be served from a replica.
"""

from fastapi import Request

from .database import Database


def get_database(request: Request) -> Database:
    """Return the storage handle opened at application start."""
    return request.app.state.database


def get_db_write(request: Request):
    """Yield a write-capable DB session for FastAPI dependency injection."""
    with get_database(request).session_scope() as db:
        yield db


def get_db_read(request: Request):
    """Yield a read-only DB session for FastAPI dependency injection."""
    with get_database(request).session_scope(read_only=True) as db:
        yield db
