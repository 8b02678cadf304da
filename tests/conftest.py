"""Shared fixtures: a fresh file-backed SQLite storage handle per test."""
import uuid

import pytest

from core.repository import transaction
from database import Database
from services.profile_store import ProfileRepository


@pytest.fixture
def database(tmp_path):
    """Storage handle on a throwaway SQLite file.

    A file (not :memory:) so worker threads can open their own connections.
    """
    db_handle = Database(f"sqlite:///{tmp_path / 'levelup_test.db'}", timeout=30)
    db_handle.init_db()
    yield db_handle
    db_handle.close()


@pytest.fixture
def db(database):
    session = database.write_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_profile(database):
    """Create a profile in its own transaction and return its user id."""
    def _make(xp=0, level=1, **attrs):
        user_id = str(uuid.uuid4())
        with database.session_scope() as session:
            with transaction(session):
                ProfileRepository(session).create_profile(user_id, xp=xp, level=level, **attrs)
        return user_id
    return _make
