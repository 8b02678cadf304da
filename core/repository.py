"""Repository base class and transaction management for database operations.

Repositories only stage work on a session (add/flush/execute); committing is
owned by `transaction`, so several repository calls form one atomic unit.
"""

from contextlib import contextmanager
from typing import TypeVar, Generic, Type, Iterator

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import AppException, ConflictError, StorageError
from core.logger import get_logger
from database.models import Base

logger = get_logger("core.repository")

T = TypeVar('T', bound=Base)

# serialization_failure, deadlock_detected, lock_not_available
_CONFLICT_SQLSTATES = {"40001", "40P01", "55P03"}


def _is_conflict(exc: SQLAlchemyError) -> bool:
    """Return True when the driver error means a lost race on a contended row."""
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in _CONFLICT_SQLSTATES:
        return True
    return "database is locked" in str(orig).lower()


@contextmanager
def transaction(session: Session, operation: str = "transaction") -> Iterator[Session]:
    """Run the enclosed block as one atomic unit of work.

    Commits when the block completes. Any exception rolls the whole unit
    back; driver errors are translated to `ConflictError` (lock contention,
    serialization failure) or `StorageError` (everything else).

    Args:
        session: Session to commit or roll back.
        operation: Label used in logs and error details.

    Raises:
        ConflictError: The contended row could not be locked or serialized.
        StorageError: Commit or connectivity failure.
    """
    try:
        yield session
        session.commit()
    except AppException:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        if _is_conflict(exc):
            logger.warning("Conflict during %s: %s", operation, exc)
            raise ConflictError(f"Concurrent modification during {operation}, retry") from exc
        logger.error("Storage failure during %s: %s", operation, exc)
        raise StorageError(f"Storage failure during {operation}", operation=operation) from exc
    except BaseException:
        session.rollback()
        raise


class BaseRepository(Generic[T]):
    """Generic repository for common database operations.

    Attributes:
        model: SQLAlchemy model class to operate on.
        session: Database session for executing queries.
    """

    def __init__(self, model: Type[T], session: Session):
        """Initialize repository with model and session.

        Args:
            model: SQLAlchemy model class.
            session: Database session.
        """
        self.model = model
        self.session = session

    def add(self, obj: T) -> T:
        """Stage a new object and flush it so generated columns are populated.

        Args:
            obj: Model instance to persist.

        Returns:
            The flushed object.
        """
        self.session.add(obj)
        self.session.flush()
        return obj

