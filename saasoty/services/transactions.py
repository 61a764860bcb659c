"""
Per-requirement serialization and atomic commits.

A requirement and everything hanging off it (estimates, POs, audit rows) is
changed under one in-process lock and committed once. The row is re-read
with ``SELECT ... FOR UPDATE`` after the lock is taken, and the mapper's
version counter rejects a stale write coming from another process.
"""
import threading
import weakref
from contextlib import contextmanager
from typing import Generator, Hashable

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from saasoty.core.errors import InvalidState, NotFound
from saasoty.core.logging import get_logger
from saasoty.db.models import Requirement

logger = get_logger(__name__)


class EntityLockRegistry:
    """Hands out one lock per entity key; unused locks are garbage collected."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = weakref.WeakValueDictionary()

    def lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


entity_locks = EntityLockRegistry()


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """Commit everything done in the block once, or nothing at all."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


@contextmanager
def requirement_transaction(
    db: Session, requirement_id: int, include_archived: bool = False
) -> Generator[Requirement, None, None]:
    """
    Lock requirement ``requirement_id``, load its committed state and yield it.

    Status and payload writes made in the block are committed together when
    it exits; any exception rolls all of them back.
    """
    lock = entity_locks.lock_for(("requirement", requirement_id))
    with lock:
        try:
            requirement = db.get(
                Requirement,
                requirement_id,
                with_for_update=True,
                populate_existing=True,
            )
            if requirement is None or (requirement.archived_at is not None and not include_archived):
                raise NotFound("Requirement not found", entity_id=requirement_id)
            yield requirement
            db.commit()
        except StaleDataError:
            db.rollback()
            logger.warning(f"Concurrent update lost on requirement {requirement_id}")
            raise InvalidState(
                "Requirement was changed by another request; reload and retry",
                entity_id=requirement_id,
            )
        except Exception:
            db.rollback()
            raise
