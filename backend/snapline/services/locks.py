# backend/snapline/services/locks.py
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from sqlalchemy import update
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from snapline.models.component_lock import ComponentLock


class ComponentLocks:
    """
    Mutual exclusion between analysis runs of the same component.

    ``hold`` serializes the threads of this process on a keyed mutex.
    ``lock_row`` writes the component's ``component_locks`` row inside the
    caller's transaction; the database keeps that write lock until commit
    or rollback, which serializes runs across worker processes. Runs of
    different components never contend.
    """

    def __init__(self) -> None:
        self._global = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}

    def lock_for(self, component_id: int) -> threading.Lock:
        with self._global:
            if component_id not in self._locks:
                self._locks[component_id] = threading.Lock()
            return self._locks[component_id]

    @contextmanager
    def hold(self, component_id: int) -> Iterator[None]:
        lock = self.lock_for(component_id)
        with lock:
            yield

    @staticmethod
    def lock_row(db: Session, component_id: int, root_id: Optional[int] = None) -> None:
        """Block until this transaction owns the component's lock row."""
        dialect = db.get_bind().dialect.name
        values = {"component_id": component_id}

        # Create the row if missing without failing when another run races us
        if dialect == "postgresql":
            db.execute(pg_insert(ComponentLock).values(**values)
                       .on_conflict_do_nothing(index_elements=["component_id"]))
        elif dialect == "sqlite":
            db.execute(sqlite_insert(ComponentLock).values(**values)
                       .on_conflict_do_nothing(index_elements=["component_id"]))
        elif dialect in ("mysql", "mariadb"):
            db.execute(mysql_insert(ComponentLock).values(**values).prefix_with("IGNORE"))
        elif db.get(ComponentLock, component_id) is None:
            db.add(ComponentLock(**values))
            db.flush()

        # The UPDATE holds the row (or database) write lock until the transaction ends
        db.execute(
            update(ComponentLock)
            .where(ComponentLock.component_id == component_id)
            .values(locked_at=int(time.time() * 1000), locked_by_root_id=root_id)
            .execution_options(synchronize_session=False)
        )
