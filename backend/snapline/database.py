# backend/snapline/database.py
from typing import Callable, Generator, Iterable, List, Optional, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from snapline.config import get_settings

T = TypeVar("T")
R = TypeVar("R")

_engine = None
_SessionLocal = None


def get_engine():
    global _engine
    if _engine is None:
        settings = get_settings()
        if settings.database_url.startswith("sqlite"):
            _engine = create_engine(
                settings.database_url, connect_args={"check_same_thread": False}
            )
        else:
            _engine = create_engine(settings.database_url)
    return _engine


def get_session_local():
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def get_db() -> Generator[Session, None, None]:
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def execute_large_inputs(
    inputs: Iterable[T],
    fn: Callable[[List[T]], List[R]],
    chunk_size: Optional[int] = None,
) -> List[R]:
    """
    Run ``fn`` over ``inputs`` in partitions no larger than ``chunk_size``.

    Backing stores cap the number of bound parameters per statement, so
    callers that build ``IN (...)`` clauses from arbitrary id sets go through
    here. Results of each partition are concatenated in partition order.
    """
    if chunk_size is None:
        chunk_size = get_settings().max_in_clause
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    values = list(inputs)
    results: List[R] = []
    for start in range(0, len(values), chunk_size):
        results.extend(fn(values[start:start + chunk_size]))
    return results
