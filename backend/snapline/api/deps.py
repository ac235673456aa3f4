# backend/snapline/api/deps.py
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from snapline.database import get_db
from snapline.services.snapshot_store import SnapshotStore

_store = SnapshotStore()


def get_snapshot_store() -> SnapshotStore:
    """The store is stateless, so one instance serves every request."""
    return _store


# Type aliases for common dependencies
DBSession = Annotated[Session, Depends(get_db)]
Store = Annotated[SnapshotStore, Depends(get_snapshot_store)]
