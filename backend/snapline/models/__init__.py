# backend/snapline/models/__init__.py
from snapline.models.base import Base
from snapline.models.snapshot import Snapshot, SnapshotScope, SnapshotStatus
from snapline.models.component_lock import ComponentLock

__all__ = [
    "Base",
    "Snapshot", "SnapshotScope", "SnapshotStatus",
    "ComponentLock",
]
