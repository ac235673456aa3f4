# backend/snapline/schemas/__init__.py
from snapline.schemas.snapshot import (
    SortField, SortOrder, SnapshotQuery, SnapshotResponse, HasLastResponse,
    PublicationResult, IntegrityReport,
)

__all__ = [
    "SortField", "SortOrder", "SnapshotQuery", "SnapshotResponse", "HasLastResponse",
    "PublicationResult", "IntegrityReport",
]
