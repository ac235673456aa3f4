# backend/snapline/schemas/snapshot.py
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from snapline.models.snapshot import SnapshotScope, SnapshotStatus
from snapline.paths import SnapshotPath


class SortField(str, Enum):
    CREATED_AT = "created_at"
    ID = "id"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SnapshotQuery(BaseModel):
    """Filter accepted by SnapshotStore.get_by_query. Unset fields do not filter."""
    component_id: Optional[int] = None
    component_uuid: Optional[str] = None
    scope: Optional[SnapshotScope] = None
    status: Optional[SnapshotStatus] = None
    version: Optional[str] = None
    is_last: Optional[bool] = None
    created_after: Optional[int] = None  # inclusive
    created_before: Optional[int] = None  # exclusive
    root_id: Optional[int] = None
    path_prefix: Optional[str] = None
    sort_field: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.ASC

    @field_validator("path_prefix")
    @classmethod
    def validate_path_prefix(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            # Same grammar as stored paths; also keeps LIKE wildcards out
            SnapshotPath.parse(v)
        return v

    @classmethod
    def descendants_of(cls, snapshot, **filters) -> "SnapshotQuery":
        """Query for the strict descendants of ``snapshot`` in its run."""
        return cls(
            root_id=snapshot.root_id_or_self,
            path_prefix=SnapshotPath.parse(snapshot.path).descendant_prefix(snapshot.id),
            **filters,
        )


class SnapshotResponse(BaseModel):
    id: int
    component_id: int
    component_uuid: str
    root_project_id: Optional[int] = None
    parent_id: Optional[int] = None
    root_id: Optional[int] = None
    path: str
    depth: int
    scope: SnapshotScope
    qualifier: Optional[str] = None
    status: SnapshotStatus
    is_last: bool
    version: Optional[str] = None
    created_at: int
    build_date: Optional[int] = None

    class Config:
        from_attributes = True


class HasLastResponse(BaseModel):
    component_uuid: str
    has_last: bool


class PublicationResult(BaseModel):
    root_id: int
    component_id: int
    is_last: bool
    demoted_rows: int = 0
    promoted_rows: int = 0


class IntegrityReport(BaseModel):
    component_ids: List[int] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.component_ids
