# backend/snapline/api/snapshots.py
"""API endpoints for snapshot history."""
from typing import List, Optional
import logging

from fastapi import APIRouter, Query

from snapline.api.deps import DBSession, Store
from snapline.models.snapshot import SnapshotScope, SnapshotStatus
from snapline.schemas.snapshot import (
    PublicationResult, SnapshotQuery, SnapshotResponse, SortField, SortOrder,
)
from snapline.services.analysis_run import AnalysisRunService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/snapshots", tags=["Snapshots"])


@router.get("", response_model=List[SnapshotResponse])
def list_snapshots(
    db: DBSession,
    store: Store,
    component_id: Optional[int] = None,
    component_uuid: Optional[str] = None,
    scope: Optional[SnapshotScope] = None,
    status: Optional[SnapshotStatus] = None,
    version: Optional[str] = None,
    is_last: Optional[bool] = None,
    created_after: Optional[int] = None,
    created_before: Optional[int] = None,
    sort_field: SortField = SortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.ASC,
):
    """List snapshots matching the given filters."""
    query = SnapshotQuery(
        component_id=component_id,
        component_uuid=component_uuid,
        scope=scope,
        status=status,
        version=version,
        is_last=is_last,
        created_after=created_after,
        created_before=created_before,
        sort_field=sort_field,
        sort_order=sort_order,
    )
    return store.get_by_query(db, query)


@router.get("/batch", response_model=List[SnapshotResponse])
def get_snapshots_by_ids(
    db: DBSession,
    store: Store,
    ids: List[int] = Query(...),
):
    """Fetch several snapshots at once; unknown ids are skipped."""
    return store.get_by_ids(db, ids)


@router.get("/{snapshot_id}", response_model=SnapshotResponse)
def get_snapshot(snapshot_id: int, db: DBSession, store: Store):
    """Get snapshot details."""
    return store.get_or_fail(db, snapshot_id)


@router.get("/{snapshot_id}/descendants", response_model=List[SnapshotResponse])
def list_descendants(
    snapshot_id: int,
    db: DBSession,
    store: Store,
    scope: Optional[SnapshotScope] = None,
):
    """All snapshots below the given one in its analysis run."""
    snapshot = store.get_or_fail(db, snapshot_id)
    query = SnapshotQuery.descendants_of(snapshot, scope=scope, sort_field=SortField.ID)
    return store.get_by_query(db, query)


@router.get("/{snapshot_id}/project-tree", response_model=List[SnapshotResponse])
def list_project_tree(snapshot_id: int, db: DBSession, store: Store):
    """The snapshot and its descendants of project scope (modules)."""
    store.get_or_fail(db, snapshot_id)
    return store.get_snapshot_and_children_of_project_scope(db, snapshot_id)


@router.post("/{snapshot_id}/publish", response_model=PublicationResult)
def publish_snapshot(snapshot_id: int, db: DBSession, store: Store):
    """Publish a finished analysis run as the baseline of its component."""
    service = AnalysisRunService(db, store=store)
    return service.publish(snapshot_id)
