# backend/snapline/api/components.py
"""Per-component snapshot history endpoints used by dashboards and quality gates."""
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from snapline.api.deps import DBSession, Store
from snapline.schemas.snapshot import HasLastResponse, SnapshotResponse

router = APIRouter(prefix="/components", tags=["Components"])


def _found(snapshot, detail: str):
    if snapshot is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return snapshot


@router.get("/{component_id}/snapshots", response_model=List[SnapshotResponse])
def list_component_snapshots(component_id: int, db: DBSession, store: Store):
    return store.get_by_component(db, component_id)


@router.get("/{component_id}/snapshots/last", response_model=SnapshotResponse)
def get_last_snapshot(component_id: int, db: DBSession, store: Store):
    """The current baseline of the component."""
    return _found(store.get_last_by_component(db, component_id), "Component has no last snapshot")


@router.get("/{component_id}/snapshots/oldest", response_model=SnapshotResponse)
def get_oldest_snapshot(component_id: int, db: DBSession, store: Store):
    return _found(store.get_oldest(db, component_id), "Component has no snapshot")


@router.get("/{component_id}/snapshots/latest", response_model=SnapshotResponse)
def get_latest_snapshot(component_id: int, db: DBSession, store: Store):
    return _found(store.get_latest(db, component_id), "Component has no processed snapshot")


@router.get("/{component_id}/snapshots/before", response_model=SnapshotResponse)
def get_snapshot_before(
    component_id: int,
    db: DBSession,
    store: Store,
    date: int = Query(..., description="Epoch milliseconds, exclusive"),
):
    return _found(
        store.get_snapshot_before(db, component_id, date),
        "No processed snapshot before this date",
    )


@router.get("/{component_id}/snapshots/previous-versions", response_model=List[SnapshotResponse])
def list_previous_version_snapshots(
    component_id: int,
    db: DBSession,
    store: Store,
    version: Optional[str] = None,
):
    """Snapshots of other versions than ``version``, oldest first."""
    return store.get_previous_version_snapshots(db, component_id, version)


@router.get("/by-uuid/{component_uuid}/has-last", response_model=HasLastResponse)
def has_last_snapshot(component_uuid: str, db: DBSession, store: Store):
    return HasLastResponse(
        component_uuid=component_uuid,
        has_last=store.has_last_by_component_uuid(db, component_uuid),
    )
