# backend/snapline/services/snapshot_store.py
import logging
from typing import Iterable, List, Optional

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.orm import Session

from snapline.database import execute_large_inputs
from snapline.exceptions import InvariantViolationError, NotFoundError
from snapline.models.snapshot import Snapshot, SnapshotScope, SnapshotStatus
from snapline.paths import is_descendant_predicate, subtree_predicate
from snapline.schemas.snapshot import SnapshotQuery, SortField, SortOrder

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    Query and insert access to snapshot rows.

    Every operation runs on the session handed in by the caller. The store
    never commits or rolls back and keeps nothing between calls, so one
    instance can be shared by any number of threads.
    """

    def __init__(self, chunk_size: Optional[int] = None):
        self.chunk_size = chunk_size

    # ------------------------------------------------------------------
    # Lookups by identity
    # ------------------------------------------------------------------

    def get_by_id(self, db: Session, snapshot_id: int) -> Optional[Snapshot]:
        return db.query(Snapshot).filter(Snapshot.id == snapshot_id).first()

    def get_or_fail(self, db: Session, snapshot_id: int) -> Snapshot:
        snapshot = self.get_by_id(db, snapshot_id)
        if snapshot is None:
            raise NotFoundError(f"Snapshot id does not exist: {snapshot_id}")
        return snapshot

    def get_by_ids(self, db: Session, snapshot_ids: Iterable[int]) -> List[Snapshot]:
        """Snapshots for ``snapshot_ids`` ordered by id; unknown ids are skipped."""
        ids = sorted(set(snapshot_ids))
        if not ids:
            return []

        def select_chunk(chunk: List[int]) -> List[Snapshot]:
            return (
                db.query(Snapshot)
                .filter(Snapshot.id.in_(chunk))
                .order_by(asc(Snapshot.id))
                .all()
            )

        return execute_large_inputs(ids, select_chunk, self.chunk_size)

    # ------------------------------------------------------------------
    # Last flag
    # ------------------------------------------------------------------

    def get_last_by_component(
        self, db: Session, component_id: int, for_update: bool = False
    ) -> Optional[Snapshot]:
        query = db.query(Snapshot).filter(
            Snapshot.component_id == component_id,
            Snapshot.is_last.is_(True),
        )
        if for_update:
            query = query.with_for_update()
        # Several rows only when the invariant is already broken; take the newest
        return query.order_by(desc(Snapshot.created_at), desc(Snapshot.id)).first()

    def has_last_by_component_uuid(self, db: Session, component_uuid: str) -> bool:
        count = db.query(func.count(Snapshot.id)).filter(
            Snapshot.component_uuid == component_uuid,
            Snapshot.is_last.is_(True),
        ).scalar()
        return count > 0

    def count_last_by_component(self, db: Session, component_id: int) -> int:
        return db.query(func.count(Snapshot.id)).filter(
            Snapshot.component_id == component_id,
            Snapshot.is_last.is_(True),
        ).scalar()

    def find_lineages_with_multiple_last(
        self, db: Session, within_subtree_of: Optional[Snapshot] = None
    ) -> List[int]:
        """
        Component ids having more than one snapshot flagged last.

        With ``within_subtree_of``, only components analyzed somewhere in that
        snapshot's subtree are scanned.
        """
        query = db.query(Snapshot.component_id).filter(Snapshot.is_last.is_(True))
        if within_subtree_of is not None:
            components = select(Snapshot.component_id).where(subtree_predicate(within_subtree_of))
            query = query.filter(Snapshot.component_id.in_(components))
        rows = (
            query.group_by(Snapshot.component_id)
            .having(func.count(Snapshot.id) > 1)
            .order_by(Snapshot.component_id)
            .all()
        )
        return [row.component_id for row in rows]

    # ------------------------------------------------------------------
    # Filtered queries
    # ------------------------------------------------------------------

    def get_by_component(self, db: Session, component_id: int) -> List[Snapshot]:
        return self.get_by_query(db, SnapshotQuery(component_id=component_id))

    def get_by_query(self, db: Session, query: SnapshotQuery) -> List[Snapshot]:
        q = db.query(Snapshot)

        if query.component_id is not None:
            q = q.filter(Snapshot.component_id == query.component_id)
        if query.component_uuid is not None:
            q = q.filter(Snapshot.component_uuid == query.component_uuid)
        if query.scope is not None:
            q = q.filter(Snapshot.scope == query.scope)
        if query.status is not None:
            q = q.filter(Snapshot.status == query.status)
        if query.version is not None:
            q = q.filter(Snapshot.version == query.version)
        if query.is_last is not None:
            q = q.filter(Snapshot.is_last.is_(query.is_last))
        if query.created_after is not None:
            q = q.filter(Snapshot.created_at >= query.created_after)
        if query.created_before is not None:
            q = q.filter(Snapshot.created_at < query.created_before)
        if query.root_id is not None:
            q = q.filter(Snapshot.root_id == query.root_id)
        if query.path_prefix is not None:
            q = q.filter(Snapshot.path.like(query.path_prefix + "%"))

        column = Snapshot.created_at if query.sort_field == SortField.CREATED_AT else Snapshot.id
        direction = asc if query.sort_order == SortOrder.ASC else desc
        # id breaks ties between snapshots of the same run
        return q.order_by(direction(column), direction(Snapshot.id)).all()

    def get_one_by_query(self, db: Session, query: SnapshotQuery) -> Optional[Snapshot]:
        snapshots = self.get_by_query(db, query)
        if not snapshots:
            return None
        if len(snapshots) > 1:
            raise InvariantViolationError(
                f"Expected one snapshot to be returned, got {len(snapshots)}"
            )
        return snapshots[0]

    def get_previous_version_snapshots(
        self, db: Session, component_id: int, excluding_version: Optional[str]
    ) -> List[Snapshot]:
        """
        Processed project snapshots of the component whose version label
        differs from ``excluding_version``, oldest first.

        Versions are opaque labels: only inequality is tested, ordering is
        always by analysis date. Snapshots without a version never match.
        """
        q = db.query(Snapshot).filter(
            Snapshot.component_id == component_id,
            Snapshot.scope == SnapshotScope.PROJECT,
            Snapshot.status == SnapshotStatus.PROCESSED,
            Snapshot.version.is_not(None),
        )
        if excluding_version is not None:
            q = q.filter(Snapshot.version != excluding_version)
        return q.order_by(asc(Snapshot.created_at), asc(Snapshot.id)).all()

    def get_oldest(self, db: Session, component_id: int) -> Optional[Snapshot]:
        return (
            db.query(Snapshot)
            .filter(Snapshot.component_id == component_id)
            .order_by(asc(Snapshot.created_at), asc(Snapshot.id))
            .first()
        )

    def get_latest(self, db: Session, component_id: int) -> Optional[Snapshot]:
        return (
            db.query(Snapshot)
            .filter(
                Snapshot.component_id == component_id,
                Snapshot.status == SnapshotStatus.PROCESSED,
            )
            .order_by(desc(Snapshot.created_at), desc(Snapshot.id))
            .first()
        )

    def get_snapshot_before(self, db: Session, component_id: int, date: int) -> Optional[Snapshot]:
        return (
            db.query(Snapshot)
            .filter(
                Snapshot.component_id == component_id,
                Snapshot.status == SnapshotStatus.PROCESSED,
                Snapshot.created_at < date,
            )
            .order_by(desc(Snapshot.created_at), desc(Snapshot.id))
            .first()
        )

    def get_snapshot_and_children_of_project_scope(
        self, db: Session, snapshot_id: int
    ) -> List[Snapshot]:
        snapshot = self.get_by_id(db, snapshot_id)
        if snapshot is None:
            return []
        return (
            db.query(Snapshot)
            .filter(
                Snapshot.scope == SnapshotScope.PROJECT,
                or_(Snapshot.id == snapshot.id, is_descendant_predicate(snapshot)),
            )
            .order_by(asc(Snapshot.depth), asc(Snapshot.id))
            .all()
        )

    # ------------------------------------------------------------------
    # Inserts
    # ------------------------------------------------------------------

    def insert(self, db: Session, snapshot: Snapshot) -> Snapshot:
        db.add(snapshot)
        db.flush()
        if snapshot.root_id is None:
            # A run root references itself
            snapshot.root_id = snapshot.id
            db.flush()
        logger.debug(f"Inserted snapshot {snapshot.id} for component {snapshot.component_id}")
        return snapshot

    def insert_all(self, db: Session, snapshots: Iterable[Snapshot]) -> List[Snapshot]:
        return [self.insert(db, snapshot) for snapshot in snapshots]
