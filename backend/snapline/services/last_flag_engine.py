# backend/snapline/services/last_flag_engine.py
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from snapline.exceptions import InvariantViolationError
from snapline.models.snapshot import Snapshot, SnapshotStatus
from snapline.paths import subtree_predicate
from snapline.services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class LastFlagEngine:
    """
    Flips ``is_last`` and ``status`` on a whole analysis-run subtree.

    Each promotion or demotion is one UPDATE statement selected through the
    materialized path, so the subtree changes as a unit with the caller's
    transaction. Exchanging the baseline of a lineage takes a demote of the
    previous last subtree followed by a promote of the new one, both inside
    the same transaction and under the caller's per-component lock. The
    engine neither locks, commits, nor picks the subtree to demote.
    """

    def __init__(self, store: Optional[SnapshotStore] = None):
        self.store = store or SnapshotStore()

    def promote_subtree(
        self,
        db: Session,
        root: Snapshot,
        status: SnapshotStatus = SnapshotStatus.PROCESSED,
        is_last: bool = True,
    ) -> int:
        """
        Set ``is_last`` and ``status`` on ``root`` and all its descendants.

        Returns the number of rows matched. Zero means ``root`` is not in the
        store; callers treat that as a data-integrity failure.

        Raises:
            InvariantViolationError: a component of the subtree already has
                more than one snapshot flagged last.
        """
        if is_last:
            self.check_subtree_lineages(db, root)
        return self.update_subtree(db, root, is_last=is_last, status=status)

    def demote_subtree(self, db: Session, root: Snapshot) -> int:
        """Clear ``is_last`` on ``root`` and all its descendants; status is kept."""
        return self.update_subtree(db, root, is_last=False)

    def update_subtree(
        self,
        db: Session,
        root: Snapshot,
        is_last: bool,
        status: Optional[SnapshotStatus] = None,
    ) -> int:
        values = {"is_last": is_last}
        if status is not None:
            values["status"] = status

        # Pending inserts must reach the database before the bulk statement
        db.flush()
        result = db.execute(
            update(Snapshot)
            .where(subtree_predicate(root))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        count = result.rowcount
        self._expire_loaded(db, values.keys())

        logger.debug(
            f"Updated {count} snapshot(s) under root {root.id} "
            f"(run {root.root_id_or_self}) with {values}"
        )
        return count

    def check_subtree_lineages(self, db: Session, root: Snapshot) -> None:
        """Refuse to touch a subtree whose components already break the invariant."""
        broken = self.store.find_lineages_with_multiple_last(db, within_subtree_of=root)
        if broken:
            raise InvariantViolationError(
                f"Components {broken} already have more than one last snapshot; "
                f"refusing to promote snapshot {root.id}"
            )

    @staticmethod
    def require_rows(count: int, root: Snapshot, action: str) -> int:
        if count == 0:
            raise InvariantViolationError(
                f"Cannot {action} snapshot {root.id}: no matching rows "
                f"(run {root.root_id_or_self})"
            )
        return count

    @staticmethod
    def _expire_loaded(db: Session, attributes) -> None:
        # The UPDATE bypassed the identity map; reload flags on next access
        for obj in list(db.identity_map.values()):
            if isinstance(obj, Snapshot):
                db.expire(obj, list(attributes))
