# backend/snapline/services/analysis_run.py
import logging
import time
from typing import Optional

from sqlalchemy.orm import Session

from snapline.exceptions import InvariantViolationError
from snapline.models.snapshot import Snapshot, SnapshotScope, SnapshotStatus
from snapline.paths import is_last, path_of
from snapline.schemas.snapshot import PublicationResult
from snapline.services.last_flag_engine import LastFlagEngine
from snapline.services.locks import ComponentLocks
from snapline.services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

# Shared by every AnalysisRunService of the process
_component_locks = ComponentLocks()


def _now_millis() -> int:
    return int(time.time() * 1000)


class AnalysisRunService:
    """Builds the snapshot tree of an analysis run and publishes it as the new baseline."""

    def __init__(
        self,
        db: Session,
        store: Optional[SnapshotStore] = None,
        engine: Optional[LastFlagEngine] = None,
        locks: Optional[ComponentLocks] = None,
    ):
        self.db = db
        self.store = store or SnapshotStore()
        self.engine = engine or LastFlagEngine(self.store)
        self.locks = locks or _component_locks

    def start_run(
        self,
        component_id: int,
        component_uuid: str,
        created_at: Optional[int] = None,
        version: Optional[str] = None,
        qualifier: str = "TRK",
    ) -> Snapshot:
        """Insert the root snapshot of a new run. Nothing is committed."""
        root = Snapshot(
            component_id=component_id,
            component_uuid=component_uuid,
            root_project_id=component_id,
            parent_id=None,
            root_id=None,
            path="",
            depth=0,
            scope=SnapshotScope.PROJECT,
            qualifier=qualifier,
            status=SnapshotStatus.UNPROCESSED,
            is_last=False,
            version=version,
            created_at=created_at if created_at is not None else _now_millis(),
            build_date=_now_millis(),
        )
        return self.store.insert(self.db, root)

    def add_child(
        self,
        parent: Snapshot,
        component_id: int,
        component_uuid: str,
        scope: SnapshotScope = SnapshotScope.DIRECTORY,
        qualifier: Optional[str] = None,
        version: Optional[str] = None,
    ) -> Snapshot:
        child = Snapshot(
            component_id=component_id,
            component_uuid=component_uuid,
            root_project_id=parent.root_project_id,
            parent_id=parent.id,
            root_id=parent.root_id_or_self,
            path=path_of(parent),
            depth=parent.depth + 1,
            scope=scope,
            qualifier=qualifier,
            status=SnapshotStatus.UNPROCESSED,
            is_last=False,
            version=version if version is not None else parent.version,
            created_at=parent.created_at,
            build_date=parent.build_date,
        )
        return self.store.insert(self.db, child)

    def publish(self, root_id: int) -> PublicationResult:
        """
        Make the run rooted at ``root_id`` the baseline of its component.

        Demotion of the previous last subtree and promotion of the new one
        share one transaction, committed here. On any failure the
        transaction is rolled back and the error re-raised, leaving both
        subtrees as they were.
        """
        root = self.store.get_or_fail(self.db, root_id)
        if root.parent_id is not None:
            raise InvariantViolationError(
                f"Snapshot {root_id} is not the root of an analysis run "
                f"(its run root is {root.root_id_or_self})"
            )
        component_id = root.component_id

        with self.locks.hold(component_id):
            try:
                result = self._switch(root)
                self.db.commit()
            except Exception:
                self.db.rollback()
                logger.error(f"Failed to publish analysis run {root_id} of component {component_id}")
                raise

        logger.info(
            f"Published analysis run {root_id} of component {component_id}: "
            f"last={result.is_last}, demoted={result.demoted_rows}, promoted={result.promoted_rows}"
        )
        return result

    def _switch(self, root: Snapshot) -> PublicationResult:
        # Everything below reads and writes under the component's lock row
        self.locks.lock_row(self.db, root.component_id, root_id=root.id)

        # Checked before demoting, which could otherwise hide a second last row
        self.engine.check_subtree_lineages(self.db, root)

        previous_last = self.store.get_last_by_component(
            self.db, root.component_id, for_update=True
        )
        if previous_last is not None and previous_last.id == root.id:
            previous_last = None
            new_last = True
        else:
            new_last = is_last(root, previous_last)

        demoted = 0
        if new_last and previous_last is not None:
            demoted = self.engine.require_rows(
                self.engine.demote_subtree(self.db, previous_last), previous_last, "demote"
            )

        promoted = self.engine.require_rows(
            self.engine.promote_subtree(
                self.db, root, status=SnapshotStatus.PROCESSED, is_last=new_last
            ),
            root,
            "promote",
        )

        # Child components whose last snapshot lies outside the demoted
        # subtree (a module shared with another project) now have two
        if new_last:
            self.engine.check_subtree_lineages(self.db, root)

        return PublicationResult(
            root_id=root.id,
            component_id=root.component_id,
            is_last=new_last,
            demoted_rows=demoted,
            promoted_rows=promoted,
        )
