# backend/snapline/tasks/analysis.py
"""Async analysis-run tasks using Dramatiq."""
import dramatiq
import logging

from snapline.database import get_session_local
from snapline.exceptions import InvariantViolationError, NotFoundError
from snapline.schemas.snapshot import IntegrityReport
from snapline.services.analysis_run import AnalysisRunService
from snapline.services.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


@dramatiq.actor(max_retries=3, min_backoff=1000, throws=(NotFoundError, InvariantViolationError))
def publish_analysis_task(root_id: int):
    """
    Async task publishing a finished analysis run as its component's baseline.
    Data-integrity failures are not retried.
    """
    logger.info(f"Publishing analysis run {root_id}")

    db = get_session_local()()
    try:
        result = AnalysisRunService(db).publish(root_id)
        return result.model_dump()
    finally:
        db.close()


@dramatiq.actor(max_retries=0)
def check_last_flag_integrity_task():
    """Periodic scan for components with more than one last snapshot."""
    db = get_session_local()()
    try:
        component_ids = SnapshotStore().find_lineages_with_multiple_last(db)
    finally:
        db.close()

    report = IntegrityReport(component_ids=component_ids)
    if report.ok:
        logger.info("Last-flag integrity check passed")
    else:
        logger.error(f"Components with more than one last snapshot: {report.component_ids}")
    return report.model_dump()
