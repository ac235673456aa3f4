#!/usr/bin/env python3
"""Report components whose lineage has more than one last snapshot.

Usage:
    python scripts/check_last_flags.py [component_id ...]

Without arguments every component is scanned. Exits with status 1 when a
violation is found, so the script can run from cron.
"""
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from snapline.database import get_session_local
from snapline.services.snapshot_store import SnapshotStore


def check(component_ids=None) -> bool:
    """Print offending lineages; True when none was found."""
    SessionLocal = get_session_local()
    db = SessionLocal()
    store = SnapshotStore()

    try:
        broken = store.find_lineages_with_multiple_last(db)
        if component_ids:
            broken = [c for c in broken if c in component_ids]

        if not broken:
            print("No component has more than one last snapshot")
            return True

        print("\nComponents with several last snapshots:")
        print("-" * 60)
        for component_id in broken:
            print(f"  component {component_id}")
            last_rows = [s for s in store.get_by_component(db, component_id) if s.is_last]
            for snapshot in last_rows:
                print(f"    snapshot {snapshot.id} root={snapshot.root_id} created_at={snapshot.created_at}")
        print("-" * 60)
        return False

    finally:
        db.close()


if __name__ == "__main__":
    ids = {int(arg) for arg in sys.argv[1:]}
    sys.exit(0 if check(ids) else 1)
