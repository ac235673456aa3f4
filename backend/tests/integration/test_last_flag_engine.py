import pytest

from snapline.exceptions import InvariantViolationError
from snapline.models.snapshot import Snapshot, SnapshotScope, SnapshotStatus
from snapline.services.analysis_run import AnalysisRunService


def flags(db_session, store):
    """{id: (is_last, status)} as seen by a fresh read."""
    db_session.expire_all()
    return {
        s.id: (s.is_last, s.status)
        for s in db_session.query(Snapshot).order_by(Snapshot.id).all()
    }


@pytest.fixture
def run_tree(make_snapshot):
    """Two runs of the same project with a module, a directory and a file each."""
    def _tree(created_at, is_last=False, status=SnapshotStatus.UNPROCESSED):
        root = make_snapshot(component_id=1, created_at=created_at, is_last=is_last, status=status)
        module = make_snapshot(component_id=2, parent=root, is_last=is_last, status=status,
                               scope=SnapshotScope.PROJECT)
        directory = make_snapshot(component_id=3, parent=module, is_last=is_last, status=status)
        file = make_snapshot(component_id=4, parent=directory, is_last=is_last, status=status,
                             scope=SnapshotScope.FILE)
        return root, module, directory, file
    return _tree


def test_promote_flags_whole_subtree_only(db_session, store, flag_engine, run_tree):
    old = run_tree(100, is_last=False, status=SnapshotStatus.PROCESSED)
    new = run_tree(200)

    count = flag_engine.promote_subtree(db_session, new[0])
    db_session.commit()

    assert count == 4
    state = flags(db_session, store)
    for s in new:
        assert state[s.id] == (True, SnapshotStatus.PROCESSED)
    for s in old:
        assert state[s.id] == (False, SnapshotStatus.PROCESSED)


def test_promote_inner_node_leaves_ancestors_and_siblings(db_session, store, flag_engine, make_snapshot):
    root = make_snapshot(component_id=1, status=SnapshotStatus.UNPROCESSED)
    left = make_snapshot(component_id=2, parent=root, status=SnapshotStatus.UNPROCESSED)
    left_child = make_snapshot(component_id=3, parent=left, status=SnapshotStatus.UNPROCESSED)
    right = make_snapshot(component_id=4, parent=root, status=SnapshotStatus.UNPROCESSED)

    assert flag_engine.promote_subtree(db_session, left) == 2
    db_session.commit()

    state = flags(db_session, store)
    assert state[left.id][0] and state[left_child.id][0]
    assert state[root.id] == (False, SnapshotStatus.UNPROCESSED)
    assert state[right.id] == (False, SnapshotStatus.UNPROCESSED)


def test_promote_is_idempotent(db_session, store, flag_engine, run_tree):
    root = run_tree(100)[0]

    first = flag_engine.promote_subtree(db_session, root)
    state_after_first = flags(db_session, store)
    second = flag_engine.promote_subtree(db_session, root)
    db_session.commit()

    assert first == second == 4
    assert flags(db_session, store) == state_after_first


def test_demote_keeps_status(db_session, store, flag_engine, run_tree):
    tree = run_tree(100, is_last=True, status=SnapshotStatus.PROCESSED)

    assert flag_engine.demote_subtree(db_session, tree[0]) == 4
    db_session.commit()

    state = flags(db_session, store)
    assert all(state[s.id] == (False, SnapshotStatus.PROCESSED) for s in tree)


def test_first_analysis_has_nothing_to_demote(db_session, store, flag_engine, run_tree):
    root = run_tree(100)[0]
    assert store.get_last_by_component(db_session, 1) is None

    assert flag_engine.promote_subtree(db_session, root) == 4
    db_session.commit()
    assert store.get_last_by_component(db_session, 1).id == root.id


def test_promote_unknown_root_returns_zero(db_session, flag_engine, run_tree):
    run_tree(100)
    ghost = Snapshot(id=999, component_id=1, component_uuid="uuid-1", path="", created_at=1)

    count = flag_engine.promote_subtree(db_session, ghost)
    assert count == 0
    with pytest.raises(InvariantViolationError):
        flag_engine.require_rows(count, ghost, "promote")


def test_promote_refuses_lineage_with_two_last(db_session, flag_engine, make_snapshot):
    make_snapshot(component_id=1, created_at=50, is_last=True)
    make_snapshot(component_id=1, created_at=100, is_last=True)
    new_root = make_snapshot(component_id=1, created_at=150, status=SnapshotStatus.UNPROCESSED)

    with pytest.raises(InvariantViolationError):
        flag_engine.promote_subtree(db_session, new_root)


def test_promote_checks_child_lineages(db_session, flag_engine, make_snapshot):
    # Component 2 is broken even though the project lineage is fine
    old_root = make_snapshot(component_id=1, created_at=50)
    make_snapshot(component_id=2, parent=old_root, is_last=True)
    make_snapshot(component_id=2, created_at=60, is_last=True)

    new_root = make_snapshot(component_id=1, created_at=100, status=SnapshotStatus.UNPROCESSED)
    make_snapshot(component_id=2, parent=new_root, status=SnapshotStatus.UNPROCESSED)

    with pytest.raises(InvariantViolationError):
        flag_engine.promote_subtree(db_session, new_root)


def test_loaded_objects_see_new_flags(db_session, flag_engine, run_tree):
    root, module, _, _ = run_tree(100)
    assert module.is_last is False

    flag_engine.promote_subtree(db_session, root)

    assert module.is_last is True
    assert module.status == SnapshotStatus.PROCESSED


def test_rollback_restores_both_subtrees(db_session, store, flag_engine, run_tree):
    old = run_tree(100, is_last=True, status=SnapshotStatus.PROCESSED)
    new = run_tree(200)
    before = flags(db_session, store)

    flag_engine.demote_subtree(db_session, old[0])
    flag_engine.promote_subtree(db_session, new[0])
    db_session.rollback()

    assert flags(db_session, store) == before


def test_promote_root_stored_without_root_id(db_session, store, flag_engine):
    root = Snapshot(component_id=1, component_uuid="uuid-1", path="", created_at=100,
                    status=SnapshotStatus.UNPROCESSED)
    db_session.add(root)
    db_session.commit()
    assert root.root_id is None
    # Legacy rows: the run root kept a NULL root_id, its children point at it
    child = store.insert(db_session, Snapshot(
        component_id=2, component_uuid="uuid-2", parent_id=root.id,
        root_id=root.id, path=f"{root.id}.", depth=1, created_at=100,
    ))
    db_session.commit()

    assert flag_engine.promote_subtree(db_session, root) == 2
    db_session.commit()

    assert store.get_last_by_component(db_session, 1).id == root.id
    assert store.get_by_id(db_session, child.id).is_last is True


def test_switch_scenario(db_session, store, flag_engine, session_factory):
    """
    Component C has S1 (last, created at 100). A new run creates root S2 and
    child S3. Demote S1 then promote S2: S2 becomes the last snapshot of C,
    S3 is flagged last too and S1 is not any more.
    """
    s1 = store.insert(db_session, Snapshot(
        component_id=10, component_uuid="C", created_at=100,
        is_last=True, status=SnapshotStatus.PROCESSED,
    ))
    service = AnalysisRunService(db_session, store=store, engine=flag_engine)
    s2 = service.start_run(10, "C", created_at=200)
    s3 = service.add_child(s2, 11, "C:src", scope=SnapshotScope.DIRECTORY, qualifier="DIR")
    db_session.commit()

    assert s3.root_id == s2.id
    assert s3.path == f"{s2.id}."

    flag_engine.require_rows(flag_engine.demote_subtree(db_session, s1), s1, "demote")
    flag_engine.require_rows(flag_engine.promote_subtree(db_session, s2), s2, "promote")
    db_session.commit()

    reader = session_factory()
    try:
        assert store.get_last_by_component(reader, 10).id == s2.id
        assert store.get_by_id(reader, s3.id).is_last is True
        assert store.get_by_id(reader, s1.id).is_last is False
        assert store.find_lineages_with_multiple_last(reader) == []
    finally:
        reader.close()
