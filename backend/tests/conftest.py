import os

os.environ.setdefault("SNAPLINE_USE_STUB_BROKER", "true")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from snapline.main import app
from snapline.database import get_db
from snapline.models import Base, Snapshot, SnapshotScope, SnapshotStatus
from snapline.services.snapshot_store import SnapshotStore
from snapline.services.last_flag_engine import LastFlagEngine


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store():
    return SnapshotStore()


@pytest.fixture
def flag_engine(store):
    return LastFlagEngine(store)


@pytest.fixture
def make_snapshot(db_session, store):
    """Insert a snapshot row; children get path, root and depth from ``parent``."""
    def _make(
        component_id=1,
        created_at=100,
        parent=None,
        is_last=False,
        status=SnapshotStatus.PROCESSED,
        scope=None,
        version=None,
        component_uuid=None,
    ):
        if parent is None:
            snapshot = Snapshot(
                component_id=component_id,
                component_uuid=component_uuid or f"uuid-{component_id}",
                root_project_id=component_id,
                path="",
                depth=0,
                scope=scope or SnapshotScope.PROJECT,
                status=status,
                is_last=is_last,
                version=version,
                created_at=created_at,
            )
        else:
            snapshot = Snapshot(
                component_id=component_id,
                component_uuid=component_uuid or f"uuid-{component_id}",
                root_project_id=parent.root_project_id,
                parent_id=parent.id,
                root_id=parent.root_id,
                path=f"{parent.path}{parent.id}.",
                depth=parent.depth + 1,
                scope=scope or SnapshotScope.DIRECTORY,
                status=status,
                is_last=is_last,
                version=version,
                created_at=parent.created_at,
            )
        store.insert(db_session, snapshot)
        db_session.commit()
        return snapshot
    return _make


@pytest.fixture
def client(db_session):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
