# backend/snapline/models/snapshot.py
from enum import Enum
from typing import Optional
from sqlalchemy import BigInteger, Boolean, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from snapline.models.base import Base, IntegerIdMixin
from snapline.paths import SnapshotPath


class SnapshotScope(str, Enum):
    PROJECT = "PRJ"
    DIRECTORY = "DIR"
    FILE = "FIL"


class SnapshotStatus(str, Enum):
    UNPROCESSED = "U"
    PROCESSED = "P"


class Snapshot(Base, IntegerIdMixin):
    __tablename__ = "snapshots"
    __table_args__ = (
        Index("snapshots_component_last", "component_id", "is_last"),
        Index("snapshots_root_path", "root_id", "path"),
    )

    component_id: Mapped[int] = mapped_column(Integer, index=True)
    component_uuid: Mapped[str] = mapped_column(String(50), index=True)
    root_project_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Tree of one analysis run
    parent_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    root_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    path: Mapped[str] = mapped_column(String(500), default="")
    depth: Mapped[int] = mapped_column(Integer, default=0)

    scope: Mapped[SnapshotScope] = mapped_column(default=SnapshotScope.PROJECT)
    qualifier: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    status: Mapped[SnapshotStatus] = mapped_column(default=SnapshotStatus.UNPROCESSED)
    is_last: Mapped[bool] = mapped_column(Boolean, default=False)
    version: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Epoch milliseconds
    created_at: Mapped[int] = mapped_column(BigInteger)
    build_date: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    @property
    def root_id_or_self(self) -> int:
        return self.root_id if self.root_id is not None else self.id

    @property
    def snapshot_path(self) -> SnapshotPath:
        return SnapshotPath.parse(self.path or "")

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def __repr__(self) -> str:
        return (
            f"<Snapshot id={self.id} component_id={self.component_id} "
            f"root_id={self.root_id} path={self.path!r} is_last={self.is_last}>"
        )
