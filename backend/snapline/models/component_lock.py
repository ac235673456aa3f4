# backend/snapline/models/component_lock.py
from typing import Optional
from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import Mapped, mapped_column

from snapline.models.base import Base


class ComponentLock(Base):
    """
    One row per component ever published. Writing it inside the publishing
    transaction serializes runs of the same component across processes.
    """
    __tablename__ = "component_locks"

    component_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    locked_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    locked_by_root_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
