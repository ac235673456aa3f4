# backend/snapline/models/base.py
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class IntegerIdMixin:
    # Assigned by the database, so ids grow with insertion order
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
