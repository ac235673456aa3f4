# backend/snapline/paths.py
"""
Materialized paths for snapshot trees.

A snapshot's path is the concatenation of its ancestors' ids, each followed
by SEPARATOR. The root of an analysis run has the empty path, its children
"<root>.", their children "<root>.<child>." and so on. Subtree membership is
then a plain prefix test, which a relational store evaluates as
``path LIKE '<prefix>%'`` without walking the tree.
"""
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import and_, or_

SEPARATOR = "."

_PATH_RE = re.compile(r"^(?:\d+\.)*$")


def _check_id(snapshot_id) -> str:
    # bool is an int subclass but never a valid id
    if isinstance(snapshot_id, bool) or not isinstance(snapshot_id, int):
        raise ValueError(f"Snapshot id must be an integer, got {snapshot_id!r}")
    if snapshot_id < 0:
        raise ValueError(f"Snapshot id must not be negative, got {snapshot_id}")
    text = str(snapshot_id)
    if SEPARATOR in text:
        raise ValueError(f"Snapshot id {text!r} contains the path separator")
    return text


@dataclass(frozen=True)
class SnapshotPath:
    value: str = ""

    def __post_init__(self):
        if not _PATH_RE.match(self.value):
            raise ValueError(f"Malformed snapshot path: {self.value!r}")

    @classmethod
    def root(cls) -> "SnapshotPath":
        return cls("")

    @classmethod
    def parse(cls, text: Optional[str]) -> "SnapshotPath":
        return cls(text or "")

    @classmethod
    def child_of(cls, parent_path: "SnapshotPath", parent_id: int) -> "SnapshotPath":
        return cls(parent_path.value + _check_id(parent_id) + SEPARATOR)

    def descendant_prefix(self, owner_id: int) -> str:
        """Prefix shared by the paths of every descendant of the owner of this path."""
        return self.value + _check_id(owner_id) + SEPARATOR

    def is_descendant_of(self, ancestor_path: "SnapshotPath", ancestor_id: int) -> bool:
        return self.value.startswith(ancestor_path.descendant_prefix(ancestor_id))

    @property
    def ancestor_ids(self) -> Tuple[int, ...]:
        return tuple(int(part) for part in self.value.split(SEPARATOR) if part)

    @property
    def depth(self) -> int:
        return self.value.count(SEPARATOR)

    @property
    def is_root(self) -> bool:
        return self.value == ""

    def __str__(self) -> str:
        return self.value


def path_of(parent) -> str:
    """Stored path of a direct child of ``parent``."""
    return SnapshotPath.child_of(SnapshotPath.parse(parent.path), parent.id).value


def is_descendant(candidate, ancestor) -> bool:
    """True when ``candidate`` lies strictly below ``ancestor`` in one run tree."""
    if candidate.root_id_or_self != ancestor.root_id_or_self:
        return False
    return SnapshotPath.parse(candidate.path).is_descendant_of(
        SnapshotPath.parse(ancestor.path), ancestor.id
    )


def is_descendant_predicate(ancestor):
    """SQL condition matching every strict descendant of ``ancestor``."""
    from snapline.models.snapshot import Snapshot

    prefix = SnapshotPath.parse(ancestor.path).descendant_prefix(ancestor.id)
    return and_(
        Snapshot.root_id == ancestor.root_id_or_self,
        Snapshot.path.like(prefix + "%"),
    )


def subtree_predicate(root):
    """SQL condition matching ``root`` itself and all of its descendants."""
    from snapline.models.snapshot import Snapshot

    prefix = SnapshotPath.parse(root.path).descendant_prefix(root.id)
    # The root matches by id alone, so a run root stored with a NULL root_id
    # still selects itself
    return or_(
        Snapshot.id == root.id,
        and_(
            Snapshot.root_id == root.root_id_or_self,
            Snapshot.path.like(prefix + "%"),
        ),
    )


def is_last(candidate, previous_last) -> bool:
    """Whether ``candidate`` supersedes ``previous_last`` as the baseline."""
    return previous_last is None or candidate.created_at > previous_last.created_at
