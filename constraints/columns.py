"""Column and selector handles, and the registry that allocates them.

A Column is identified by (kind, index); indices are allocated per kind in
increasing order and never reused. Selectors live in their own index space:
they are stored as boolean rows in the witness grid rather than as field
columns.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

# --- Rotations ---
# A rotation is a signed row offset relative to the row being evaluated.

PREV = -1
CUR = 0
NEXT = 1


class ColumnKind(Enum):
    """Column kinds; the value is used in failure reports."""
    FIXED = "fixed"
    ADVICE = "advice"
    INSTANCE = "instance"
    TABLE = "table"


@dataclass(frozen=True)
class Column:
    """Handle to a grid column."""
    kind: ColumnKind
    index: int

    def __str__(self) -> str:
        return f"{self.kind.value}[{self.index}]"

    def __lt__(self, other: "Column") -> bool:
        return (self.kind.value, self.index) < (other.kind.value, other.index)


@dataclass(frozen=True)
class Selector:
    """Handle to a selector column.

    Simple selectors may only gate polynomial constraints. Complex selectors
    may also appear in lookup arguments.
    """
    index: int
    simple: bool = True

    def __str__(self) -> str:
        return f"selector[{self.index}]"


class ColumnRegistry:
    """Allocates columns and selectors for one constraint system."""

    def __init__(self):
        self._columns: Dict[ColumnKind, List[Column]] = {kind: [] for kind in ColumnKind}
        self.selectors: List[Selector] = []

    def _allocate(self, kind: ColumnKind) -> Column:
        column = Column(kind, len(self._columns[kind]))
        self._columns[kind].append(column)
        return column

    def add_fixed(self) -> Column:
        return self._allocate(ColumnKind.FIXED)

    def add_advice(self) -> Column:
        return self._allocate(ColumnKind.ADVICE)

    def add_instance(self) -> Column:
        return self._allocate(ColumnKind.INSTANCE)

    def add_table(self) -> Column:
        return self._allocate(ColumnKind.TABLE)

    def add_selector(self) -> Selector:
        selector = Selector(len(self.selectors), simple=True)
        self.selectors.append(selector)
        return selector

    def add_complex_selector(self) -> Selector:
        selector = Selector(len(self.selectors), simple=False)
        self.selectors.append(selector)
        return selector

    def columns(self, kind: ColumnKind) -> List[Column]:
        """All columns of `kind`, in allocation order."""
        return list(self._columns[kind])

    def count(self, kind: ColumnKind) -> int:
        return len(self._columns[kind])
