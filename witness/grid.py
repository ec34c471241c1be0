"""Witness grid: the concrete store of cell values.

Each column is a dense galois array of height 2^k plus a boolean numpy mask
recording which rows were actually assigned, so that an unassigned cell is
distinct from a zero-valued cell. Selectors are boolean masks of the same
height. Table columns are ordinary columns whose assigned rows are the
loaded table rows.
"""

from dataclasses import dataclass
from typing import Dict, Sequence

import galois
import numpy as np

from constraints.columns import Column, ColumnKind, Selector
from primitives.errors import OutOfBounds, RowOutOfRange, Shadowing, UnassignedCell
from primitives.field import to_field


@dataclass(frozen=True)
class Cell:
    """Absolute address of one grid cell."""
    column: Column
    row: int

    def __str__(self) -> str:
        return f"{self.column}@{self.row}"

    def __lt__(self, other: "Cell") -> bool:
        return (self.row, self.column) < (other.row, other.column)


class WitnessGrid:
    """Field values per (column, row), with an assigned-mask per column.

    Args:
        field: galois field class for all values
        k: log2 of the grid height
    """

    def __init__(self, field: type, k: int):
        self.field = field
        self.k = k
        self.height = 1 << k
        self._values: Dict[Column, galois.FieldArray] = {}
        self._assigned: Dict[Column, np.ndarray] = {}
        self._selectors: Dict[Selector, np.ndarray] = {}

    # --- Storage ---

    def _column(self, column: Column) -> galois.FieldArray:
        if column not in self._values:
            self._assigned[column] = np.zeros(self.height, dtype=bool)
            self._values[column] = self.field.Zeros(self.height)
        return self._values[column]

    def _check_row(self, row: int) -> None:
        if not 0 <= row < self.height:
            raise RowOutOfRange(row, self.height)

    def write(self, column: Column, row: int, value) -> galois.FieldArray:
        """Assign a cell. Re-assigning the same value is a no-op.

        Raises:
            RowOutOfRange: row outside [0, 2^k)
            Shadowing: the cell already holds a different value
        """
        self._check_row(row)
        value = to_field(self.field, value)
        values = self._column(column)
        if self._assigned[column][row]:
            if values[row] != value:
                raise Shadowing(column, row, values[row], value)
            return values[row]
        values[row] = value
        self._assigned[column][row] = True
        return values[row]

    def read(self, column: Column, row: int) -> galois.FieldArray:
        """Read one assigned cell.

        Raises:
            OutOfBounds: row outside [0, height)
            UnassignedCell: the cell holds no value
        """
        if not 0 <= row < self.height:
            raise OutOfBounds(row, self.height)
        if not self.is_assigned(column, row):
            raise UnassignedCell(column, row)
        return self._values[column][row]

    def read_rows(self, column: Column, rows: np.ndarray, strict: bool = True) -> galois.FieldArray:
        """Vectorised read used by expression evaluation.

        With strict=False unassigned cells read as zero.
        """
        rows = np.asarray(rows, dtype=np.int64)
        bad = (rows < 0) | (rows >= self.height)
        if bad.any():
            raise OutOfBounds(int(rows[bad][0]), self.height, what="rotated row")
        values = self._column(column)
        if strict:
            missing = ~self._assigned[column][rows]
            if missing.any():
                raise UnassignedCell(column, int(rows[missing][0]))
        return values[rows]

    def is_assigned(self, column: Column, row: int) -> bool:
        if column not in self._assigned or not 0 <= row < self.height:
            return False
        return bool(self._assigned[column][row])

    def assigned_mask(self, column: Column) -> np.ndarray:
        self._column(column)
        return self._assigned[column]

    def assigned_rows(self, column: Column) -> np.ndarray:
        """Ascending absolute rows of `column` holding a value."""
        return np.flatnonzero(self.assigned_mask(column))

    # --- Selectors ---

    def enable_selector(self, selector: Selector, row: int) -> None:
        """Enable `selector` at `row`; idempotent."""
        self._check_row(row)
        self.selector_mask(selector)[row] = True

    def selector_mask(self, selector: Selector) -> np.ndarray:
        if selector not in self._selectors:
            self._selectors[selector] = np.zeros(self.height, dtype=bool)
        return self._selectors[selector]

    def selector_rows(self, selector: Selector) -> np.ndarray:
        return np.flatnonzero(self.selector_mask(selector))

    # --- Instance and table columns ---

    def load_instance(self, column: Column, values: Sequence) -> None:
        """Fill an instance column with public inputs, zero-padded to the full height."""
        if len(values) > self.height:
            raise RowOutOfRange(len(values) - 1, self.height)
        column_values = self._column(column)
        for row, value in enumerate(values):
            column_values[row] = to_field(self.field, value)
        self._assigned[column][:] = True

    def table_rows(self, column: Column) -> np.ndarray:
        """Loaded rows of a table column."""
        assert column.kind == ColumnKind.TABLE, f"{column} is not a table column"
        return self.assigned_rows(column)
