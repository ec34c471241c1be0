"""Region allocator and layouter.

Circuit authors assign cells through regions, using offsets relative to the
region's first row. The layouter turns those into absolute rows with a
strictly monotonic bump allocator: each region starts at the row after the
previous region ends, so regions never share rows. Region height is the
highest offset the region touched, plus one.

Besides cell values the layouter records everything the permutation and
instance checks need:

- copies: pairs of cells asserted equal (copy_advice, constrain_equal,
  constants)
- instance_bindings: cells asserted equal to a public input

Usage:
    layouter = Layouter(cs, grid, instances)

    def first_row(region):
        a = region.assign_advice_from_instance(instance, 0, col_a, 0)
        b = region.assign_advice_from_instance(instance, 1, col_b, 0)
        region.enable_selector(s_add, 0)
        return region.assign_advice(col_c, 0, a.value.zip(b.value).map(lambda ab: ab[0] + ab[1]))

    c = layouter.assign_region("first row", first_row)
    layouter.constrain_instance(c, instance, 2)
    assembly = layouter.finish()

Shape-only synthesis (grid=None) accepts unknown values and records only the
layout; it is how the number of rows a circuit needs is measured.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from constraints.columns import Column, ColumnKind, Selector
from constraints.system import ConstraintSystem
from primitives.field import to_field
from primitives.errors import (
    ColumnNotPermuted,
    OutOfBounds,
    RowOutOfRange,
    SynthesisError,
)
from .grid import Cell, WitnessGrid
from .value import Value, as_value

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RegionInfo:
    """Absolute placement of one region."""
    name: str
    start: int
    height: int

    def contains(self, row: int) -> bool:
        return self.start <= row < self.start + self.height


@dataclass(frozen=True)
class InstanceBinding:
    """`cell` must equal public input `row` of instance column `instance`."""
    cell: Cell
    instance: Column
    row: int


@dataclass
class Assembly:
    """Everything synthesis produced; read-only input of the checker."""
    grid: Optional[WitnessGrid]
    regions: List[RegionInfo] = field(default_factory=list)
    copies: List[Tuple[Cell, Cell]] = field(default_factory=list)
    instance_bindings: List[InstanceBinding] = field(default_factory=list)
    tables: Dict[str, List[Column]] = field(default_factory=dict)
    constants: List[Tuple[Cell, Any]] = field(default_factory=list)
    next_row: int = 0
    table_height: int = 0
    finished: bool = False

    def region_at(self, row: int) -> Optional[RegionInfo]:
        """The region containing absolute `row`, if any."""
        for region in self.regions:
            if region.contains(row):
                return region
        return None


class AssignedCell:
    """A cell that has been assigned, together with the value written to it."""

    __slots__ = ("cell", "value")

    def __init__(self, cell: Cell, value: Value):
        self.cell = cell
        self.value = value

    @property
    def column(self) -> Column:
        return self.cell.column

    @property
    def row(self) -> int:
        return self.cell.row

    def copy_advice(self, region: "Region", column: Column, offset: int) -> "AssignedCell":
        """Copy this cell's value into `region` and constrain the two equal."""
        return region.copy_advice(self, column, offset)

    def __repr__(self) -> str:
        return f"AssignedCell({self.cell}, {self.value!r})"


CellRef = Union[AssignedCell, Cell]


def _cell_of(ref: CellRef) -> Cell:
    return ref.cell if isinstance(ref, AssignedCell) else ref


class Region:
    """Region-relative assignment handle passed to assign_region closures."""

    def __init__(self, layouter: "Layouter", name: str, start: int):
        self._layouter = layouter
        self.name = name
        self.start = start
        self.height = 0

    def _row(self, offset: int) -> int:
        if offset < 0:
            raise OutOfBounds(offset, self.height, what=f"offset in region '{self.name}'")
        self.height = max(self.height, offset + 1)
        return self.start + offset

    def _assign(self, kind: ColumnKind, column: Column, offset: int, provided) -> AssignedCell:
        if column.kind != kind:
            raise SynthesisError(f"expected a {kind.value} column, got {column}")
        value = self._layouter.normalize(as_value(provided))
        row = self._row(offset)
        self._layouter._write(column, row, value)
        return AssignedCell(Cell(column, row), value)

    def assign_advice(self, column: Column, offset: int, value) -> AssignedCell:
        """Assign an advice cell.

        Args:
            column: Advice column
            offset: Row relative to the region start
            value: Value, raw field element/int, or zero-argument callable
                returning either

        Raises:
            Shadowing: the cell already holds a different value
            RowOutOfRange: the absolute row is beyond the grid
        """
        return self._assign(ColumnKind.ADVICE, column, offset, value)

    def assign_fixed(self, column: Column, offset: int, value) -> AssignedCell:
        return self._assign(ColumnKind.FIXED, column, offset, value)

    def assign_advice_from_instance(
        self,
        instance: Column,
        instance_row: int,
        column: Column,
        offset: int,
    ) -> AssignedCell:
        """Copy public input `instance_row` into an advice cell and bind them."""
        value = self._layouter.instance_value(instance, instance_row)
        assigned = self.assign_advice(column, offset, value)
        self._layouter.constrain_instance(assigned, instance, instance_row)
        return assigned

    def assign_advice_from_constant(self, column: Column, offset: int, constant) -> AssignedCell:
        """Assign a constant to an advice cell, constrained to a fixed constant cell."""
        assigned = self.assign_advice(column, offset, Value.known(constant))
        self.constrain_constant(assigned, constant)
        return assigned

    def constrain_constant(self, cell: CellRef, constant) -> None:
        """Constrain `cell` to equal `constant`, placed in a constant column at finish()."""
        cell = _cell_of(cell)
        self._layouter._check_permuted(cell.column)
        self._layouter.assembly.constants.append((cell, constant))

    def copy_advice(self, source: AssignedCell, column: Column, offset: int) -> AssignedCell:
        """Write `source`'s value into a new advice cell, constrained equal to it."""
        assigned = self.assign_advice(column, offset, source.value)
        self.constrain_equal(source, assigned)
        return assigned

    def constrain_equal(self, a: CellRef, b: CellRef) -> None:
        self._layouter.constrain_equal(a, b)

    def enable_selector(self, selector: Selector, offset: int) -> None:
        row = self._row(offset)
        if self._layouter.grid is not None:
            self._layouter.grid.enable_selector(selector, row)


class Table:
    """Assignment handle passed to assign_table closures; rows start at 0."""

    def __init__(self, layouter: "Layouter", name: str):
        self._layouter = layouter
        self.name = name
        self.columns: List[Column] = []

    def assign_cell(self, column: Column, offset: int, value) -> None:
        if column.kind != ColumnKind.TABLE:
            raise SynthesisError(f"table '{self.name}' cannot assign non-table column {column}")
        if offset < 0:
            raise OutOfBounds(offset, 0, what=f"offset in table '{self.name}'")
        if column not in self.columns:
            self.columns.append(column)
        self._layouter.assembly.table_height = max(self._layouter.assembly.table_height, offset + 1)
        self._layouter._write(column, offset, self._layouter.normalize(as_value(value)))


class Layouter:
    """Drives synthesis: allocates regions and records copy/instance bindings.

    Args:
        cs: Frozen constraint system the circuit was configured against
        grid: Witness grid to fill, or None for shape-only synthesis
        instances: Public inputs, one sequence per instance column; loaded
            into the grid's instance columns, zero padded
    """

    def __init__(
        self,
        cs: ConstraintSystem,
        grid: Optional[WitnessGrid],
        instances: Sequence[Sequence] = (),
        assembly: Optional[Assembly] = None,
        path: Tuple[str, ...] = (),
    ):
        self.cs = cs
        self.grid = grid
        self.instances = instances
        self._path = path
        if assembly is None:
            assembly = Assembly(grid)
            if grid is not None:
                self._load_instances()
        self.assembly = assembly

    @property
    def shape_only(self) -> bool:
        return self.grid is None

    def namespace(self, name: str) -> "Layouter":
        """Child layouter whose region names are prefixed with `name`."""
        return Layouter(self.cs, self.grid, self.instances, self.assembly, self._path + (name,))

    def _qualified(self, name: str) -> str:
        return "/".join(self._path + (name,))

    # --- Regions ---

    def assign_region(self, name: str, build: Callable[[Region], T]) -> T:
        """Allocate the next free rows, run `build` on the region, return its result."""
        region = Region(self, self._qualified(name), self.assembly.next_row)
        result = build(region)
        self.assembly.regions.append(RegionInfo(region.name, region.start, region.height))
        self.assembly.next_row += region.height
        logger.debug("region %r: rows [%d, %d)", region.name, region.start, region.start + region.height)
        return result

    def assign_table(self, name: str, build: Callable[[Table], T]) -> T:
        """Load lookup table rows; table columns are keyed from row 0."""
        table = Table(self, self._qualified(name))
        result = build(table)
        self.assembly.tables[table.name] = table.columns
        logger.debug("table %r: columns %s", table.name, [str(c) for c in table.columns])
        return result

    # --- Equality and instance constraints ---

    def constrain_instance(self, cell: CellRef, instance: Column, row: int) -> None:
        """Constrain `cell` to equal public input `row` of `instance`."""
        cell = _cell_of(cell)
        if instance.kind != ColumnKind.INSTANCE:
            raise SynthesisError(f"expected an instance column, got {instance}")
        self._check_permuted(cell.column)
        self._check_permuted(instance)
        if self.grid is not None and not 0 <= row < self.grid.height:
            raise RowOutOfRange(row, self.grid.height)
        self.assembly.instance_bindings.append(InstanceBinding(cell, instance, row))

    def constrain_equal(self, a: CellRef, b: CellRef) -> None:
        a, b = _cell_of(a), _cell_of(b)
        self._check_permuted(a.column)
        self._check_permuted(b.column)
        self.assembly.copies.append((a, b))

    def _load_instances(self) -> None:
        """Fill every instance column of the grid, zero padded past the supplied inputs."""
        for column in self.cs.registry.columns(ColumnKind.INSTANCE):
            values = self.instances[column.index] if column.index < len(self.instances) else ()
            self.grid.load_instance(column, values)

    def instance_value(self, instance: Column, row: int) -> Value:
        """Public input `row` of `instance`; zero past the supplied inputs."""
        if self.shape_only:
            return Value.unknown()
        values = self.instances[instance.index] if instance.index < len(self.instances) else ()
        return Value.known(values[row] if row < len(values) else 0)

    # --- Finishing ---

    def finish(self) -> Assembly:
        """Place pending constants after the last region and return the assembly."""
        if self.assembly.finished:
            return self.assembly
        self.assembly.finished = True
        constants = self.assembly.constants
        if constants:
            columns = self.cs.constant_columns
            if not columns:
                raise SynthesisError("constants were assigned but no column has enable_constant")
            start = self.assembly.next_row
            for i, (cell, constant) in enumerate(constants):
                column = columns[i % len(columns)]
                row = start + i // len(columns)
                self._write(column, row, Value.known(constant))
                self.assembly.copies.append((Cell(column, row), cell))
            height = (len(constants) + len(columns) - 1) // len(columns)
            self.assembly.regions.append(RegionInfo("constants", start, height))
            self.assembly.next_row += height
            logger.debug("placed %d constants in %d rows", len(constants), height)
        return self.assembly

    # --- Internal ---

    def _check_permuted(self, column: Column) -> None:
        if not self.cs.is_permuted(column):
            raise ColumnNotPermuted(column)

    def normalize(self, value: Value) -> Value:
        """Reduce a known value into the circuit's field."""
        return value.map(lambda v: to_field(self.cs.field, v))

    def _write(self, column: Column, row: int, value: Value) -> None:
        if self.grid is None:
            if value.is_poisoned:
                value.assign()
            return
        self.grid.write(column, row, value.assign())
