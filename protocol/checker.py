"""Satisfiability checker (mock verifier).

Given a frozen ConstraintSystem and the Assembly produced by synthesis, the
checker validates the witness exactly instead of producing a proof. It does
not stop at the first problem: every category is checked in full and all
failures are returned as data.

Checking consists of four phases:
1. Gates - every polynomial of every gate must be zero on each active row.
   A row is active where any of the gate's selectors is enabled; a gate
   without selectors is active on every row its rotations stay in bounds.
2. Lookups - on each active row the tuple of evaluated inputs must equal
   some loaded row of the table columns (full-tuple set membership).
3. Equality - copy constraints are merged into equivalence classes with
   union-find; all cells in a class must hold the same value.
4. Instance - each bound cell must equal its public input.

Failures are ordered gates, lookups, equality, instance, and by ascending
row within a category, regardless of the order in which parallel workers
finish.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

from constraints.expressions import evaluate_rows, queried_cells, queried_selectors
from constraints.system import ConstraintSystem, Gate, Lookup
from primitives.errors import OutOfBounds, SynthesisError, TableNotLoaded
from primitives.field import raw_ints
from witness.grid import Cell, WitnessGrid
from witness.layouter import Assembly
from .config import CheckerConfig

logger = logging.getLogger(__name__)


# --- Failure records ---

class Category(Enum):
    """Failure categories, in report order."""
    GATE = 0
    LOOKUP = 1
    EQUALITY = 2
    INSTANCE = 3


class FailureKind(Enum):
    """Specific failure reasons; the value is the human-readable reason."""
    NONZERO = "nonzero"
    CELL_NOT_ASSIGNED = "cell not assigned"
    NOT_IN_TABLE = "not found in table"
    COPY_VIOLATED = "copy constraint violated"
    INSTANCE_MISMATCH = "public input mismatch"


@dataclass(frozen=True)
class FailureLocation:
    """Where a failing row sits in the layout."""
    row: int
    region: Optional[str] = None
    offset: Optional[int] = None

    def __str__(self) -> str:
        if self.region is None:
            return f"outside any region at row {self.row}"
        return f"in region '{self.region}' at offset {self.offset} (row {self.row})"


@dataclass(frozen=True)
class VerifyFailure:
    """One constraint violation.

    Attributes:
        category: Which check found it
        kind: Specific reason
        row: Absolute row (the public input row for instance failures)
        name: Gate or lookup name ("" for equality and instance failures)
        constraint_index: Index of the polynomial within its gate
        constraint_name: Name of the polynomial within its gate
        location: Region placement of `row`
        cells: Cells involved
        expected: Expected value(s) where one exists
        actual: Witnessed value(s)
        cell_values: (query, value) pairs read by a failing gate polynomial
    """
    category: Category
    kind: FailureKind
    row: int
    name: str = ""
    constraint_index: Optional[int] = None
    constraint_name: str = ""
    location: Optional[FailureLocation] = None
    cells: Tuple[Cell, ...] = ()
    expected: Optional[Union[int, Tuple[int, ...]]] = None
    actual: Optional[Union[int, Tuple[Optional[int], ...]]] = None
    cell_values: Tuple[Tuple[str, Optional[int]], ...] = ()

    @property
    def reason(self) -> str:
        return self.kind.value

    def sort_key(self) -> Tuple[int, int]:
        return (self.category.value, self.row)

    def __str__(self) -> str:
        where = str(self.location) if self.location else f"at row {self.row}"
        if self.kind == FailureKind.NONZERO:
            label = f"{self.constraint_index}" + (f" ('{self.constraint_name}')" if self.constraint_name else "")
            values = ", ".join(f"{q} = {v}" for q, v in self.cell_values)
            return f"Constraint {label} in gate '{self.name}' is not satisfied {where}" + (f": {values}" if values else "")
        if self.kind == FailureKind.CELL_NOT_ASSIGNED:
            return f"{self.category.name.lower()} '{self.name}' queries unassigned cell {self.cells[0]} {where}"
        if self.kind == FailureKind.NOT_IN_TABLE:
            return f"Lookup '{self.name}' input {self.actual} not found in table {where}"
        if self.kind == FailureKind.COPY_VIOLATED:
            cells = ", ".join(str(c) for c in self.cells)
            return f"Copy constraint violated between cells {cells}: values {self.actual}"
        return (f"Public input mismatch at row {self.row}: expected {self.expected}, "
                f"found {self.actual} in cell {self.cells[0]}")


# --- Results ---

@dataclass(frozen=True)
class Satisfied:
    """Every constraint holds."""

    @property
    def is_satisfied(self) -> bool:
        return True


@dataclass(frozen=True)
class Violations:
    """Ordered failures; `truncated` is set when max_failures cut the list."""
    failures: Tuple[VerifyFailure, ...]
    truncated: bool = False

    @property
    def is_satisfied(self) -> bool:
        return False

    def of(self, category: Category) -> List[VerifyFailure]:
        return [f for f in self.failures if f.category == category]

    def __len__(self) -> int:
        return len(self.failures)

    def __iter__(self):
        return iter(self.failures)

    def __str__(self) -> str:
        return format_failures(self.failures, self.truncated)


CheckResult = Union[Satisfied, Violations]


def format_failures(failures: Iterable[VerifyFailure], truncated: bool = False) -> str:
    lines = [str(f) for f in failures]
    if truncated:
        lines.append("... (further failures omitted)")
    return "\n".join(lines)


# --- Helpers ---

def _location(assembly: Assembly, row: int) -> FailureLocation:
    region = assembly.region_at(row)
    if region is None:
        return FailureLocation(row)
    return FailureLocation(row, region.name, row - region.start)


def _active_rows(selectors, rots: Iterable[int], grid: WitnessGrid) -> Tuple[np.ndarray, bool]:
    """Rows a gate or lookup applies to, and whether evaluation is strict.

    Selector-gated constraints apply where any selector is enabled and must
    only read assigned cells. Always-on constraints apply on every row where
    their rotations stay inside the grid, reading unassigned cells as zero.
    """
    if selectors:
        mask = np.zeros(grid.height, dtype=bool)
        for selector in selectors:
            mask |= grid.selector_mask(selector)
        return np.flatnonzero(mask), True
    rots = list(rots) or [0]
    lo, hi = max(0, -min(rots)), grid.height - max(0, max(rots))
    return np.arange(lo, max(lo, hi), dtype=np.int64), False


def _assigned_rows(grid: WitnessGrid, cells, rows: np.ndarray) -> Tuple[np.ndarray, Dict[Tuple, np.ndarray]]:
    """Mask of rows whose queried cells are all assigned, and per-cell missing masks.

    Raises:
        OutOfBounds: an active row reads outside the grid
    """
    ok = np.ones(len(rows), dtype=bool)
    missing = {}
    for column, rotation in sorted(cells, key=lambda cr: (cr[0].kind.value, cr[0].index, cr[1])):
        target = rows + rotation
        bad = (target < 0) | (target >= grid.height)
        if bad.any():
            raise OutOfBounds(int(target[bad][0]), grid.height, what=f"row (rotation {rotation:+d} of {column})")
        assigned = grid.assigned_mask(column)[target]
        if not assigned.all():
            missing[(column, rotation)] = ~assigned
        ok &= assigned
    return ok, missing


def _query_label(column, rotation: int) -> str:
    return str(column) if rotation == 0 else f"{column}[{rotation:+d}]"


# --- Phase 1: gates ---

def check_gate(gate: Gate, assembly: Assembly) -> List[VerifyFailure]:
    """All failures of one gate, in (row, constraint index) order."""
    grid = assembly.grid
    all_cells = set()
    for poly in gate.polys:
        all_cells |= queried_cells(poly)
    rows, strict = _active_rows(gate.selectors, {r for _, r in all_cells}, grid)
    if len(rows) == 0:
        return []

    failures = []
    reported = set()
    for idx, poly in enumerate(gate.polys):
        cells = queried_cells(poly)
        eval_rows = rows
        if strict:
            # A polynomial is only read where one of its own selectors is on.
            own = queried_selectors(poly)
            if own:
                eval_rows, _ = _active_rows(own, (), grid)
            ok, missing = _assigned_rows(grid, cells, eval_rows)
            for (column, rotation), miss in missing.items():
                for row in eval_rows[miss]:
                    cell = Cell(column, int(row) + rotation)
                    if (int(row), cell) in reported:
                        continue
                    reported.add((int(row), cell))
                    failures.append(VerifyFailure(
                        Category.GATE, FailureKind.CELL_NOT_ASSIGNED, int(row),
                        name=gate.name, constraint_index=idx,
                        constraint_name=gate.constraint_names[idx],
                        location=_location(assembly, int(row)), cells=(cell,),
                    ))
            eval_rows = eval_rows[ok]
        if len(eval_rows) == 0:
            continue

        values = evaluate_rows(poly, grid, eval_rows, strict=strict)
        for row in eval_rows[values.view(np.ndarray) != 0]:
            row = int(row)
            cell_values = tuple(
                (_query_label(c, r), int(grid.read_rows(c, [row + r], strict=False)[0])
                 if grid.is_assigned(c, row + r) else None)
                for c, r in sorted(cells, key=lambda cr: (cr[0].kind.value, cr[0].index, cr[1]))
            )
            failures.append(VerifyFailure(
                Category.GATE, FailureKind.NONZERO, row,
                name=gate.name, constraint_index=idx,
                constraint_name=gate.constraint_names[idx],
                location=_location(assembly, row), cell_values=cell_values,
            ))

    failures.sort(key=lambda f: (f.row, f.constraint_index))
    return failures


# --- Phase 2: lookups ---

def _table_tuples(lookup: Lookup, grid: WitnessGrid) -> set:
    """Set of loaded table rows as int tuples.

    Raises:
        TableNotLoaded: a table column has no loaded rows
        SynthesisError: the table columns were loaded with different rows
    """
    rows = None
    for column in lookup.table_columns:
        column_rows = grid.table_rows(column)
        if len(column_rows) == 0:
            raise TableNotLoaded(column, lookup.name)
        if rows is None:
            rows = column_rows
        elif not np.array_equal(rows, column_rows):
            raise SynthesisError(f"table columns of lookup '{lookup.name}' are loaded with different rows")
    columns = [raw_ints(grid.read_rows(c, rows)) for c in lookup.table_columns]
    return set(zip(*columns))


def check_lookup(lookup: Lookup, assembly: Assembly) -> List[VerifyFailure]:
    """All failures of one lookup argument, in row order."""
    grid = assembly.grid
    table = _table_tuples(lookup, grid)
    cells = set()
    for expr in lookup.inputs:
        cells |= queried_cells(expr)
    rows, strict = _active_rows(lookup.selectors, {r for _, r in cells}, grid)
    if len(rows) == 0:
        return []

    failures = []
    if strict:
        ok, missing = _assigned_rows(grid, cells, rows)
        for (column, rotation), miss in missing.items():
            for row in rows[miss]:
                failures.append(VerifyFailure(
                    Category.LOOKUP, FailureKind.CELL_NOT_ASSIGNED, int(row), name=lookup.name,
                    location=_location(assembly, int(row)),
                    cells=(Cell(column, int(row) + rotation),),
                ))
        rows = rows[ok]

    if len(rows):
        inputs = [raw_ints(evaluate_rows(e, grid, rows, strict=strict)) for e in lookup.inputs]
        for row, values in zip(rows, zip(*inputs)):
            if values not in table:
                failures.append(VerifyFailure(
                    Category.LOOKUP, FailureKind.NOT_IN_TABLE, int(row), name=lookup.name,
                    location=_location(assembly, int(row)), actual=tuple(values),
                ))

    failures.sort(key=lambda f: f.row)
    return failures


# --- Phase 3: equality (permutation) ---

class _UnionFind:
    def __init__(self):
        self.parent: Dict[Cell, Cell] = {}

    def find(self, cell: Cell) -> Cell:
        root = self.parent.setdefault(cell, cell)
        while root != self.parent[root]:
            root = self.parent[root]
        while cell != root:
            self.parent[cell], cell = root, self.parent[cell]
        return root

    def union(self, a: Cell, b: Cell) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            # Keep the smaller cell as representative so classes are deterministic
            if rb < ra:
                ra, rb = rb, ra
            self.parent[rb] = ra


def equivalence_classes(copies: Iterable[Tuple[Cell, Cell]]) -> List[List[Cell]]:
    """Transitive closure of copy pairs, each class sorted, classes sorted by first cell."""
    uf = _UnionFind()
    for a, b in copies:
        uf.union(a, b)
    classes: Dict[Cell, List[Cell]] = {}
    for cell in list(uf.parent):
        classes.setdefault(uf.find(cell), []).append(cell)
    return sorted((sorted(members) for members in classes.values()), key=lambda m: m[0])


def check_permutation(assembly: Assembly) -> List[VerifyFailure]:
    """One failure per equivalence class holding more than one distinct value."""
    grid = assembly.grid
    failures = []
    for members in equivalence_classes(assembly.copies):
        values = tuple(int(grid.read(c.column, c.row)) if grid.is_assigned(c.column, c.row) else None
                       for c in members)
        if len(set(values)) > 1:
            row = members[0].row
            failures.append(VerifyFailure(
                Category.EQUALITY, FailureKind.COPY_VIOLATED, row,
                location=_location(assembly, row), cells=tuple(members), actual=values,
            ))
    return failures


# --- Phase 4: instance ---

def check_instances(assembly: Assembly) -> List[VerifyFailure]:
    grid = assembly.grid
    failures = []
    for binding in assembly.instance_bindings:
        expected = int(grid.read(binding.instance, binding.row))
        cell = binding.cell
        actual = int(grid.read(cell.column, cell.row)) if grid.is_assigned(cell.column, cell.row) else None
        if actual != expected:
            failures.append(VerifyFailure(
                Category.INSTANCE, FailureKind.INSTANCE_MISMATCH, binding.row,
                location=_location(assembly, cell.row), cells=(cell,),
                expected=expected, actual=actual,
            ))
    failures.sort(key=lambda f: f.row)
    return failures


# --- Aggregation ---

def check(cs: ConstraintSystem, assembly: Assembly, config: Optional[CheckerConfig] = None) -> CheckResult:
    """Run all four phases and aggregate the failures.

    Args:
        cs: Frozen constraint system
        assembly: Result of synthesis against `cs`
        config: Checker parameters (defaults to CheckerConfig())

    Returns:
        Satisfied() if no failure was found, else Violations(...)

    Raises:
        TableNotLoaded: a lookup references an empty table
        OutOfBounds: an active row rotates outside the grid
    """
    config = config or CheckerConfig()
    if config.workers > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as pool:
            permutation = pool.submit(check_permutation, assembly)
            gate_results = list(pool.map(lambda g: check_gate(g, assembly), cs.gates))
            lookup_results = list(pool.map(lambda lk: check_lookup(lk, assembly), cs.lookups))
            equality = permutation.result()
    else:
        gate_results = [check_gate(g, assembly) for g in cs.gates]
        lookup_results = [check_lookup(lk, assembly) for lk in cs.lookups]
        equality = check_permutation(assembly)

    failures = [f for fs in gate_results for f in fs]
    failures += [f for fs in lookup_results for f in fs]
    failures += equality
    failures += check_instances(assembly)
    # Stable sort keeps declaration order among failures on the same row
    failures.sort(key=VerifyFailure.sort_key)

    logger.debug("checked %d gates, %d lookups, %d copies, %d instance bindings: %d failures",
                 len(cs.gates), len(cs.lookups), len(assembly.copies),
                 len(assembly.instance_bindings), len(failures))
    if not failures:
        return Satisfied()
    truncated = config.max_failures is not None and len(failures) > config.max_failures
    if truncated:
        failures = failures[:config.max_failures]
    return Violations(tuple(failures), truncated)
