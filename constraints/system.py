"""Constraint system builder.

The ConstraintSystem is populated once, during circuit configuration, and is
read-only afterwards. It records:

- columns and selectors (through its ColumnRegistry)
- gates: named lists of polynomials that must vanish on active rows
- lookups: tuples of input expressions that must appear in table columns
- which columns may take part in equality constraints
- which fixed columns hold constants

Gate and lookup bodies are written as closures over a VirtualCells query
facility. VirtualCells only hands out symbolic Query nodes; it has no grid,
so configuration code cannot read witness values.

Example:
    cs = ConstraintSystem()
    a, b, c = cs.add_advice(), cs.add_advice(), cs.add_advice()
    s = cs.add_selector()

    def add_gate(meta):
        return [meta.query_advice(a) + meta.query_advice(b) - meta.query_advice(c)]

    cs.create_gate("add", add_gate, selector=s)
"""

import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple, Union

from primitives.errors import ConfigurationError
from primitives.field import FF
from .columns import CUR, Column, ColumnKind, ColumnRegistry, Selector
from .expressions import (
    Expression,
    ExpressionLike,
    Query,
    ScaledSelector,
    SelectorQuery,
    as_expression,
    degree,
    queried_selectors,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Gate:
    """Named polynomial constraints.

    Attributes:
        name: Gate name used in failure reports
        polys: Polynomials that must evaluate to zero on every active row
        constraint_names: Per-polynomial names ("" when not given)
        selectors: Selectors that activate the gate; empty means always-on
    """
    name: str
    polys: Tuple[Expression, ...]
    constraint_names: Tuple[str, ...]
    selectors: FrozenSet[Selector]

    @property
    def always_on(self) -> bool:
        return not self.selectors


@dataclass(frozen=True)
class Lookup:
    """Lookup argument: each active row's input tuple must be a table row.

    Attributes:
        name: Lookup name used in failure reports
        inputs: Input expressions, one per table column
        table_columns: Table columns forming the table tuples
        selectors: Selectors that activate the lookup; empty means always-on
    """
    name: str
    inputs: Tuple[Expression, ...]
    table_columns: Tuple[Column, ...]
    selectors: FrozenSet[Selector]

    @property
    def always_on(self) -> bool:
        return not self.selectors


class VirtualCells:
    """Configuration-time query facility passed to gate and lookup closures."""

    def __init__(self, cs: "ConstraintSystem"):
        self._cs = cs

    def _query(self, column: Column, kind: ColumnKind, rotation: int) -> Query:
        if column.kind != kind:
            raise ConfigurationError(f"expected a {kind.value} column, got {column}")
        return Query(column, rotation)

    def query_advice(self, column: Column, rotation: int = CUR) -> Query:
        return self._query(column, ColumnKind.ADVICE, rotation)

    def query_fixed(self, column: Column, rotation: int = CUR) -> Query:
        return self._query(column, ColumnKind.FIXED, rotation)

    def query_instance(self, column: Column, rotation: int = CUR) -> Query:
        return self._query(column, ColumnKind.INSTANCE, rotation)

    def query_any(self, column: Column, rotation: int = CUR) -> Query:
        if column.kind == ColumnKind.TABLE:
            raise ConfigurationError(f"table column {column} can only be used as a lookup target")
        return Query(column, rotation)

    def query_selector(self, selector: Selector) -> SelectorQuery:
        return SelectorQuery(selector)


GateBody = Sequence[Union[ExpressionLike, Tuple[str, ExpressionLike]]]


class ConstraintSystem:
    """Declarations of a circuit's columns, gates, lookups and permutation.

    Args:
        field: galois prime field class used for every value (default FF)
    """

    def __init__(self, field: type = FF):
        self.field = field
        self.registry = ColumnRegistry()
        self.gates: List[Gate] = []
        self.lookups: List[Lookup] = []
        self.permutation_columns: List[Column] = []
        self.constant_columns: List[Column] = []
        self._frozen = False

    # --- Columns ---

    def add_fixed(self) -> Column:
        self._check_mutable()
        return self.registry.add_fixed()

    def add_advice(self) -> Column:
        self._check_mutable()
        return self.registry.add_advice()

    def add_instance(self) -> Column:
        self._check_mutable()
        return self.registry.add_instance()

    def add_table(self) -> Column:
        self._check_mutable()
        return self.registry.add_table()

    def add_selector(self) -> Selector:
        self._check_mutable()
        return self.registry.add_selector()

    def add_complex_selector(self) -> Selector:
        self._check_mutable()
        return self.registry.add_complex_selector()

    # --- Permutation ---

    def enable_equality(self, column: Column) -> None:
        """Allow `column` to take part in equality constraints."""
        self._check_mutable()
        if column.kind == ColumnKind.TABLE:
            raise ConfigurationError(f"table column {column} cannot take part in equality constraints")
        if column not in self.permutation_columns:
            self.permutation_columns.append(column)

    def enable_constant(self, column: Column) -> None:
        """Use fixed `column` to hold constants assigned during synthesis."""
        self._check_mutable()
        if column.kind != ColumnKind.FIXED:
            raise ConfigurationError(f"constants must live in a fixed column, got {column}")
        if column not in self.constant_columns:
            self.constant_columns.append(column)
        self.enable_equality(column)

    def is_permuted(self, column: Column) -> bool:
        return column in self.permutation_columns

    # --- Gates and lookups ---

    def create_gate(
        self,
        name: str,
        build: Callable[[VirtualCells], GateBody],
        selector: Optional[Selector] = None,
    ) -> Gate:
        """Record a gate.

        Args:
            name: Gate name
            build: Called once with a VirtualCells; returns polynomials, or
                (constraint_name, polynomial) pairs
            selector: If given, every polynomial is gated by this selector.
                Otherwise the gate is active wherever a selector it queries
                is enabled, or on every row if it queries none.

        Returns:
            The recorded Gate
        """
        self._check_mutable()
        polys, names = [], []
        for item in build(VirtualCells(self)):
            constraint_name, poly = item if isinstance(item, tuple) else ("", item)
            poly = as_expression(poly)
            if selector is not None:
                poly = ScaledSelector(selector, poly)
            polys.append(poly)
            names.append(constraint_name)
        if not polys:
            raise ConfigurationError(f"gate '{name}' has no polynomials")

        selectors = set()
        for poly in polys:
            selectors |= queried_selectors(poly)
        gate = Gate(name, tuple(polys), tuple(names), frozenset(selectors))
        self.gates.append(gate)
        logger.debug("gate %r: %d polys, degree %d", name, len(polys), max(degree(p) for p in polys))
        return gate

    def create_lookup(
        self,
        name: str,
        build: Callable[[VirtualCells], Sequence[Tuple[ExpressionLike, Column]]],
        selector: Optional[Selector] = None,
    ) -> Lookup:
        """Record a lookup argument.

        Args:
            name: Lookup name
            build: Called once with a VirtualCells; returns
                (input expression, table column) pairs
            selector: Complex selector activating the lookup. If omitted,
                the lookup is active wherever a selector it queries is
                enabled, or on every row if it queries none.

        Returns:
            The recorded Lookup

        Raises:
            ConfigurationError: a simple selector gates the lookup, a target
                is not a table column, or the lookup is empty
        """
        self._check_mutable()
        pairs = list(build(VirtualCells(self)))
        if not pairs:
            raise ConfigurationError(f"lookup '{name}' has no inputs")
        inputs, tables = [], []
        for expr, column in pairs:
            if column.kind != ColumnKind.TABLE:
                raise ConfigurationError(f"lookup '{name}' targets non-table column {column}")
            inputs.append(as_expression(expr))
            tables.append(column)

        selectors = set() if selector is None else {selector}
        for expr in inputs:
            selectors |= queried_selectors(expr)
        for s in selectors:
            if s.simple:
                raise ConfigurationError(f"simple {s} cannot be used in lookup '{name}'; use a complex selector")

        lookup = Lookup(name, tuple(inputs), tuple(tables), frozenset(selectors))
        self.lookups.append(lookup)
        logger.debug("lookup %r: %d columns", name, len(tables))
        return lookup

    # --- Queries ---

    def degree(self) -> int:
        """Highest polynomial degree over all gates and lookup inputs."""
        degrees = [degree(p) for g in self.gates for p in g.polys]
        degrees += [degree(e) for lk in self.lookups for e in lk.inputs]
        return max(degrees, default=0)

    def usable_rows(self, k: int) -> range:
        """Rows available to regions and tables in a grid of height 2^k.

        No rows are reserved for blinding, so this is the whole grid.
        """
        return range(1 << k)

    def freeze(self) -> None:
        """End the configuration phase; further declarations raise."""
        self._frozen = True

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationError("constraint system is frozen after configuration")
