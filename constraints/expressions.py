"""Expression tree for polynomial constraints.

Expressions are built at configuration time from column and selector
handles only; they never hold witness values. Python operators build the
tree, so precedence is whatever the tree shape says:

    s * (a + b - c)   ->  Product(SelectorQuery(s), Sum(Sum(a, b), Negated(c)))

Evaluation reads a WitnessGrid. evaluate() computes one row; evaluate_rows()
computes many rows at once by fancy-indexing the grid's galois column
arrays, the same way the prover evaluates constraints over whole domains.

Node types:
    Constant        field constant (int, reduced into the field on evaluation)
    Query           column value at row + rotation
    SelectorQuery   1 if the selector is enabled at the row, else 0
    Negated         -expr
    Sum             left + right
    Product         left * right
    Scaled          expr * constant
    ScaledSelector  selector(row) * expr, the stored form of a gated constraint
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Set, Tuple, Union

import galois
import numpy as np

from primitives.errors import OutOfBounds
from primitives.field import to_field
from .columns import Column, Selector

if TYPE_CHECKING:
    from witness.grid import WitnessGrid


class Expression:
    """Base class providing arithmetic operators for all node types.

    Field elements are numpy arrays; with __array_ufunc__ = None numpy defers
    `FF(x) * expr` and friends to the reflected methods below.
    """

    __array_ufunc__ = None

    def __add__(self, other) -> "Expression":
        return Sum(self, as_expression(other))

    def __radd__(self, other) -> "Expression":
        return Sum(as_expression(other), self)

    def __sub__(self, other) -> "Expression":
        return Sum(self, Negated(as_expression(other)))

    def __rsub__(self, other) -> "Expression":
        return Sum(as_expression(other), Negated(self))

    def __mul__(self, other) -> "Expression":
        if isinstance(other, Expression):
            return Product(self, other)
        return Scaled(self, _constant(other))

    def __rmul__(self, other) -> "Expression":
        if isinstance(other, Expression):
            return Product(other, self)
        return Scaled(self, _constant(other))

    def __neg__(self) -> "Expression":
        return Negated(self)

    def square(self) -> "Expression":
        return Product(self, self)


# --- Leaves ---

@dataclass(frozen=True, eq=True)
class Constant(Expression):
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, eq=True)
class Query(Expression):
    column: Column
    rotation: int = 0

    def __str__(self) -> str:
        if self.rotation == 0:
            return str(self.column)
        return f"{self.column}[{self.rotation:+d}]"


@dataclass(frozen=True, eq=True)
class SelectorQuery(Expression):
    selector: Selector

    def __str__(self) -> str:
        return str(self.selector)


# --- Internal nodes ---

@dataclass(frozen=True, eq=True)
class Negated(Expression):
    expr: Expression

    def __str__(self) -> str:
        return f"-{self.expr}"


@dataclass(frozen=True, eq=True)
class Sum(Expression):
    left: Expression
    right: Expression

    def __str__(self) -> str:
        if isinstance(self.right, Negated):
            return f"({self.left} - {self.right.expr})"
        return f"({self.left} + {self.right})"


@dataclass(frozen=True, eq=True)
class Product(Expression):
    left: Expression
    right: Expression

    def __str__(self) -> str:
        return f"{self.left} * {self.right}"


@dataclass(frozen=True, eq=True)
class Scaled(Expression):
    expr: Expression
    factor: int

    def __str__(self) -> str:
        return f"{self.expr} * {self.factor}"


@dataclass(frozen=True, eq=True)
class ScaledSelector(Expression):
    selector: Selector
    expr: Expression

    def __str__(self) -> str:
        return f"{self.selector} * {self.expr}"


ExpressionLike = Union[Expression, int, galois.FieldArray]


def _constant(value) -> int:
    """Integer value of an int or scalar field element operand.

    Raises:
        TypeError: `value` is neither (floats, arrays, strings, ...)
    """
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, galois.FieldArray) and value.ndim == 0:
        return int(value)
    raise TypeError(f"Cannot use {type(value).__name__} {value!r} as an expression constant")


def as_expression(value: ExpressionLike) -> Expression:
    """Lift ints and field elements to Constant nodes."""
    if isinstance(value, Expression):
        return value
    return Constant(_constant(value))


# --- Traversal ---

def children(expr: Expression) -> Tuple[Expression, ...]:
    if isinstance(expr, (Sum, Product)):
        return (expr.left, expr.right)
    if isinstance(expr, (Negated, Scaled, ScaledSelector)):
        return (expr.expr,)
    return ()


def walk(expr: Expression) -> Iterator[Expression]:
    """Pre-order iteration over every node of `expr`."""
    stack = [expr]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children(node)))


def queried_cells(expr: Expression) -> Set[Tuple[Column, int]]:
    """All (column, rotation) pairs read by `expr`."""
    return {(n.column, n.rotation) for n in walk(expr) if isinstance(n, Query)}


def queried_columns(expr: Expression) -> Set[Column]:
    """All columns read by `expr`, at any rotation."""
    return {column for column, _ in queried_cells(expr)}


def queried_selectors(expr: Expression) -> Set[Selector]:
    """All selectors read by `expr`, either queried or as a gate scale."""
    return {n.selector for n in walk(expr) if isinstance(n, (SelectorQuery, ScaledSelector))}


def rotations(expr: Expression) -> Set[int]:
    return {rotation for _, rotation in queried_cells(expr)}


def degree(expr: Expression) -> int:
    """Polynomial degree of `expr` in the column/selector variables.

        Constant            -> 0
        Query, SelectorQuery -> 1
        Sum(a, b)           -> max(deg(a), deg(b))
        Product(a, b)       -> deg(a) + deg(b)
        Negated, Scaled     -> deg(expr)
        ScaledSelector      -> 1 + deg(expr)
    """
    if isinstance(expr, Constant):
        return 0
    if isinstance(expr, (Query, SelectorQuery)):
        return 1
    if isinstance(expr, Sum):
        return max(degree(expr.left), degree(expr.right))
    if isinstance(expr, Product):
        return degree(expr.left) + degree(expr.right)
    if isinstance(expr, (Negated, Scaled)):
        return degree(expr.expr)
    if isinstance(expr, ScaledSelector):
        return 1 + degree(expr.expr)
    raise TypeError(f"Unknown expression type: {type(expr)}")


# --- Evaluation ---

def evaluate_rows(
    expr: Expression,
    grid: "WitnessGrid",
    rows,
    strict: bool = True,
) -> galois.FieldArray:
    """Evaluate `expr` at each absolute row in `rows`.

    Args:
        expr: Expression to evaluate
        grid: Witness grid providing column values and selector rows
        rows: 1-d array-like of absolute row indices
        strict: If True, reading an unassigned cell raises UnassignedCell.
            If False, unassigned cells read as zero.

    Returns:
        Field array with one value per entry of `rows`

    Raises:
        OutOfBounds: a row, or row + rotation, falls outside [0, grid.height)
        UnassignedCell: a queried cell is unassigned (strict mode only)
    """
    field = grid.field
    rows = np.asarray(rows, dtype=np.int64)
    bad = (rows < 0) | (rows >= grid.height)
    if bad.any():
        raise OutOfBounds(int(rows[bad][0]), grid.height)

    def _selector(selector) -> galois.FieldArray:
        values = field.Zeros(len(rows))
        values[grid.selector_mask(selector)[rows]] = 1
        return values

    def _eval(node: Expression) -> galois.FieldArray:
        if isinstance(node, Constant):
            return field.Zeros(len(rows)) + to_field(field, node.value)
        if isinstance(node, Query):
            return grid.read_rows(node.column, rows + node.rotation, strict=strict)
        if isinstance(node, SelectorQuery):
            return _selector(node.selector)
        if isinstance(node, Negated):
            return -_eval(node.expr)
        if isinstance(node, Sum):
            return _eval(node.left) + _eval(node.right)
        if isinstance(node, Product):
            return _eval(node.left) * _eval(node.right)
        if isinstance(node, Scaled):
            return _eval(node.expr) * to_field(field, node.factor)
        if isinstance(node, ScaledSelector):
            return _selector(node.selector) * _eval(node.expr)
        raise TypeError(f"Unknown expression type: {type(node)}")

    return _eval(expr)


def evaluate(expr: Expression, grid: "WitnessGrid", row: int) -> galois.FieldArray:
    """Evaluate `expr` at a single absolute row (strict)."""
    return evaluate_rows(expr, grid, [row])[0]
