"""Constraint declarations: columns, expressions, gates and lookups.

Everything in this package is symbolic. Column and selector handles come
from a ColumnRegistry, expressions are trees over those handles, and the
ConstraintSystem records gates, lookups and permutation metadata. Witness
values live in the witness package.
"""

from .columns import CUR, NEXT, PREV, Column, ColumnKind, ColumnRegistry, Selector
from .expressions import (
    Constant,
    Expression,
    Negated,
    Product,
    Query,
    Scaled,
    ScaledSelector,
    SelectorQuery,
    Sum,
    as_expression,
    degree,
    evaluate,
    evaluate_rows,
    queried_cells,
    queried_columns,
    queried_selectors,
    rotations,
)
from .gadgets import bool_check, expr_from_bytes, range_check
from .system import ConstraintSystem, Gate, Lookup, VirtualCells

__all__ = [
    # Columns
    "CUR",
    "NEXT",
    "PREV",
    "Column",
    "ColumnKind",
    "ColumnRegistry",
    "Selector",
    # Expressions
    "Expression",
    "Constant",
    "Query",
    "SelectorQuery",
    "Negated",
    "Sum",
    "Product",
    "Scaled",
    "ScaledSelector",
    "as_expression",
    "degree",
    "evaluate",
    "evaluate_rows",
    "queried_cells",
    "queried_columns",
    "queried_selectors",
    "rotations",
    # Gadgets
    "bool_check",
    "expr_from_bytes",
    "range_check",
    # Constraint system
    "ConstraintSystem",
    "Gate",
    "Lookup",
    "VirtualCells",
]
