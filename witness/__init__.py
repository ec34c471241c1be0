"""Witness synthesis: deferred values, the witness grid and the layouter.

The layouter is the only writer of the grid. Circuit authors assign cells
through Region handles with relative offsets; the layouter maps them to
absolute rows and records copy and instance constraints for the checker.
"""

from .grid import Cell, WitnessGrid
from .layouter import (
    Assembly,
    AssignedCell,
    InstanceBinding,
    Layouter,
    Region,
    RegionInfo,
    Table,
)
from .value import Value, ValueState, as_value

__all__ = [
    "Cell",
    "WitnessGrid",
    "Assembly",
    "AssignedCell",
    "InstanceBinding",
    "Layouter",
    "Region",
    "RegionInfo",
    "Table",
    "Value",
    "ValueState",
    "as_value",
]
