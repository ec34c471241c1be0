"""Error types raised while configuring or synthesizing a circuit.

Configuration and synthesis errors are fatal: they propagate out of
MockProver.run and the circuit is unusable. Constraint violations found by
the checker are not errors; they are returned as VerifyFailure records.
"""


class PlonkishError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(PlonkishError):
    """The constraint system declaration is malformed."""


class SynthesisError(PlonkishError):
    """Witness assignment failed; synthesis is aborted."""


class UnassignedCell(SynthesisError):
    """A cell was read before any value was assigned to it."""

    def __init__(self, column, row: int):
        self.column = column
        self.row = row
        super().__init__(f"cell {column}@{row} is not assigned")


class OutOfBounds(SynthesisError):
    """A row (or row + rotation) falls outside [0, height)."""

    def __init__(self, row: int, height: int, what: str = "row"):
        self.row = row
        self.height = height
        super().__init__(f"{what} {row} outside grid of height {height}")


class RowOutOfRange(OutOfBounds):
    """An assignment targets a row at or beyond 2^k."""


class ColumnNotPermuted(SynthesisError):
    """An equality constraint involves a column without enable_equality."""

    def __init__(self, column):
        self.column = column
        super().__init__(f"column {column} is not enabled for equality constraints")


class Shadowing(SynthesisError):
    """A cell already holding a value was assigned a different one."""

    def __init__(self, column, row: int, old, new):
        self.column = column
        self.row = row
        self.old = old
        self.new = new
        super().__init__(f"cell {column}@{row} already holds {int(old)}, cannot assign {int(new)}")


class TableNotLoaded(SynthesisError):
    """A lookup references a table column with no loaded rows."""

    def __init__(self, column, lookup: str):
        self.column = column
        self.lookup = lookup
        super().__init__(f"lookup '{lookup}' references table column {column} which was never loaded")


class UnknownValue(SynthesisError):
    """A witness value was requested but is not known (shape-only synthesis)."""
