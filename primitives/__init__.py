"""Primitives - Field collaborator and error types."""

from primitives.errors import (
    ColumnNotPermuted,
    ConfigurationError,
    OutOfBounds,
    PlonkishError,
    RowOutOfRange,
    Shadowing,
    SynthesisError,
    TableNotLoaded,
    UnassignedCell,
    UnknownValue,
)
from primitives.field import (
    FF,
    FF_BYTES,
    GOLDILOCKS_PRIME,
    field_bytes,
    from_le_bytes,
    le_bytes,
    raw_ints,
    to_field,
)

__all__ = [
    # Field
    "FF",
    "FF_BYTES",
    "GOLDILOCKS_PRIME",
    "field_bytes",
    "from_le_bytes",
    "le_bytes",
    "raw_ints",
    "to_field",
    # Errors
    "PlonkishError",
    "ConfigurationError",
    "SynthesisError",
    "UnassignedCell",
    "OutOfBounds",
    "RowOutOfRange",
    "ColumnNotPermuted",
    "Shadowing",
    "TableNotLoaded",
    "UnknownValue",
]
