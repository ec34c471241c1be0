"""Prime field GF(p) used for witness values and constraint evaluation.

Uses the galois library for all field arithmetic. FF is the default field
type: the Goldilocks prime field. Any other galois prime field class can be
passed to a ConstraintSystem instead; nothing in the engine is specific to
Goldilocks.

Scalars are 0-d galois arrays (FF(5)), columns are 1-d arrays (FF.Zeros(n)).
Plain Python ints are reduced into the field by to_field(), which also
accepts negative ints (-1 becomes p - 1).
"""

from typing import List, Sequence

import galois
import numpy as np

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001

FF = galois.GF(GOLDILOCKS_PRIME)
"""Base field GF(p) - Goldilocks prime field."""

# Byte width of a canonical little-endian element encoding for FF
FF_BYTES = 8


# --- Conversions ---

def to_field(field: type, value) -> galois.FieldArray:
    """Reduce an int (or an element of the same field) into `field`."""
    if isinstance(value, field):
        return value
    return field(int(value) % field.order)


def field_bytes(field: type) -> int:
    """Number of bytes needed to encode any element of `field`."""
    return (int(field.order - 1).bit_length() + 7) // 8


def le_bytes(value, n_bytes: int = None) -> List[int]:
    """Canonical little-endian byte decomposition of a field element.

    Args:
        value: Field element (0-d galois array) or non-negative int
        n_bytes: Output width; defaults to the width of the element's field

    Returns:
        List of n_bytes ints in [0, 256), least significant first
    """
    if isinstance(value, galois.FieldArray):
        width = field_bytes(type(value))
    else:
        width = max(FF_BYTES, (int(value).bit_length() + 7) // 8)
    if n_bytes is None:
        n_bytes = width
    # Bytes above n_bytes are dropped, like slicing a truncated canonical repr
    return list(int(value).to_bytes(max(width, n_bytes), "little"))[:n_bytes]


def from_le_bytes(field: type, data: Sequence[int]) -> galois.FieldArray:
    """Inverse of le_bytes: rebuild a field element from little-endian bytes."""
    return to_field(field, int.from_bytes(bytes(data), "little"))


def raw_ints(values: galois.FieldArray) -> List[int]:
    """Plain Python ints of a 1-d field array (hashable, for set membership)."""
    return [int(v) for v in values.view(np.ndarray)]
