"""Tests for field conversions and byte decomposition."""

import galois

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


class TestToField:
    """Tests for reducing Python ints into a field."""

    def test_small_int(self) -> None:
        assert to_field(FF, 7) == FF(7)

    def test_negative_int_wraps(self) -> None:
        """-1 becomes p - 1."""
        assert to_field(FF, -1) == FF(GOLDILOCKS_PRIME - 1)

    def test_large_int_reduced(self) -> None:
        assert to_field(FF, GOLDILOCKS_PRIME + 3) == FF(3)

    def test_field_element_passes_through(self) -> None:
        x = FF(12345)
        assert to_field(FF, x) is x

    def test_element_of_other_field(self) -> None:
        """Elements of a different field are converted through their integer value."""
        GF101 = galois.GF(101)
        assert to_field(GF101, FF(205)) == GF101(3)


class TestLeBytes:
    """Tests for little-endian byte decomposition."""

    def test_default_width_is_field_width(self) -> None:
        assert field_bytes(FF) == FF_BYTES
        assert le_bytes(FF(258)) == [2, 1, 0, 0, 0, 0, 0, 0]

    def test_truncated_width(self) -> None:
        assert le_bytes(FF(0x030201), 2) == [1, 2]

    def test_wider_than_field(self) -> None:
        """Requesting more bytes than the field width zero-extends."""
        assert le_bytes(FF(1), 10) == [1] + [0] * 9

    def test_small_field_width(self) -> None:
        GF101 = galois.GF(101)
        assert field_bytes(GF101) == 1
        assert le_bytes(GF101(100)) == [100]

    def test_plain_int(self) -> None:
        assert le_bytes(2 ** 64 + 5) == [5, 0, 0, 0, 0, 0, 0, 0, 1]

    def test_recompose(self) -> None:
        """from_le_bytes inverts le_bytes."""
        x = FF(GOLDILOCKS_PRIME - 12345)
        assert from_le_bytes(FF, le_bytes(x)) == x


def test_raw_ints() -> None:
    """raw_ints returns hashable Python ints."""
    values = raw_ints(FF([1, 2, GOLDILOCKS_PRIME - 1]))
    assert values == [1, 2, GOLDILOCKS_PRIME - 1]
    assert all(type(v) is int for v in values)
