"""Tests for MockProver, public input handling and circuit sizing."""

import galois
import pytest

from primitives.errors import RowOutOfRange, SynthesisError
from protocol.checker import Category
from protocol.mock_prover import MockProver, measure_rows, min_k, run_check
from tests.circuits import (
    FibonacciCircuit,
    SelectionCircuit,
    SortCircuit,
    XorCircuit,
)


class TestRun:

    def test_assert_satisfied(self) -> None:
        MockProver.run(2, SelectionCircuit(1, 2, 3, 2)).assert_satisfied()

    def test_assert_satisfied_reports_failures(self) -> None:
        prover = MockProver.run(2, SelectionCircuit(1, 2, 3, 3))
        with pytest.raises(AssertionError) as exc:
            prover.assert_satisfied()
        assert "gate 'select'" in str(exc.value)
        assert "region 'select'" in str(exc.value)

    def test_nested_public_inputs(self) -> None:
        """One sequence per instance column is accepted as well as a flat sequence."""
        assert run_check(FibonacciCircuit(), 2, [[1, 1, 5]]).is_satisfied

    def test_public_input_column_count(self) -> None:
        with pytest.raises(SynthesisError):
            run_check(FibonacciCircuit(), 2, [[1, 1, 5], [0]])

    def test_too_many_public_inputs(self) -> None:
        with pytest.raises(RowOutOfRange):
            run_check(FibonacciCircuit(), 2, [1, 1, 2, 3, 5])

    def test_grid_too_small(self) -> None:
        """Regions past 2^k rows abort synthesis."""
        with pytest.raises(RowOutOfRange):
            MockProver.run(2, FibonacciCircuit(steps=5), [1, 1, 8])

    def test_unknown_witness_aborts(self) -> None:
        with pytest.raises(SynthesisError):
            MockProver.run(2, SelectionCircuit(1, 2, 3))

    def test_prover_exposes_layout(self) -> None:
        prover = MockProver.run(2, FibonacciCircuit(), [1, 1, 5])
        assert [r.name for r in prover.assembly.regions] == [
            "fibonacci/first row",
            "fibonacci/next row",
            "fibonacci/next row",
        ]
        assert prover.grid.height == 4
        assert len(prover.assembly.copies) == 4


class TestOtherFields:
    """Nothing in the engine is specific to the default field."""

    def test_small_prime_field(self) -> None:
        GF101 = galois.GF(101)
        assert MockProver.run(2, SelectionCircuit(1, 2, 3, 2), field=GF101).verify().is_satisfied

    def test_values_wrap_modulo_p(self) -> None:
        """102 and 1 are the same element of GF(101)."""
        GF101 = galois.GF(101)
        assert MockProver.run(2, SelectionCircuit(1, 102, 3, 1), field=GF101).verify().is_satisfied

    def test_instance_mismatch_in_small_field(self) -> None:
        GF101 = galois.GF(101)
        result = MockProver.run(2, FibonacciCircuit(), [1, 1, 6], field=GF101).verify()
        assert [f.category for f in result] == [Category.INSTANCE]


class TestSizing:

    def test_measure_rows(self) -> None:
        assert measure_rows(FibonacciCircuit()) == 3
        assert measure_rows(SortCircuit([9, 4, 6, 2, 1], [True] * 4)) == 5

    def test_tables_count_towards_rows(self) -> None:
        assert measure_rows(XorCircuit([(0, 1, 1)])) == 4

    def test_min_k(self) -> None:
        assert min_k(FibonacciCircuit()) == 2
        assert min_k(SortCircuit([9, 4, 6, 2, 1], [True] * 4)) == 3
        assert min_k(FibonacciCircuit(steps=4)) == 2
        assert min_k(FibonacciCircuit(steps=5)) == 3

    def test_min_k_is_sufficient(self) -> None:
        circuit = SortCircuit([9, 4, 6, 2, 1], [True] * 4)
        assert run_check(circuit, min_k(circuit)).is_satisfied
