"""Tests for the ConstraintSystem builder."""

import pytest

from constraints.columns import NEXT
from constraints.expressions import Query, ScaledSelector
from constraints.system import ConstraintSystem
from primitives.errors import ConfigurationError


class TestGates:

    def test_explicit_selector_wraps_every_poly(self) -> None:
        cs = ConstraintSystem()
        a, b = cs.add_advice(), cs.add_advice()
        s = cs.add_selector()

        gate = cs.create_gate("sum", lambda vc: [vc.query_advice(a) - vc.query_advice(b), vc.query_advice(a)],
                              selector=s)

        assert gate.polys == (
            ScaledSelector(s, Query(a) - Query(b)),
            ScaledSelector(s, Query(a)),
        )
        assert gate.selectors == frozenset({s})
        assert not gate.always_on
        assert cs.gates == [gate]

    def test_named_constraints(self) -> None:
        cs = ConstraintSystem()
        a = cs.add_advice()
        gate = cs.create_gate("g", lambda vc: [("first", vc.query_advice(a)), vc.query_advice(a) * 2])
        assert gate.constraint_names == ("first", "")

    def test_selector_queried_in_body(self) -> None:
        """A gate without an explicit selector is gated by the selectors it queries."""
        cs = ConstraintSystem()
        a = cs.add_advice()
        s = cs.add_selector()
        gate = cs.create_gate("g", lambda vc: [vc.query_selector(s) * vc.query_advice(a)])
        assert gate.selectors == frozenset({s})

    def test_always_on_gate(self) -> None:
        cs = ConstraintSystem()
        a = cs.add_advice()
        gate = cs.create_gate("g", lambda vc: [vc.query_advice(a, NEXT) - vc.query_advice(a)])
        assert gate.always_on

    def test_empty_gate_rejected(self) -> None:
        cs = ConstraintSystem()
        with pytest.raises(ConfigurationError):
            cs.create_gate("empty", lambda vc: [])

    def test_query_kind_checked(self) -> None:
        cs = ConstraintSystem()
        f = cs.add_fixed()
        with pytest.raises(ConfigurationError):
            cs.create_gate("g", lambda vc: [vc.query_advice(f)])

    def test_table_column_not_queryable(self) -> None:
        cs = ConstraintSystem()
        t = cs.add_table()
        with pytest.raises(ConfigurationError):
            cs.create_gate("g", lambda vc: [vc.query_any(t)])

    def test_degree(self) -> None:
        cs = ConstraintSystem()
        a = cs.add_advice()
        s = cs.add_selector()
        cs.create_gate("g", lambda vc: [vc.query_advice(a) * vc.query_advice(a)], selector=s)
        assert cs.degree() == 3


class TestLookups:

    def test_lookup_recorded(self) -> None:
        cs = ConstraintSystem()
        a = cs.add_advice()
        t = cs.add_table()
        s = cs.add_complex_selector()
        lookup = cs.create_lookup("range", lambda vc: [(vc.query_advice(a), t)], selector=s)
        assert lookup.inputs == (Query(a),)
        assert lookup.table_columns == (t,)
        assert lookup.selectors == frozenset({s})
        assert cs.lookups == [lookup]

    def test_simple_selector_rejected(self) -> None:
        cs = ConstraintSystem()
        a = cs.add_advice()
        t = cs.add_table()
        s = cs.add_selector()
        with pytest.raises(ConfigurationError):
            cs.create_lookup("bad", lambda vc: [(vc.query_selector(s) * vc.query_advice(a), t)])

    def test_target_must_be_table(self) -> None:
        cs = ConstraintSystem()
        a, b = cs.add_advice(), cs.add_advice()
        with pytest.raises(ConfigurationError):
            cs.create_lookup("bad", lambda vc: [(vc.query_advice(a), b)])

    def test_empty_lookup_rejected(self) -> None:
        cs = ConstraintSystem()
        with pytest.raises(ConfigurationError):
            cs.create_lookup("empty", lambda vc: [])


class TestPermutation:

    def test_enable_equality(self) -> None:
        cs = ConstraintSystem()
        a, b = cs.add_advice(), cs.add_advice()
        cs.enable_equality(a)
        cs.enable_equality(a)
        assert cs.is_permuted(a)
        assert not cs.is_permuted(b)
        assert cs.permutation_columns == [a]

    def test_enable_constant_also_enables_equality(self) -> None:
        cs = ConstraintSystem()
        f = cs.add_fixed()
        cs.enable_constant(f)
        assert cs.constant_columns == [f]
        assert cs.is_permuted(f)

    def test_enable_constant_requires_fixed(self) -> None:
        cs = ConstraintSystem()
        with pytest.raises(ConfigurationError):
            cs.enable_constant(cs.add_advice())

    def test_table_columns_cannot_be_permuted(self) -> None:
        cs = ConstraintSystem()
        with pytest.raises(ConfigurationError):
            cs.enable_equality(cs.add_table())


def test_frozen_system_rejects_declarations() -> None:
    cs = ConstraintSystem()
    a = cs.add_advice()
    cs.freeze()
    with pytest.raises(ConfigurationError):
        cs.add_advice()
    with pytest.raises(ConfigurationError):
        cs.create_gate("late", lambda vc: [vc.query_advice(a)])
    with pytest.raises(ConfigurationError):
        cs.enable_equality(a)


def test_usable_rows() -> None:
    assert ConstraintSystem().usable_rows(3) == range(8)
