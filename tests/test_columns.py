"""Tests for column and selector allocation."""

from constraints.columns import Column, ColumnKind, ColumnRegistry, Selector


def test_indices_increase_per_kind() -> None:
    """Each kind has its own index space."""
    registry = ColumnRegistry()
    a0 = registry.add_advice()
    f0 = registry.add_fixed()
    a1 = registry.add_advice()
    i0 = registry.add_instance()
    t0 = registry.add_table()

    assert a0 == Column(ColumnKind.ADVICE, 0)
    assert a1 == Column(ColumnKind.ADVICE, 1)
    assert f0 == Column(ColumnKind.FIXED, 0)
    assert i0 == Column(ColumnKind.INSTANCE, 0)
    assert t0 == Column(ColumnKind.TABLE, 0)
    assert registry.count(ColumnKind.ADVICE) == 2
    assert registry.columns(ColumnKind.ADVICE) == [a0, a1]


def test_same_index_different_kind_are_distinct() -> None:
    assert Column(ColumnKind.ADVICE, 0) != Column(ColumnKind.FIXED, 0)
    assert len({Column(ColumnKind.ADVICE, 0), Column(ColumnKind.FIXED, 0)}) == 2


def test_selectors_share_one_index_space() -> None:
    registry = ColumnRegistry()
    s0 = registry.add_selector()
    s1 = registry.add_complex_selector()

    assert s0 == Selector(0, simple=True)
    assert s1 == Selector(1, simple=False)
    assert registry.selectors == [s0, s1]


def test_column_str() -> None:
    assert str(Column(ColumnKind.ADVICE, 3)) == "advice[3]"
    assert str(Selector(2)) == "selector[2]"


def test_columns_sort_by_kind_then_index() -> None:
    columns = [Column(ColumnKind.FIXED, 1), Column(ColumnKind.ADVICE, 2), Column(ColumnKind.ADVICE, 0)]
    assert sorted(columns) == [
        Column(ColumnKind.ADVICE, 0),
        Column(ColumnKind.ADVICE, 2),
        Column(ColumnKind.FIXED, 1),
    ]
