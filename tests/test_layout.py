from __future__ import annotations

import pytest

from rebinder.layout import GridShape, LayoutEngine, LayoutSettings, Neighbors, grid_shape


def test_fifteen_buttons_fill_three_columns_of_seven() -> None:
    layout = LayoutEngine().compute(15)
    assert layout.shape == GridShape(columns=3, rows=7)
    last = layout.placements[14]
    assert (last.column, last.row) == (2, 0)
    assert [p.index for p in layout.placements if p.column == 2] == [14]
    assert layout.navigation[14].down == 14
    assert layout.navigation[14].up == 14


def test_column_major_placement() -> None:
    layout = LayoutEngine().compute(10)
    assert layout.shape == GridShape(2, 7)
    assert [(p.column, p.row) for p in layout.placements[:3]] == [(0, 0), (0, 1), (0, 2)]
    assert (layout.placements[7].column, layout.placements[7].row) == (1, 0)
    assert layout.index_at(1, 2) == 9
    assert layout.index_at(1, 3) is None
    assert layout.index_at(5, 0) is None


@pytest.mark.parametrize("count", list(range(1, 40)))
def test_grid_invariants(count: int) -> None:
    layout = LayoutEngine().compute(count)
    shape = layout.shape
    assert shape is not None
    assert shape.columns * shape.rows >= count
    assert shape.columns <= 3
    assert shape.rows >= 7
    assert len(layout.placements) == count
    assert set(layout.navigation) == set(range(count))
    for neighbors in layout.navigation.values():
        for target in (neighbors.up, neighbors.down, neighbors.left, neighbors.right):
            assert 0 <= target < count


def test_large_counts_grow_rows() -> None:
    assert grid_shape(30) == GridShape(3, 10)
    assert grid_shape(31) == GridShape(3, 11)


def test_wraparound_navigation_full_grid() -> None:
    layout = LayoutEngine().compute(21)
    assert layout.navigation[0] == Neighbors(up=6, down=1, left=14, right=7)
    assert layout.navigation[20] == Neighbors(up=19, down=14, left=13, right=6)


def test_navigation_skips_empty_cells() -> None:
    layout = LayoutEngine().compute(15)
    # row 3 holds indices 3 and 10; column 2 is empty there
    assert layout.navigation[10].right == 3
    assert layout.navigation[3].left == 10
    # row 0 is full
    assert layout.navigation[0].left == 14
    assert layout.navigation[14].right == 0


def test_single_button_points_to_itself() -> None:
    layout = LayoutEngine().compute(1)
    assert layout.shape == GridShape(1, 7)
    assert layout.navigation[0] == Neighbors(0, 0, 0, 0)


def test_empty_layout() -> None:
    engine = LayoutEngine()
    for count in (0, -3):
        layout = engine.compute(count)
        assert layout.is_empty
        assert layout.shape is None
        assert layout.placements == ()
        assert layout.navigation == {}


def test_anchor_size_and_text_scale() -> None:
    layout = LayoutEngine().compute(15)
    cell_w, cell_h = 296 / 3, 126 / 7
    p = layout.placements[8]
    assert (p.column, p.row) == (1, 1)
    assert p.anchor == pytest.approx((cell_w * 1.5, -cell_h * 1.5))
    assert p.size == pytest.approx((cell_w - 4, cell_h - 2))
    assert p.text_scale == (0.75, 1.0)
    assert layout.table_anchor == (0.0, -32.0)


def test_text_scale_compacts_each_axis_independently() -> None:
    engine = LayoutEngine()
    assert engine.compute(7).placements[0].text_scale == (1.0, 1.0)
    assert engine.compute(30).placements[0].text_scale == (0.75, 0.75)
    narrow = LayoutEngine(LayoutSettings(max_columns=2, min_rows=7))
    assert narrow.compute(20).placements[0].text_scale == (1.0, 0.75)


def test_layout_is_cached_per_count() -> None:
    engine = LayoutEngine()
    first = engine.compute(16)
    assert engine.compute(16) is first
    second = engine.compute(17)
    assert second is not first
    assert engine.compute(16) is not first
    engine.invalidate()
    assert engine.compute(16) is not first


def test_invalid_settings_rejected() -> None:
    with pytest.raises(ValueError):
        LayoutSettings(max_columns=0)
