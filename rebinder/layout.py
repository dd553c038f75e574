from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math


Vec2 = tuple[float, float]

MAX_COLUMNS = 3
MIN_ROWS = 7


@dataclass(frozen=True)
class LayoutSettings:
    max_columns: int = MAX_COLUMNS
    min_rows: int = MIN_ROWS
    table_size: Vec2 = (296.0, 126.0)
    table_anchor: Vec2 = (0.0, -32.0)
    button_padding: Vec2 = (2.0, 1.0)
    compact_threshold: tuple[int, int] = (3, 10)
    compact_text_scale: Vec2 = (0.75, 0.75)

    def __post_init__(self) -> None:
        if self.max_columns < 1 or self.min_rows < 1:
            raise ValueError(f"invalid grid bounds max_columns={self.max_columns} min_rows={self.min_rows}")


@dataclass(frozen=True)
class GridShape:
    columns: int
    rows: int

    @property
    def cells(self) -> int:
        return self.columns * self.rows


@dataclass(frozen=True)
class Placement:
    index: int
    column: int
    row: int
    anchor: Vec2
    size: Vec2
    text_scale: Vec2


@dataclass(frozen=True)
class Neighbors:
    up: int
    down: int
    left: int
    right: int

    def get(self, direction: str) -> int:
        return getattr(self, direction)


NavigationGraph = dict[int, Neighbors]


@dataclass(frozen=True)
class Layout:
    shape: GridShape | None
    placements: tuple[Placement, ...] = ()
    navigation: NavigationGraph = field(default_factory=dict)
    table_size: Vec2 = (0.0, 0.0)
    table_anchor: Vec2 = (0.0, 0.0)

    @property
    def is_empty(self) -> bool:
        return self.shape is None

    def __len__(self) -> int:
        return len(self.placements)

    def index_at(self, column: int, row: int) -> int | None:
        if self.shape is None or not 0 <= column < self.shape.columns or not 0 <= row < self.shape.rows:
            return None
        index = column * self.shape.rows + row
        return index if index < len(self.placements) else None


def grid_shape(count: int, max_columns: int = MAX_COLUMNS, min_rows: int = MIN_ROWS) -> GridShape:
    columns = min(max_columns, math.ceil(count / min_rows))
    rows = max(min_rows, math.ceil(count / max_columns))
    return GridShape(columns, rows)


def text_scale_for(shape: GridShape, settings: LayoutSettings) -> Vec2:
    sx, sy = 1.0, 1.0
    if shape.columns >= settings.compact_threshold[0]:
        sx = settings.compact_text_scale[0]
    if shape.rows >= settings.compact_threshold[1]:
        sy = settings.compact_text_scale[1]
    return sx, sy


class LayoutEngine:
    def __init__(self, settings: LayoutSettings | None = None, log: logging.Logger | None = None) -> None:
        self.settings = settings or LayoutSettings()
        self.log = log or logging.getLogger("rebinder.layout")
        self._cached: tuple[int, Layout] | None = None

    def compute(self, count: int) -> Layout:
        count = max(int(count), 0)
        if self._cached is not None and self._cached[0] == count:
            return self._cached[1]
        layout = self._build(count)
        self._cached = (count, layout)
        self.log.info(
            "layout_computed count=%s columns=%s rows=%s",
            count,
            layout.shape.columns if layout.shape else 0,
            layout.shape.rows if layout.shape else 0,
        )
        return layout

    def invalidate(self) -> None:
        self._cached = None

    def _build(self, count: int) -> Layout:
        if count == 0:
            return Layout(shape=None)

        s = self.settings
        shape = grid_shape(count, s.max_columns, s.min_rows)
        cell_w = s.table_size[0] / shape.columns
        cell_h = s.table_size[1] / shape.rows
        size = (cell_w - 2 * s.button_padding[0], cell_h - 2 * s.button_padding[1])
        scale = text_scale_for(shape, s)

        placements = []
        for i in range(count):
            column, row = divmod(i, shape.rows)
            anchor = (cell_w * (column + 0.5), -cell_h * (row + 0.5))
            placements.append(Placement(i, column, row, anchor, size, scale))

        occupied = {(p.column, p.row): p.index for p in placements}
        navigation = {
            p.index: Neighbors(
                up=self._step(occupied, shape, p.column, p.row, 0, -1),
                down=self._step(occupied, shape, p.column, p.row, 0, +1),
                left=self._step(occupied, shape, p.column, p.row, -1, 0),
                right=self._step(occupied, shape, p.column, p.row, +1, 0),
            )
            for p in placements
        }
        return Layout(
            shape=shape,
            placements=tuple(placements),
            navigation=navigation,
            table_size=s.table_size,
            table_anchor=s.table_anchor,
        )

    @staticmethod
    def _step(occupied: dict[tuple[int, int], int], shape: GridShape, cx: int, cy: int, dx: int, dy: int) -> int:
        # Empty cells are skipped; the start cell is occupied so this always terminates.
        x, y = cx, cy
        while True:
            x = (x + dx) % shape.columns
            y = (y + dy) % shape.rows
            index = occupied.get((x, y))
            if index is not None:
                return index
