from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from rich.console import Console
from rich.text import Text

from fahrplan.errors import OutOfBoundsError

Padding = tuple[int, int, int, int]
NO_PADDING: Padding = (0, 0, 0, 0)


@dataclass(frozen=True)
class TrackSpec:
    """Size and policy of one grid row or column.

    ``size=None`` takes an even share of whatever the sized tracks leave.
    Padding is ``(top, right, bottom, left)``.
    """

    size: int | None = None
    padding: Padding = NO_PADDING
    wrap: bool = False


@dataclass
class Cell:
    row: int
    col: int
    x: int
    y: int
    width: int
    height: int
    padding: Padding
    wrap: bool
    content: str | Text = ""

    @property
    def inner_width(self) -> int:
        return max(0, self.width - self.padding[1] - self.padding[3])

    @property
    def inner_height(self) -> int:
        return max(0, self.height - self.padding[0] - self.padding[2])


def distribute(specs: Sequence[TrackSpec], total: int) -> list[int]:
    remaining = max(0, total)
    sizes: list[int | None] = []
    for spec in specs:
        if spec.size is None:
            sizes.append(None)
            continue
        size = max(0, min(spec.size, remaining))
        sizes.append(size)
        remaining -= size

    unsized = [index for index, size in enumerate(sizes) if size is None]
    if unsized:
        share, extra = divmod(remaining, len(unsized))
        for position, index in enumerate(unsized):
            sizes[index] = share + (1 if position < extra else 0)
    return [size or 0 for size in sizes]


def _merge_padding(first: Padding, second: Padding) -> Padding:
    top, right, bottom, left = (max(0, a) + max(0, b) for a, b in zip(first, second))
    return (top, right, bottom, left)


class Grid:
    """A fixed matrix of independently updatable cells sized to the terminal."""

    def __init__(
        self,
        rows: Sequence[TrackSpec],
        cols: Sequence[TrackSpec],
        console: Console | None = None,
        width: int = 80,
        height: int = 24,
    ) -> None:
        self.console = console or Console()
        self.width = max(0, width)
        self.height = max(0, height)
        self.rows: list[TrackSpec] = []
        self.cols: list[TrackSpec] = []
        self.dirty = True
        self._cells: dict[tuple[int, int], Cell] = {}
        self.configure(rows, cols)

    def configure(self, rows: Sequence[TrackSpec], cols: Sequence[TrackSpec]) -> None:
        if not rows or not cols:
            raise ValueError("a grid needs at least one row and one column")
        self.rows = list(rows)
        self.cols = list(cols)
        self.resize(self.width, self.height)

    def resize(self, width: int, height: int) -> None:
        self.width = max(0, width)
        self.height = max(0, height)
        heights = distribute(self.rows, self.height)
        widths = distribute(self.cols, self.width)

        cells: dict[tuple[int, int], Cell] = {}
        y = 0
        for row_index, row in enumerate(self.rows):
            x = 0
            for col_index, col in enumerate(self.cols):
                previous = self._cells.get((row_index, col_index))
                cells[(row_index, col_index)] = Cell(
                    row=row_index,
                    col=col_index,
                    x=x,
                    y=y,
                    width=widths[col_index],
                    height=heights[row_index],
                    padding=_merge_padding(row.padding, col.padding),
                    wrap=row.wrap or col.wrap,
                    content=previous.content if previous else "",
                )
                x += widths[col_index]
            y += heights[row_index]
        self._cells = cells
        self.dirty = True

    def cell_at(self, row: int, col: int) -> Cell:
        if not (0 <= row < len(self.rows) and 0 <= col < len(self.cols)):
            raise OutOfBoundsError(
                f"cell ({row}, {col}) is outside the {len(self.rows)}x{len(self.cols)} grid"
            )
        return self._cells[(row, col)]

    def update(self, row: int, col: int, content: str | Text) -> bool:
        self.cell_at(row, col).content = content
        self.dirty = True
        return True

    def cell_lines(self, cell: Cell) -> list[Text]:
        top, right, _bottom, left = cell.padding
        inner_width = cell.inner_width
        inner_height = cell.inner_height

        content = cell.content if isinstance(cell.content, Text) else Text(cell.content)
        body: list[Text] = []
        if inner_width > 0 and inner_height > 0:
            if cell.wrap:
                body = list(content.wrap(self.console, inner_width))
            else:
                body = list(content.split("\n", allow_blank=True))
                for line in body:
                    line.expand_tabs()
        body = body[:inner_height]

        lines = [Text(" " * cell.width) for _ in range(min(top, cell.height))]
        for line in body:
            line = line.copy()
            line.truncate(inner_width, overflow="crop", pad=True)
            framed = Text(" " * left) + line + Text(" " * right)
            framed.truncate(cell.width, overflow="crop", pad=True)
            lines.append(framed)
        while len(lines) < cell.height:
            lines.append(Text(" " * cell.width))
        return lines[: cell.height]

    def render_text_lines(self) -> list[Text]:
        frame: list[Text] = []
        for row_index in range(len(self.rows)):
            columns = [
                self.cell_lines(self.cell_at(row_index, col_index))
                for col_index in range(len(self.cols))
            ]
            height = self.cell_at(row_index, 0).height
            for line_index in range(height):
                frame.append(Text("").join(column[line_index] for column in columns))
        return frame

    def to_ansi(self, line: Text) -> str:
        with self.console.capture() as capture:
            self.console.print(line, end="", soft_wrap=True)
        return capture.get()

    def render_lines(self) -> list[str]:
        return [self.to_ansi(line) for line in self.render_text_lines()]

    def render(self) -> str:
        return "\n".join(self.render_lines())
