from __future__ import annotations

import logging
from typing import TextIO

from rich.control import Control, ControlType

from fahrplan.grid import Grid

logger = logging.getLogger(__name__)

ERASE_TO_END = Control((ControlType.ERASE_IN_LINE, 0))
ERASE_LINE = Control((ControlType.ERASE_IN_LINE, 2))


class DiffRenderer:
    """Paints the grid, writing only the lines that changed since the last frame.

    Requests are coalesced: any number of ``request()`` calls between two
    ``flush()`` calls produce a single paint of the latest grid state.
    """

    def __init__(self, grid: Grid, stream: TextIO) -> None:
        self.grid = grid
        self.stream = stream
        self.previous: list[str] = []
        self._requested = False
        self._full = True

    @property
    def pending(self) -> bool:
        return self._requested or self._full or self.grid.dirty

    def request(self) -> None:
        self._requested = True

    def force(self) -> None:
        self._requested = True
        self._full = True

    def flush(self) -> int:
        if not self.pending:
            return 0

        frame = self.grid.render_lines()
        chunks: list[str] = []
        written = 0
        if self._full:
            chunks.append(str(Control.clear()))
            for index, line in enumerate(frame):
                chunks.append(f"{Control.move_to(0, index)}{line}")
            written = len(frame)
        else:
            for index, line in enumerate(frame):
                if index < len(self.previous) and self.previous[index] == line:
                    continue
                chunks.append(f"{Control.move_to(0, index)}{line}{ERASE_TO_END}")
                written += 1
            for index in range(len(frame), len(self.previous)):
                chunks.append(f"{Control.move_to(0, index)}{ERASE_LINE}")

        if chunks:
            self.stream.write("".join(chunks))
            self.stream.flush()
        logger.debug("painted %d of %d lines (full=%s)", written, len(frame), self._full)

        self.previous = frame
        self._requested = False
        self._full = False
        self.grid.dirty = False
        return written
