from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from rich.text import Text

if TYPE_CHECKING:
    from fahrplan.schedule import TalkRecord


@dataclass(frozen=True)
class MenuItem:
    text: str
    separator: bool = False
    talk: TalkRecord | None = None
    sort_key: datetime | None = None


ItemRenderer = Callable[[MenuItem, bool], str | Text]


def plain_item(item: MenuItem, selected: bool) -> Text:
    return Text(item.text, style="reverse" if selected else "")


class Menu:
    """A vertically scrolling list whose separators can never be selected.

    Every mutator returns whether the selection or the viewport moved, so
    the caller decides when to repaint.
    """

    def __init__(
        self,
        items: Sequence[MenuItem],
        height: int,
        render: ItemRenderer | None = None,
    ) -> None:
        self.items: tuple[MenuItem, ...] = tuple(items)
        self.height = max(0, height)
        self.item_renderer = render or plain_item
        self.top = 0
        self.current = 0
        selectable = self._selectable_indexes()
        if selectable:
            self.current = selectable[0]
            self._scroll_into_view()

    def _selectable_indexes(self) -> list[int]:
        return [index for index, item in enumerate(self.items) if not item.separator]

    @property
    def has_selectable(self) -> bool:
        return any(not item.separator for item in self.items)

    def selected(self) -> MenuItem | None:
        if not self.has_selectable:
            return None
        return self.items[self.current]

    def _scroll_into_view(self) -> bool:
        previous_top = self.top
        if self.height <= 0:
            self.top = self.current
        elif self.current < self.top:
            self.top = self.current
        elif self.current >= self.top + self.height:
            self.top = self.current - self.height + 1
        max_top = max(0, len(self.items) - max(self.height, 1))
        self.top = max(0, min(self.top, max_top))
        return self.top != previous_top

    def _move_to(self, index: int) -> bool:
        moved = index != self.current
        self.current = index
        scrolled = self._scroll_into_view()
        return moved or scrolled

    def select(self, index: int) -> bool:
        selectable = self._selectable_indexes()
        if not selectable:
            return False
        last = selectable[-1]
        target = max(0, index)
        if target >= last:
            target = last
        else:
            while self.items[target].separator:
                target += 1
        return self._move_to(target)

    def up(self) -> bool:
        for index in range(self.current - 1, -1, -1):
            if not self.items[index].separator:
                return self._move_to(index)
        return False

    def down(self) -> bool:
        for index in range(self.current + 1, len(self.items)):
            if not self.items[index].separator:
                return self._move_to(index)
        return False

    def resize(self, height: int) -> bool:
        self.height = max(0, height)
        return self._scroll_into_view()

    def render(self, item_renderer: ItemRenderer | None = None) -> Text:
        renderer = item_renderer or self.item_renderer
        visible = range(self.top, min(len(self.items), self.top + self.height))
        lines: list[Text] = []
        for index in visible:
            rendered = renderer(self.items[index], index == self.current and self.has_selectable)
            lines.append(rendered if isinstance(rendered, Text) else Text(rendered))
        return Text("\n").join(lines)
