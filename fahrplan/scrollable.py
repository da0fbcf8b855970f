from __future__ import annotations

from rich.text import Text


class Scrollable:
    """A fixed block of pre-wrapped text seen through a moving viewport."""

    def __init__(self, text: str | Text, height: int, offset: int = 0) -> None:
        content = text if isinstance(text, Text) else Text(text)
        self.lines: tuple[Text, ...] = tuple(content.split("\n", allow_blank=True))
        self.height = max(0, height)
        self.offset = max(0, min(offset, self.max_offset))

    @property
    def max_offset(self) -> int:
        return max(0, len(self.lines) - self.height)

    def _scroll_to(self, offset: int) -> bool:
        target = max(0, min(offset, self.max_offset))
        if target == self.offset:
            return False
        self.offset = target
        return True

    def up(self) -> bool:
        return self._scroll_to(self.offset - 1)

    def down(self) -> bool:
        return self._scroll_to(self.offset + 1)

    def page_up(self) -> bool:
        return self._scroll_to(self.offset - max(1, self.height))

    def page_down(self) -> bool:
        return self._scroll_to(self.offset + max(1, self.height))

    def pct(self) -> float:
        if self.max_offset == 0:
            return 0.0
        return self.offset / self.max_offset

    def render(self) -> Text:
        return Text("\n").join(self.lines[self.offset : self.offset + self.height])
