from __future__ import annotations

from typing import TYPE_CHECKING

from rich.cells import cell_len
from rich.console import Console
from rich.text import Text

from fahrplan.menu import ItemRenderer, MenuItem

if TYPE_CHECKING:
    from fahrplan.schedule import TalkRecord

SECTION_STYLE = "black on yellow"
STATUS_ACTIVE_STYLE = "black on green"
SEPARATOR_STYLE = "bold"


def format_menu_line(talk: TalkRecord) -> str:
    return f"  {talk.start}: {talk.title} ({talk.room}, {talk.language.upper()})"


def menu_item_renderer(items: list[MenuItem]) -> ItemRenderer:
    max_width = max((cell_len(item.text) for item in items), default=0)

    def render(item: MenuItem, selected: bool) -> Text:
        if item.separator:
            return Text(item.text, style=SEPARATOR_STYLE)
        if not selected:
            return Text(item.text)
        line = Text(item.text, style="reverse")
        line.truncate(max_width, overflow="crop", pad=True)
        return line

    return render


def render_talk(talk: TalkRecord, width: int, console: Console) -> Text:
    body = Text()
    body.append(f"Room:     {talk.room}\n")
    body.append(f"Start:    {talk.start}\n")
    body.append(f"Duration: {talk.duration}\n\n")

    sections = (
        ("Title", talk.title, True),
        ("Subtitle", talk.subtitle, False),
        ("Abstract", talk.abstract, True),
        ("Description", talk.description, False),
    )
    for name, value, always in sections:
        if not value and not always:
            continue
        body.append(f"** {name} **", style=SECTION_STYLE)
        body.append(f"\n{value}\n")
    body.rstrip()

    if width <= 0:
        return body
    return Text("\n").join(body.wrap(console, width))


def render_status_bar(text: str | Text, active: bool, width: int) -> Text:
    bar = text.copy() if isinstance(text, Text) else Text(text)
    if active:
        bar.style = STATUS_ACTIVE_STYLE
        bar.truncate(max(0, width), overflow="crop", pad=True)
    return bar


def list_status_text(acronym: str) -> Text:
    label = f"{acronym} schedule" if acronym else "schedule"
    return Text.assemble(
        f" {label} - ",
        ("enter:", "bold"),
        " select, ",
        ("tab:", "bold"),
        " switch column",
    )


def detail_status_text(pct: float | None) -> Text:
    if pct is None:
        return Text("")
    return Text(f"Scroll: {round(pct * 100)}%")
