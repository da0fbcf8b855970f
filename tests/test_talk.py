"""Tests for talk list lines, detail text and status bars."""

from __future__ import annotations

from rich.cells import cell_len
from rich.console import Console

from fahrplan.menu import MenuItem
from fahrplan.schedule import TalkRecord
from fahrplan.talk import (
    SECTION_STYLE,
    STATUS_ACTIVE_STYLE,
    detail_status_text,
    format_menu_line,
    list_status_text,
    menu_item_renderer,
    render_status_bar,
    render_talk,
)


def make_talk(**overrides: object) -> TalkRecord:
    fields = {
        "room": "Saal Adams",
        "start": "11:00",
        "duration": "00:30",
        "date": None,
        "language": "en",
        "title": "Opening",
        "subtitle": "",
        "abstract": "Welcome.",
        "description": "",
    }
    fields.update(overrides)
    return TalkRecord(**fields)


class TestMenuLines:
    def test_format(self) -> None:
        assert format_menu_line(make_talk()) == "  11:00: Opening (Saal Adams, EN)"

    def test_selected_line_is_padded_to_longest(self) -> None:
        items = [MenuItem("Day 1", separator=True), MenuItem("short"), MenuItem("a much longer line")]
        render = menu_item_renderer(items)
        selected = render(items[1], True)
        assert selected.plain == "short".ljust(len("a much longer line"))
        assert "reverse" in str(selected.style)
        assert render(items[1], False).plain == "short"

    def test_separator_line(self) -> None:
        items = [MenuItem("Day 1", separator=True)]
        assert menu_item_renderer(items)(items[0], False).plain == "Day 1"


class TestRenderTalk:
    def test_omits_empty_optional_sections(self, console: Console) -> None:
        text = render_talk(make_talk(), 60, console).plain
        assert "Room:     Saal Adams" in text
        assert "Start:    11:00" in text
        assert "Duration: 00:30" in text
        assert "** Title **" in text
        assert "** Abstract **" in text
        assert "Subtitle" not in text
        assert "Description" not in text

    def test_all_sections_in_order(self, console: Console) -> None:
        talk = make_talk(subtitle="The sub", description="Longer words.")
        text = render_talk(talk, 60, console).plain
        markers = ["** Title **", "** Subtitle **", "** Abstract **", "** Description **"]
        positions = [text.index(marker) for marker in markers]
        assert positions == sorted(positions)
        assert text.index("The sub") > text.index("** Subtitle **")

    def test_sections_follow_each_other_without_gaps(self, console: Console) -> None:
        talk = make_talk(subtitle="The sub", description="Longer words.")
        lines = render_talk(talk, 60, console).plain.split("\n")
        assert lines == [
            "Room:     Saal Adams",
            "Start:    11:00",
            "Duration: 00:30",
            "",
            "** Title **",
            "Opening",
            "** Subtitle **",
            "The sub",
            "** Abstract **",
            "Welcome.",
            "** Description **",
            "Longer words.",
        ]

    def test_section_markers_are_styled(self, console: Console) -> None:
        text = render_talk(make_talk(), 60, console)
        styled = [text.plain[span.start : span.end] for span in text.spans if str(span.style) == SECTION_STYLE]
        assert styled == ["** Title **", "** Abstract **"]

    def test_wraps_to_width(self, console: Console) -> None:
        talk = make_talk(abstract=" ".join(["lorem ipsum dolor"] * 30))
        lines = render_talk(talk, 20, console).plain.splitlines()
        assert len(lines) > 10
        assert all(cell_len(line) <= 20 for line in lines)

    def test_missing_title_still_renders(self, console: Console) -> None:
        text = render_talk(make_talk(title="", abstract=""), 40, console).plain
        assert "** Title **" in text
        assert "** Abstract **" in text


class TestStatusBars:
    def test_active_bar_is_highlighted_and_padded(self) -> None:
        bar = render_status_bar("Scroll: 10%", True, 30)
        assert bar.plain == "Scroll: 10%".ljust(30)
        assert str(bar.style) == STATUS_ACTIVE_STYLE

    def test_inactive_bar_is_plain(self) -> None:
        bar = render_status_bar("Scroll: 10%", False, 30)
        assert bar.plain == "Scroll: 10%"
        assert not bar.style

    def test_list_status_names_the_conference(self) -> None:
        assert list_status_text("34c3").plain == " 34c3 schedule - enter: select, tab: switch column"
        assert list_status_text("").plain.startswith(" schedule - ")

    def test_detail_status(self) -> None:
        assert detail_status_text(None).plain == ""
        assert detail_status_text(0.0).plain == "Scroll: 0%"
        assert detail_status_text(0.456).plain == "Scroll: 46%"
        assert detail_status_text(1.0).plain == "Scroll: 100%"
