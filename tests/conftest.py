"""Pytest configuration and shared fixtures for the fahrplan tests."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

import pytest
from rich.console import Console

from fahrplan.schedule import Schedule, parse_schedule

NOW = datetime(2026, 10, 19, 10, 30, tzinfo=timezone.utc)

ANSI_TOKEN_RE = re.compile(r"(\x1b\[[0-9;]*[A-Za-z])")


def event_xml(
    title: str,
    date: str,
    start: str,
    room: str = "Saal 1",
    language: str = "en",
    duration: str = "01:00",
    subtitle: str = "",
    abstract: str = "An abstract.",
    description: str = "",
) -> str:
    return f"""
      <event>
        <date>{date}</date>
        <start>{start}</start>
        <duration>{duration}</duration>
        <room>{room}</room>
        <title>{title}</title>
        <subtitle>{subtitle}</subtitle>
        <language>{language}</language>
        <abstract>{abstract}</abstract>
        <description>{description}</description>
      </event>"""


def schedule_xml(days: list[dict[str, list[str]]], acronym: str = "test") -> bytes:
    """Build schedule XML; each day maps room names to event snippets."""
    day_nodes = []
    for index, rooms in enumerate(days, start=1):
        room_nodes = "".join(
            f'<room name="{name}">{"".join(events)}</room>' for name, events in rooms.items()
        )
        day_nodes.append(f'<day index="{index}" date="2026-10-{18 + index}">{room_nodes}</day>')
    return (
        "<schedule><conference>"
        f"<acronym>{acronym}</acronym><title>Test Conference</title>"
        f"</conference>{''.join(day_nodes)}</schedule>"
    ).encode("utf-8")


def make_console(width: int = 80, height: int = 24) -> Console:
    return Console(
        width=width,
        height=height,
        color_system=None,
        force_terminal=False,
        legacy_windows=False,
    )


def apply_to_screen(screen: list[str], output: str, width: int, height: int) -> list[str]:
    """Replay cursor moves, erases and text from ``output`` onto ``screen``."""
    rows = list(screen) + [""] * max(0, height - len(screen))
    row, col = 0, 0
    for token in ANSI_TOKEN_RE.split(output):
        if not token:
            continue
        if token.startswith("\x1b["):
            command, params = token[-1], token[2:-1]
            if command == "H":
                row_text, col_text = params.split(";")
                row, col = int(row_text) - 1, int(col_text) - 1
            elif command == "J":
                rows = [""] * height
            elif command == "K":
                rows[row] = "" if params == "2" else rows[row][:col]
            continue
        line = rows[row].ljust(col)
        rows[row] = line[:col] + token + line[col + len(token) :]
        col += len(token)
    return [line[:width] for line in rows[:height]]


@pytest.fixture
def console() -> Console:
    return make_console()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def two_day_schedule() -> Schedule:
    """Day 1 has talks at 09:00 and 11:00, day 2 one talk at 09:00."""
    return parse_schedule(
        schedule_xml(
            [
                {
                    "Saal 1": [
                        event_xml("Late Morning", "2026-10-19T11:00:00+00:00", "11:00"),
                    ],
                    "Saal 2": [
                        event_xml(
                            "Early Bird",
                            "2026-10-19T09:00:00+00:00",
                            "09:00",
                            room="Saal 2",
                            language="de",
                        ),
                    ],
                },
                {
                    "Saal 1": [
                        event_xml("Next Day", "2026-10-20T09:00:00+00:00", "09:00"),
                    ],
                },
            ]
        )
    )


@pytest.fixture
def long_talk_fields() -> dict[str, Any]:
    paragraph = " ".join(f"word{index}" for index in range(400))
    return {
        "abstract": paragraph,
        "description": paragraph,
        "subtitle": "A subtitle",
    }
