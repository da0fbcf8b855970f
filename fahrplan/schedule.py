from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import requests
from dateutil import parser as date_parser
from lxml import etree as ET

from fahrplan.errors import InputDataError
from fahrplan.menu import MenuItem
from fahrplan.talk import format_menu_line

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://events.ccc.de/congress/2017/Fahrplan/schedule.xml"
DEFAULT_CACHE = Path.home() / ".fahrplan" / "schedule.xml"
BUNDLED_SCHEDULE = Path(__file__).parent / "data" / "schedule.xml"


@dataclass(frozen=True)
class TalkRecord:
    room: str
    start: str
    duration: str
    date: datetime | None
    language: str
    title: str
    subtitle: str = ""
    abstract: str = ""
    description: str = ""


@dataclass(frozen=True)
class Room:
    name: str
    events: tuple[TalkRecord, ...] = ()


@dataclass(frozen=True)
class Day:
    index: int
    date: str
    start: datetime | None
    end: datetime | None
    rooms: tuple[Room, ...] = ()

    @property
    def talks(self) -> list[TalkRecord]:
        return [talk for room in self.rooms for talk in room.events]


@dataclass(frozen=True)
class Schedule:
    title: str = ""
    acronym: str = ""
    days: tuple[Day, ...] = field(default_factory=tuple)


def parse_date(raw: Any) -> datetime | None:
    if raw is None:
        return None
    try:
        parsed = date_parser.parse(str(raw))
    except (TypeError, ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _text(node: Any, tag: str) -> str:
    return (node.findtext(tag) or "").strip()


def _parse_event(node: Any, room_name: str) -> TalkRecord:
    return TalkRecord(
        room=_text(node, "room") or room_name,
        start=_text(node, "start"),
        duration=_text(node, "duration"),
        date=parse_date(node.findtext("date")),
        language=_text(node, "language"),
        title=_text(node, "title"),
        subtitle=_text(node, "subtitle"),
        abstract=_text(node, "abstract"),
        description=_text(node, "description"),
    )


def _parse_index(raw: str | None, fallback: int) -> int:
    try:
        return int(raw) if raw is not None else fallback
    except ValueError:
        return fallback


def parse_schedule(xml: bytes | str) -> Schedule:
    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    parser = ET.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = ET.fromstring(xml, parser)
    except ET.XMLSyntaxError as exc:
        raise InputDataError(f"malformed schedule XML: {exc}") from exc
    if root is None or root.tag != "schedule":
        raise InputDataError("schedule XML has no <schedule> root element")

    conference = root.find("conference")
    days: list[Day] = []
    for position, day_node in enumerate(root.findall("day"), start=1):
        rooms = tuple(
            Room(
                name=room_node.get("name", ""),
                events=tuple(
                    _parse_event(event_node, room_node.get("name", ""))
                    for event_node in room_node.findall("event")
                ),
            )
            for room_node in day_node.findall("room")
        )
        days.append(
            Day(
                index=_parse_index(day_node.get("index"), position),
                date=day_node.get("date", ""),
                start=parse_date(day_node.get("start")),
                end=parse_date(day_node.get("end")),
                rooms=rooms,
            )
        )

    return Schedule(
        title=_text(conference, "title") if conference is not None else "",
        acronym=_text(conference, "acronym") if conference is not None else "",
        days=tuple(days),
    )


def resolve_schedule_path(cache: Path) -> Path:
    if cache.is_file():
        return cache
    return BUNDLED_SCHEDULE


def load_schedule(path: Path) -> Schedule:
    logger.info("loading schedule from %s", path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise InputDataError(f"cannot read schedule {path}: {exc}") from exc
    return parse_schedule(data)


def download_schedule(url: str, dest: Path, timeout: int = 30) -> Schedule:
    logger.info("downloading schedule %s -> %s", url, dest)
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    schedule = parse_schedule(response.content)

    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_name(dest.name + ".part")
    partial.write_bytes(response.content)
    os.replace(partial, dest)
    return schedule


def _talk_sort_key(talk: TalkRecord) -> tuple[bool, float]:
    if talk.date is None:
        return (True, 0.0)
    return (False, talk.date.timestamp())


def build_menu_items(schedule: Schedule) -> list[MenuItem]:
    items: list[MenuItem] = []
    for position, day in enumerate(schedule.days, start=1):
        items.append(MenuItem(text=f"Day {position}", separator=True))
        for talk in sorted(day.talks, key=_talk_sort_key):
            items.append(MenuItem(text=format_menu_line(talk), talk=talk, sort_key=talk.date))
    return items
