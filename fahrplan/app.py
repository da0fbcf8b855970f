from __future__ import annotations

import argparse
import logging
import os
import select
import signal
import sys
import termios
import tty
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

import requests
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from fahrplan import __version__
from fahrplan.errors import EmptyInputError, InputDataError
from fahrplan.grid import Grid, TrackSpec
from fahrplan.menu import Menu, MenuItem
from fahrplan.nearest import nearest_index
from fahrplan.renderer import DiffRenderer
from fahrplan.schedule import (
    DEFAULT_CACHE,
    DEFAULT_URL,
    Schedule,
    TalkRecord,
    build_menu_items,
    download_schedule,
    load_schedule,
    resolve_schedule_path,
)
from fahrplan.scrollable import Scrollable
from fahrplan.talk import (
    detail_status_text,
    list_status_text,
    menu_item_renderer,
    render_status_bar,
    render_talk,
)

logger = logging.getLogger(__name__)

STATUS_ROW = 0
BODY_ROW = 1
LIST_COL = 0
DETAIL_COL = 1

GRID_ROWS = (
    TrackSpec(size=2),
    TrackSpec(),
)
GRID_COLS = (
    TrackSpec(padding=(0, 1, 0, 0)),
    TrackSpec(padding=(0, 0, 0, 1)),
)

IDLE_TIMEOUT = 0.2
ESCAPE_SEQUENCES = {
    "[A": "UP",
    "OA": "UP",
    "[B": "DOWN",
    "OB": "DOWN",
    "[C": "RIGHT",
    "OC": "RIGHT",
    "[D": "LEFT",
    "OD": "LEFT",
    "[Z": "SHTAB",
    "[5~": "PGUP",
    "[6~": "PGDN",
}
KEY_ALIASES = {
    "k": "UP",
    "j": "DOWN",
    "h": "LEFT",
    "l": "RIGHT",
    "q": "QUIT",
    "SHTAB": "TAB",
}


class Focus(Enum):
    LIST = "list"
    DETAIL = "detail"


@dataclass
class AppConfig:
    url: str
    cache: Path
    schedule_path: Path | None
    update: bool
    log_file: Path | None
    timeout: int
    debug: bool


@dataclass
class AppState:
    schedule: Schedule
    console: Console
    grid: Grid
    menu: Menu
    focus: Focus = Focus.LIST
    talk: TalkRecord | None = None
    viewer: Scrollable | None = None
    quit_requested: bool = False


def initial_selection(items: list[MenuItem], now: datetime | None = None) -> int:
    candidates = [
        (index, item.sort_key)
        for index, item in enumerate(items)
        if not item.separator and item.sort_key is not None
    ]
    try:
        picked = nearest_index([sort_key for _, sort_key in candidates], now)
    except EmptyInputError:
        logger.info("no dated talks, starting at the top of the list")
        return 0
    return candidates[picked][0]


def build_state(
    schedule: Schedule,
    console: Console,
    width: int,
    height: int,
    now: datetime | None = None,
) -> AppState:
    grid = Grid(GRID_ROWS, GRID_COLS, console=console, width=width, height=height)
    items = build_menu_items(schedule)
    menu = Menu(
        items,
        height=grid.cell_at(BODY_ROW, LIST_COL).inner_height,
        render=menu_item_renderer(items),
    )
    menu.select(initial_selection(items, now))
    state = AppState(schedule=schedule, console=console, grid=grid, menu=menu)
    grid.update(BODY_ROW, LIST_COL, menu.render())
    refresh_status(state)
    logger.info("loaded %d list entries over %d days", len(items), len(schedule.days))
    return state


def refresh_status(state: AppState) -> bool:
    grid = state.grid
    list_cell = grid.cell_at(STATUS_ROW, LIST_COL)
    detail_cell = grid.cell_at(STATUS_ROW, DETAIL_COL)
    pct = state.viewer.pct() if state.viewer is not None else None
    grid.update(
        STATUS_ROW,
        LIST_COL,
        render_status_bar(
            list_status_text(state.schedule.acronym),
            state.focus is Focus.LIST,
            list_cell.inner_width,
        ),
    )
    grid.update(
        STATUS_ROW,
        DETAIL_COL,
        render_status_bar(detail_status_text(pct), state.focus is Focus.DETAIL, detail_cell.inner_width),
    )
    return True


def _show_talk(state: AppState, talk: TalkRecord, offset: int = 0) -> None:
    cell = state.grid.cell_at(BODY_ROW, DETAIL_COL)
    body = render_talk(talk, cell.inner_width, state.console)
    state.talk = talk
    state.viewer = Scrollable(body, cell.inner_height, offset=offset)
    state.grid.update(BODY_ROW, DETAIL_COL, state.viewer.render())
    refresh_status(state)


def open_selected(state: AppState) -> bool:
    item = state.menu.selected()
    if item is None or item.talk is None:
        return False
    logger.info("opening talk %r", item.talk.title)
    _show_talk(state, item.talk)
    return True


def set_focus(state: AppState, focus: Focus) -> bool:
    changed = state.focus is not focus
    state.focus = focus
    refresh_status(state)
    return changed


def _move_list(state: AppState, step: int) -> bool:
    changed = state.menu.down() if step > 0 else state.menu.up()
    if changed:
        state.grid.update(BODY_ROW, LIST_COL, state.menu.render())
    return changed


def _scroll_viewer(state: AppState, key: str) -> bool:
    viewer = state.viewer
    if viewer is None:
        return False
    if key == "UP":
        changed = viewer.up()
    elif key == "DOWN":
        changed = viewer.down()
    elif key == "PGUP":
        changed = viewer.page_up()
    else:
        changed = viewer.page_down()
    if changed:
        state.grid.update(BODY_ROW, DETAIL_COL, viewer.render())
        refresh_status(state)
    return changed


def handle_key(state: AppState, key: str) -> bool:
    key = KEY_ALIASES.get(key, key)
    if key == "QUIT":
        state.quit_requested = True
        return False
    if key == "LEFT":
        return set_focus(state, Focus.LIST)
    if key == "RIGHT":
        return set_focus(state, Focus.DETAIL)
    if key == "TAB":
        return set_focus(state, Focus.DETAIL if state.focus is Focus.LIST else Focus.LIST)
    if key == "ENTER":
        return open_selected(state)
    if key in {"UP", "DOWN"} and state.focus is Focus.LIST:
        return _move_list(state, 1 if key == "DOWN" else -1)
    if key in {"UP", "DOWN", "PGUP", "PGDN"} and state.focus is Focus.DETAIL:
        return _scroll_viewer(state, key)
    return False


def handle_resize(state: AppState, width: int, height: int) -> None:
    logger.debug("resize to %dx%d", width, height)
    state.grid.resize(width, height)
    state.menu.resize(state.grid.cell_at(BODY_ROW, LIST_COL).inner_height)
    state.grid.update(BODY_ROW, LIST_COL, state.menu.render())
    if state.talk is not None and state.viewer is not None:
        _show_talk(state, state.talk, offset=state.viewer.offset)
    else:
        refresh_status(state)


def read_key(fd: int, timeout: float) -> str | None:
    ready, _, _ = select.select([fd], [], [], timeout)
    if not ready:
        return None
    data = os.read(fd, 1)
    if not data:
        return None
    key = data.decode("utf-8", errors="ignore")
    if not key:
        return None
    if key in {"\r", "\n"}:
        return "ENTER"
    if key == "\t":
        return "TAB"
    if key == "\x03":
        return "QUIT"
    if key == "\x1b":
        sequence = ""
        while select.select([fd], [], [], 0.001)[0]:
            sequence += os.read(fd, 1).decode("utf-8", errors="ignore")
            if not sequence:
                continue
            if sequence[-1].isalpha() or sequence.endswith("~") or len(sequence) >= 6:
                break
        return ESCAPE_SEQUENCES.get(sequence, "ESC")
    return key


def run(schedule: Schedule, console: Console) -> int:
    if not sys.stdin.isatty() or not console.is_terminal:
        console.print("[red]fahrplan needs an interactive terminal.[/red]")
        return 1

    fd = sys.stdin.fileno()
    old_settings = termios.tcgetattr(fd)
    resized = False

    def on_resize(signum: int, frame: object) -> None:
        nonlocal resized
        resized = True

    previous_handler = signal.getsignal(signal.SIGWINCH)
    try:
        signal.signal(signal.SIGWINCH, on_resize)
        size = console.size
        state = build_state(schedule, console, size.width, size.height)
        renderer = DiffRenderer(state.grid, console.file)
        tty.setcbreak(fd)
        with console.screen(hide_cursor=True):
            renderer.flush()
            while not state.quit_requested:
                key = read_key(fd, IDLE_TIMEOUT)
                size = console.size
                if resized or (size.width, size.height) != (state.grid.width, state.grid.height):
                    resized = False
                    handle_resize(state, size.width, size.height)
                    renderer.force()
                if key is not None and handle_key(state, key):
                    renderer.request()
                renderer.flush()
    finally:
        try:
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
        finally:
            signal.signal(signal.SIGWINCH, previous_handler)
    logger.info("quit requested")
    return 0


def _env_path(name: str, default: Path | None) -> Path | None:
    raw = os.getenv(name, "").strip()
    return Path(raw).expanduser() if raw else default


def parse_args(argv: list[str]) -> AppConfig:
    parser = argparse.ArgumentParser(
        prog="fahrplan",
        description="Browse a conference schedule in the terminal.",
    )
    parser.add_argument("--version", "-v", action="version", version=__version__)
    parser.add_argument(
        "--update",
        "-u",
        action="store_true",
        help="Update schedule with new changes",
    )
    parser.add_argument("--url", default=os.getenv("FAHRPLAN_URL", DEFAULT_URL))
    parser.add_argument("--cache", type=Path, default=_env_path("FAHRPLAN_CACHE", DEFAULT_CACHE))
    parser.add_argument(
        "--schedule",
        type=Path,
        default=None,
        help="Read this schedule.xml instead of the cached one.",
    )
    parser.add_argument("--log-file", type=Path, default=_env_path("FAHRPLAN_LOG", None))
    parser.add_argument("--timeout", type=int, default=30)
    parser.add_argument("--debug", action="store_true")

    args = parser.parse_args(argv)

    if args.timeout < 1:
        raise ValueError("--timeout must be >= 1")
    if not args.url.strip():
        raise ValueError("--url must not be empty")
    if args.update and args.schedule is not None:
        raise ValueError("--update and --schedule cannot be combined")

    cache = args.cache.expanduser()
    return AppConfig(
        url=args.url.strip(),
        cache=cache,
        schedule_path=args.schedule.expanduser() if args.schedule else None,
        update=args.update,
        log_file=args.log_file.expanduser() if args.log_file else cache.parent / "fahrplan.log",
        timeout=args.timeout,
        debug=args.debug,
    )


def configure_logging(log_file: Path | None, debug: bool = False) -> None:
    package_logger = logging.getLogger("fahrplan")
    package_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if log_file is None:
        package_logger.addHandler(logging.NullHandler())
        return
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    package_logger.addHandler(handler)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    console = Console()
    try:
        config = parse_args(argv if argv is not None else sys.argv[1:])
    except ValueError as exc:
        console.print(f"[red]Configuration error:[/red] {escape(str(exc))}")
        return 2

    try:
        configure_logging(config.log_file, config.debug)
    except OSError as exc:
        console.print(f"[yellow]Logging disabled:[/yellow] {escape(str(exc))}")
        configure_logging(None)

    if config.update:
        console.print(f"Downloading schedule to {escape(str(config.cache))}...")
        try:
            download_schedule(config.url, config.cache, timeout=config.timeout)
        except requests.RequestException as exc:
            logger.error("download failed: %s", exc)
            console.print(f"[red]Download failed:[/red] {escape(str(exc))}")
            return 1
        except InputDataError as exc:
            logger.error("downloaded schedule rejected: %s", exc)
            console.print(f"[red]Downloaded schedule is malformed:[/red] {escape(str(exc))}")
            return 1
        except OSError as exc:
            console.print(f"[red]Could not write schedule cache:[/red] {escape(str(exc))}")
            return 1

    path = config.schedule_path or resolve_schedule_path(config.cache)
    console.print(f"Schedule cache: {escape(str(path))}")
    try:
        schedule = load_schedule(path)
    except InputDataError as exc:
        logger.error("schedule load failed: %s", exc)
        console.print(f"[red]Could not parse conference schedule:[/red] {escape(str(exc))}")
        console.print('Run "fahrplan --update" to re-download the schedule')
        return 1

    try:
        return run(schedule, console)
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
