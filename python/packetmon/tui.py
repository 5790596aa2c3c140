"""Curses frontend: keyboard input source and session renderer."""

from __future__ import annotations

import contextlib
import curses
import logging
from typing import Dict, Optional

from .controller import CaptureController, InputEvent
from .errors import TerminalError
from .session import SessionSnapshot, State

logger = logging.getLogger(__name__)

_CTRL_C = 3

KEY_BINDINGS: Dict[int, InputEvent] = {
    curses.KEY_UP: InputEvent.UP,
    curses.KEY_DOWN: InputEvent.DOWN,
    curses.KEY_ENTER: InputEvent.CONFIRM,
    10: InputEvent.CONFIRM,
    13: InputEvent.CONFIRM,
    ord("s"): InputEvent.TOGGLE,
    ord("S"): InputEvent.TOGGLE,
    ord("q"): InputEvent.QUIT,
    ord("Q"): InputEvent.QUIT,
    _CTRL_C: InputEvent.QUIT,
}

_PAIR_TITLE = 1
_PAIR_PACKETS = 2
_PAIR_STATS = 3
_PAIR_HINT = 4
_PAIR_SELECTED = 5
_PAIR_ERROR = 6


def translate_key(key: int) -> Optional[InputEvent]:
    return KEY_BINDINGS.get(key)


class CursesInput:
    """Polls the terminal for one key press with a bounded wait."""

    def __init__(self, window: "curses.window") -> None:
        self._window = window

    def poll(self, timeout: float) -> Optional[InputEvent]:
        self._window.timeout(max(int(timeout * 1000), 0))
        key = self._window.getch()
        if key == -1:
            return None
        return translate_key(key)


class CursesRenderer:
    """Draws a :class:`SessionSnapshot` onto a curses window."""

    def __init__(self, window: "curses.window") -> None:
        self._window = window
        self._colors = False
        with contextlib.suppress(curses.error):
            if curses.has_colors():
                curses.use_default_colors()
                curses.init_pair(_PAIR_TITLE, curses.COLOR_CYAN, -1)
                curses.init_pair(_PAIR_PACKETS, curses.COLOR_WHITE, -1)
                curses.init_pair(_PAIR_STATS, curses.COLOR_GREEN, -1)
                curses.init_pair(_PAIR_HINT, curses.COLOR_YELLOW, -1)
                curses.init_pair(_PAIR_SELECTED, curses.COLOR_BLACK, curses.COLOR_CYAN)
                curses.init_pair(_PAIR_ERROR, curses.COLOR_RED, -1)
                self._colors = True

    def draw(self, snapshot: SessionSnapshot) -> None:
        window = self._window
        window.erase()
        if snapshot.state is State.SELECTING_DEVICE:
            self._draw_device_selection(snapshot)
        else:
            self._draw_capture(snapshot)
        window.refresh()

    # ------------------------------------------------------------------
    def _draw_device_selection(self, snapshot: SessionSnapshot) -> None:
        height, width = self._window.getmaxyx()
        box_width = max(width * 6 // 10, 20)
        left = max((width - box_width) // 2, 0)
        top = max((height - len(snapshot.devices) - 4) // 2, 0)

        self._put(top, left, " Select Network Interface ".center(box_width, "-"), _PAIR_TITLE, curses.A_BOLD)
        for index, name in enumerate(snapshot.devices):
            line = f"{index + 1}: {name}".ljust(box_width)
            if index == snapshot.selected:
                highlight = curses.A_BOLD if self._colors else curses.A_BOLD | curses.A_REVERSE
                self._put(top + 1 + index, left, line, _PAIR_SELECTED, highlight)
            else:
                self._put(top + 1 + index, left, line, _PAIR_PACKETS)

        row = top + 2 + len(snapshot.devices)
        self._put(row, left, "Up/Down: Navigate | Enter: Select | q: Quit".center(box_width), _PAIR_HINT)
        if snapshot.error:
            self._put(row + 1, left, snapshot.error, _PAIR_ERROR, curses.A_BOLD)

    def _draw_capture(self, snapshot: SessionSnapshot) -> None:
        height, width = self._window.getmaxyx()
        self._put(0, 0, " Network Monitor ".center(width - 1, "="), _PAIR_TITLE, curses.A_BOLD)
        self._put(1, 0, f"Packet Sniffer on {snapshot.devices[snapshot.selected]}", _PAIR_TITLE)

        list_top = 3
        list_bottom = height - 3
        self._put(2, 0, "Captured Packets", _PAIR_PACKETS, curses.A_UNDERLINE)
        for offset, line in enumerate(snapshot.packets[: max(list_bottom - list_top, 0)]):
            self._put(list_top + offset, 0, line, _PAIR_PACKETS)

        stats = (
            f"Total Packets: {snapshot.total_packets} | "
            f"Packets/sec: {snapshot.rate:.2f} | "
            f"Running Time: {int(snapshot.elapsed)}s"
        )
        self._put(height - 2, 0, stats, _PAIR_STATS, curses.A_BOLD)

        if snapshot.capturing:
            footer = "Press 's' to stop capturing | 'q' or Ctrl+C to quit"
        else:
            footer = "Press 's' to start capturing | 'q' or Ctrl+C to quit"
        self._put(height - 1, 0, footer.center(width - 1), _PAIR_HINT)

    def _put(self, row: int, col: int, text: str, pair: int, attr: int = 0) -> None:
        height, width = self._window.getmaxyx()
        if row < 0 or row >= height or col >= width:
            return
        if self._colors:
            attr |= curses.color_pair(pair)
        with contextlib.suppress(curses.error):
            self._window.addstr(row, col, text[: max(width - col - 1, 0)], attr)


def run_tui(controller: CaptureController) -> State:
    """Run *controller* inside a curses screen and restore the terminal afterwards."""

    def _main(stdscr: "curses.window") -> State:
        # Raw mode delivers Ctrl+C as a key so it is handled like 'q'.
        curses.raw()
        stdscr.keypad(True)
        with contextlib.suppress(curses.error):
            curses.curs_set(0)
        return controller.run(CursesInput(stdscr), CursesRenderer(stdscr))

    try:
        state = curses.wrapper(_main)
    except curses.error as exc:
        raise TerminalError(f"Cannot start the terminal interface: {exc}") from exc
    logger.info("Terminal UI closed")
    return state


__all__ = ["CursesInput", "CursesRenderer", "KEY_BINDINGS", "run_tui", "translate_key"]
