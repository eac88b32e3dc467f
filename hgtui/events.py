from __future__ import annotations

import codecs
import logging
import os
import queue
import select
import sys
import termios
import threading
import tty
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from hgtui.errors import HgTuiError
from hgtui.models import AppMode, Message, MessageLevel
from hgtui.state import AppState

logger = logging.getLogger(__name__)

QUEUE_CAPACITY = 1024
TICK_SECONDS = 1.0
POLL_SECONDS = 0.2
PROMO_URL = "https://github.com/kaixinbaba/hg-tui"
PAGE_STEP = 5

CONTROL_KEYS = {
    "\r": "ENTER",
    "\n": "CTRL_J",
    "\t": "TAB",
    "\x7f": "BACKSPACE",
    "\x08": "CTRL_H",
    "\x0b": "CTRL_K",
    "\x03": "CTRL_C",
}
ESCAPE_SEQUENCES = {
    "[A": "UP",
    "[B": "DOWN",
    "[C": "RIGHT",
    "[D": "LEFT",
    "OA": "UP",
    "OB": "DOWN",
    "OC": "RIGHT",
    "OD": "LEFT",
}

HELP_TEXT = (
    "Search box:\n"
    "  <text>    search projects      #<n>     open volume n\n"
    "  $<lang>   browse a category, e.g. $py $js $rust $ml $book\n"
    "  Enter search   Down/Esc/Ctrl-J results   Ctrl-H help\n"
    "\n"
    "Results:\n"
    "  j/k move   d/u jump 5   gg top   G bottom\n"
    "  h/l previous/next page or volume\n"
    "  o details   Enter open in browser   s project home\n"
    "  Up/Ctrl-K back to search   q quit"
)


@dataclass(frozen=True)
class KeyPress:
    key: str


class Notify(Enum):
    REDRAW = "redraw"
    TICK = "tick"
    QUIT = "quit"


class EventBus:
    def __init__(self, capacity: int = QUEUE_CAPACITY) -> None:
        self.keys: queue.Queue[KeyPress] = queue.Queue(maxsize=capacity)
        self.notifications: queue.Queue[Notify | Message] = queue.Queue(maxsize=capacity)

    def emit_key(self, key: str) -> None:
        self.keys.put(KeyPress(key))

    def notify(self, notify: Notify) -> None:
        self.notifications.put(notify)

    def message(self, level: MessageLevel, text: str) -> None:
        self.notifications.put(Message(level, text))


class Dispatcher:
    """Interprets key presses against the keymap of the current AppMode.

    The dispatcher is the only writer of ``AppState``. Each key is handled
    under ``lock``, including any fetch it triggers, and is followed by a
    ``Redraw``. Recoverable errors become ``Message`` notifications; the
    loop only stops on quit.
    """

    def __init__(
        self,
        state: AppState,
        lock: threading.Lock,
        bus: EventBus,
        stop_event: threading.Event,
    ) -> None:
        self.state = state
        self.lock = lock
        self.bus = bus
        self.stop_event = stop_event
        self.pending_g = False
        self.quit_requested = False

    def run(self) -> None:
        while not self.stop_event.is_set():
            if self.quit_requested:
                self.bus.notify(Notify.QUIT)
                return
            try:
                event = self.bus.keys.get(timeout=POLL_SECONDS)
            except queue.Empty:
                continue
            self.handle_key(event.key)

    def handle_key(self, key: str) -> None:
        armed = self.pending_g
        self.pending_g = False
        if key == "CTRL_C":
            self.quit_requested = True
            return

        messages: list[Message] = []
        with self.lock:
            mode = self.state.mode
            try:
                if mode is AppMode.SEARCH:
                    self._handle_search(key, messages)
                elif mode is AppMode.VIEW:
                    self._handle_view(key, armed)
                elif mode is AppMode.POPUP:
                    self.state.switch_to_search()
                elif mode is AppMode.DETAIL:
                    self._handle_detail(key)
            except HgTuiError as exc:
                logger.info("%s while handling %r: %s", type(exc).__name__, key, exc)
                messages.append(Message(MessageLevel(exc.level), str(exc)))

        for message in messages:
            self.bus.notifications.put(message)
        self.bus.notify(Notify.REDRAW)

    def _handle_search(self, key: str, messages: list[Message]) -> None:
        if key == "ENTER":
            self.state.search()
        elif key == "BACKSPACE":
            self.state.input.handle_backspace()
        elif key in {"DOWN", "ESC", "CTRL_J"}:
            self.state.switch_to_view()
        elif key == "CTRL_H":
            messages.append(Message(MessageLevel.TIPS, HELP_TEXT))
        elif len(key) == 1 and key.isprintable():
            self.state.handle_char(key)

    def _handle_view(self, key: str, armed: bool) -> None:
        results = self.state.results
        if key == "g":
            if armed:
                results.first()
            else:
                self.pending_g = True
        elif key == "j":
            results.next(1)
        elif key == "k":
            results.prev(1)
        elif key == "d":
            results.next(PAGE_STEP)
        elif key == "u":
            results.prev(PAGE_STEP)
        elif key == "G":
            results.last()
        elif key == "h":
            self.state.prev_page()
        elif key == "l":
            self.state.next_page()
        elif key == "o":
            if not results.is_empty():
                self.state.display_detail()
        elif key == "ENTER":
            if not results.is_empty():
                self.state.open_browser()
        elif key == "s":
            self.state.open_browser(PROMO_URL)
        elif key == "q":
            self.quit_requested = True
        elif key in {"UP", "CTRL_K"}:
            self.state.switch_to_search()

    def _handle_detail(self, key: str) -> None:
        if key in {"o", "ESC"}:
            self.state.switch_to_view()
        elif key == "ENTER":
            self.state.open_browser()


def ticker_worker(bus: EventBus, stop_event: threading.Event, interval: float = TICK_SECONDS) -> None:
    while not stop_event.wait(interval):
        bus.notify(Notify.TICK)


def key_name(char: str, sequence: str = "") -> str:
    if char == "\x1b":
        return ESCAPE_SEQUENCES.get(sequence, "ESC")
    return CONTROL_KEYS.get(char, char)


@contextmanager
def raw_terminal(stream: TextIO = sys.stdin) -> Iterator[None]:
    if not stream.isatty():
        yield
        return

    fd = stream.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        settings = termios.tcgetattr(fd)
        # Keep Enter distinct from Ctrl-J and let Ctrl-C/Ctrl-K reach us as keys.
        settings[0] &= ~(termios.ICRNL | termios.IXON)
        settings[3] &= ~(termios.ISIG | termios.IEXTEN)
        termios.tcsetattr(fd, termios.TCSANOW, settings)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


def _line_input_worker(bus: EventBus, stop_event: threading.Event, stream: TextIO) -> None:
    while not stop_event.is_set():
        line = stream.readline()
        if line == "":
            if stop_event.wait(POLL_SECONDS):
                break
            continue
        for char in line.rstrip("\n"):
            bus.emit_key(char)
        bus.emit_key("ENTER")


def input_worker(bus: EventBus, stop_event: threading.Event, stream: TextIO = sys.stdin) -> None:
    if not stream.isatty():
        _line_input_worker(bus, stop_event, stream)
        return

    fd = stream.fileno()
    decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")
    while not stop_event.is_set():
        ready, _, _ = select.select([fd], [], [], POLL_SECONDS)
        if not ready:
            continue
        data = os.read(fd, 1)
        if not data:
            continue
        char = decoder.decode(data)
        if not char:
            continue
        sequence = ""
        if char == "\x1b":
            while select.select([fd], [], [], 0.001)[0]:
                sequence += os.read(fd, 1).decode("utf-8", errors="ignore")
                if len(sequence) < 2:
                    continue
                if sequence[-1].isalpha() or sequence.endswith("~") or len(sequence) >= 6:
                    break
        bus.emit_key(key_name(char, sequence))
