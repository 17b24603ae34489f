"""Filterable selection list driven by key presses.

The list has two modes. In browse mode the arrow keys (or j/k) move the
highlight, Enter runs the highlighted entry's action and Esc asks the host to
quit. Pressing / switches to filter mode, where typed characters narrow the
visible entries to those whose label contains the text (case-insensitive).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

# Key strings as produced by the picker's key reader
UP = "\x1b[A"
DOWN = "\x1b[B"
ENTER = "\r"
ESC = "\x1b"
BACKSPACE = "\x7f"
CTRL_C = "\x03"


class Mode(Enum):
    BROWSE = "browse"
    FILTER = "filter"


@dataclass(frozen=True)
class Entry:
    label: str
    action: Callable[[], None]


def filter_entries(entries: list[Entry], text: str) -> list[Entry]:
    """Entries whose label contains ``text``, case-insensitive, order kept."""
    if not text:
        return list(entries)
    text_lower = text.lower()
    return [e for e in entries if text_lower in e.label.lower()]


class SelectionList:
    """Ordered entries, a highlighted index and an optional live filter.

    ``all_entries`` is the full collection; ``entries`` is the view derived
    from it and the filter text, so entries added at any time show up in
    both without resynchronising anything.
    """

    def __init__(self, on_quit: Optional[Callable[[], None]] = None):
        self.all_entries: list[Entry] = []
        self.mode = Mode.BROWSE
        self.filter_text = ""
        self.on_quit = on_quit
        self._highlighted = 0

    @property
    def entries(self) -> list[Entry]:
        if self.mode is Mode.FILTER:
            return filter_entries(self.all_entries, self.filter_text)
        return list(self.all_entries)

    @property
    def highlighted(self) -> Optional[int]:
        """Index of the highlighted entry in ``entries``, None when empty."""
        count = len(self.entries)
        if count == 0:
            return None
        return min(self._highlighted, count - 1)

    @property
    def current(self) -> Optional[Entry]:
        entries = self.entries
        if not entries:
            return None
        return entries[min(self._highlighted, len(entries) - 1)]

    def add_entry(self, label: str, action: Callable[[], None]) -> Entry:
        entry = Entry(label, action)
        self.all_entries.append(entry)
        return entry

    def move_up(self) -> None:
        if self._highlighted > 0:
            self._highlighted -= 1

    def move_down(self) -> None:
        if self._highlighted + 1 < len(self.entries):
            self._highlighted += 1

    def set_filter_text(self, text: str) -> None:
        """Replace the filter text and highlight the first match."""
        self.filter_text = text
        self._highlighted = 0

    def start_filter(self) -> None:
        self.mode = Mode.FILTER
        self.set_filter_text("")

    def cancel_filter(self) -> None:
        """Drop the filter and go back to browsing the full list."""
        self.mode = Mode.BROWSE
        self.set_filter_text("")

    def activate(self) -> None:
        """Run the highlighted entry's action; nothing happens on an empty list."""
        entry = self.current
        if entry is not None:
            entry.action()

    def handle_key(self, key: str) -> bool:
        """Apply a key press.

        Returns:
            True if the key was consumed, False if the host should handle it
        """
        if key == UP:
            self.move_up()
            return True
        if key == DOWN:
            self.move_down()
            return True

        if self.mode is Mode.FILTER:
            return self._handle_filter_key(key)

        if key == "k":
            self.move_up()
        elif key == "j":
            self.move_down()
        elif key == ENTER:
            self.activate()
        elif key == "/":
            self.start_filter()
        elif key == ESC:
            if self.on_quit is not None:
                self.on_quit()
        else:
            return False
        return True

    def _handle_filter_key(self, key: str) -> bool:
        if key == ESC:
            self.cancel_filter()
        elif key == ENTER:
            # Pick against the filtered view, run against the restored list
            entry = self.current
            self.cancel_filter()
            if entry is not None:
                entry.action()
        elif key == BACKSPACE:
            if self.filter_text:
                self.set_filter_text(self.filter_text[:-1])
        elif len(key) == 1 and key.isprintable():
            self.set_filter_text(self.filter_text + key)
        # Anything else (other escape sequences) is swallowed while typing
        return True
