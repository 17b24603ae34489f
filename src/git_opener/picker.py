"""Terminal front end for the project list, rendered with rich."""

import sys
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from git_opener.config import ROOT_ENV_VAR, Settings
from git_opener.provisioner import ProvisionError
from git_opener.selection import BACKSPACE, CTRL_C, ENTER, Mode, SelectionList
from git_opener.tmux import session_name_for

HELP_BAR = "↑/k: Up | ↓/j: Down | /: Search | Enter: Select | ?: Help | Esc: Exit"

HELP_TEXT = """\
[bold]Git Opener Help[/bold]

Currently using Git Repository Path: {root}

[bold]Navigation:[/bold]
- ↑/k: Move selection up
- ↓/j: Move selection down
- /: Search projects
- Enter: Open selected project
- Esc: Exit application, or leave search

[bold]Configuration:[/bold]
To change the Git Repositories Path, set the {env_var} environment variable:
  export {env_var}=/path/to/your/git/repos

Projects are loaded from the configured git repositories path.
Hidden folders (names starting with ".") are not listed.
Projects marked with ● already have a tmux session.

[dim]Press any key to return[/dim]"""


def read_escape_sequence(read: Callable[[], str]) -> str:
    """Read the rest of an escape sequence whose leading ESC was already read.

    CSI sequences (``ESC [ ... final``) are read up to their final byte, so
    keys like Delete (``ESC [ 3 ~``) arrive whole. SS3 arrows (``ESC O A``)
    are normalised to their CSI form. Anything else is Alt+key and comes back
    as ESC followed by that key, never as a bare ESC.
    """
    ch = read()
    if ch == "O":
        return "\x1b[" + read()
    if ch != "[":
        return "\x1b" + ch

    sequence = "\x1b["
    while True:
        ch = read()
        if not ch:
            return sequence
        sequence += ch
        # Final byte of a CSI sequence
        if "\x40" <= ch <= "\x7e":
            return sequence


def read_key() -> str:
    """Read a single key press from stdin in raw mode.

    Arrow keys come back as their full escape sequence; Enter and Backspace
    are normalised to selection.ENTER and selection.BACKSPACE.
    """
    import select
    import termios
    import tty

    fd = sys.stdin.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        ch = sys.stdin.read(1)
        if ch == "\x1b":
            # A lone ESC has nothing queued behind it
            ready, _, _ = select.select([sys.stdin], [], [], 0.05)
            if not ready:
                return ch
            return read_escape_sequence(lambda: sys.stdin.read(1))
        if ch == "\n":
            return ENTER
        if ch == "\x08":
            return BACKSPACE
        return ch
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


class Picker:
    """Interactive loop: render the list, feed it keys until something stops it."""

    def __init__(
        self,
        settings: Settings,
        selection: SelectionList,
        console: Optional[Console] = None,
        running_sessions: Optional[set[str]] = None,
    ):
        self.settings = settings
        self.selection = selection
        self.console = console or Console()
        self.running_sessions = running_sessions or set()
        self.running = False
        self.error: Optional[ProvisionError] = None
        self.help_visible = False
        self.scroll_offset = 0

    def stop(self, error: Optional[ProvisionError] = None) -> None:
        self.running = False
        self.error = error

    def max_visible(self) -> int:
        # Title, search line, status bar, help bar and spacing
        return max(3, self.console.size.height - 8)

    def adjust_scroll(self) -> None:
        """Keep the highlighted entry inside the visible window."""
        highlighted = self.selection.highlighted or 0
        max_visible = self.max_visible()
        if highlighted < self.scroll_offset:
            self.scroll_offset = highlighted
        elif highlighted >= self.scroll_offset + max_visible:
            self.scroll_offset = highlighted - max_visible + 1

    def status_line(self) -> str:
        status = f"Git folder: {self.settings.projects_root}"
        if self.settings.root_is_default:
            status += " (default)"
        return status

    def render_help(self) -> None:
        self.console.clear()
        self.console.print(
            Panel(
                HELP_TEXT.format(
                    root=escape(str(self.settings.projects_root)),
                    env_var=ROOT_ENV_VAR,
                ),
                border_style="cyan",
            )
        )

    def render(self) -> None:
        console = self.console
        console.clear()
        console.print("[bold]Git Opener[/bold]\n")

        selection = self.selection
        if selection.mode is Mode.FILTER:
            console.print(f"[cyan]Search: {escape(selection.filter_text)}_[/cyan]\n")

        entries = selection.entries
        if not entries:
            console.print("[dim]No matching projects[/dim]")
        else:
            # Ensure scroll_offset is valid for filtered results
            max_visible = self.max_visible()
            if self.scroll_offset > len(entries) - max_visible:
                self.scroll_offset = max(0, len(entries) - max_visible)

            visible_end = min(self.scroll_offset + max_visible, len(entries))
            for i in range(self.scroll_offset, visible_end):
                label = escape(entries[i].label)
                marker = ""
                if session_name_for(entries[i].label) in self.running_sessions:
                    marker = " [green]●[/green]"
                if i == selection.highlighted:
                    console.print(f"[bold red]› {label}[/bold red]{marker}")
                else:
                    console.print(f"  {label}{marker}")

            if len(entries) > max_visible:
                showing = f"{self.scroll_offset + 1}-{visible_end} of {len(entries)}"
                console.print(f"[dim]{showing}[/dim]")

        console.print()
        console.print(f"[yellow]{escape(self.status_line())}[/yellow]")
        console.print(f"[dim]{HELP_BAR}[/dim]")

    def handle_key(self, key: str) -> None:
        if key == CTRL_C:
            self.stop()
            return

        if self.help_visible:
            # Any key closes the help screen, Esc included
            self.help_visible = False
            return

        if not self.selection.handle_key(key) and key == "?":
            self.help_visible = True

    def run(self) -> Optional[ProvisionError]:
        """Run until an entry action or Esc stops the loop.

        Returns:
            The provisioning error that stopped the loop, if any
        """
        self.running = True
        try:
            while self.running:
                if self.help_visible:
                    self.render_help()
                else:
                    self.adjust_scroll()
                    self.render()
                self.handle_key(read_key())
        except KeyboardInterrupt:
            self.stop()
        self.console.clear()
        return self.error
