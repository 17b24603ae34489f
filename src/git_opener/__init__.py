"""Pick a project folder and open it in its own tmux session."""

import sys
from typing import Callable, Iterable, Optional

import click
from loguru import logger
from rich.console import Console

from git_opener.config import Settings
from git_opener.logs import setup_logging
from git_opener.picker import Picker
from git_opener.projects import list_projects
from git_opener.provisioner import Provisioner
from git_opener.selection import SelectionList
from git_opener.tmux import TmuxDriver, TmuxError

__version__ = "0.1.0"

EXIT_LABEL = "Exit"


def project_opener(project: str, provisioner: Provisioner, picker: Picker) -> Callable[[], None]:
    """Build the action bound to a project entry.

    The action provisions the project's session (which hands the terminal to
    tmux until the user detaches) and then stops the picker.
    """

    def open_project() -> None:
        logger.info("Opening session {}", project)
        picker.console.clear()
        result = provisioner.provision(project)
        picker.stop(result.error)

    return open_project


def build_picker(
    settings: Settings,
    provisioner: Provisioner,
    projects: Iterable[str],
    running_sessions: Optional[set[str]] = None,
    console: Optional[Console] = None,
) -> Picker:
    """Create the picker with one entry per project plus a final Exit entry."""
    selection = SelectionList()
    picker = Picker(settings, selection, console=console, running_sessions=running_sessions)
    selection.on_quit = picker.stop

    for project in projects:
        selection.add_entry(project, project_opener(project, provisioner, picker))

    # Exit leaves silently
    selection.add_entry(EXIT_LABEL, picker.stop)
    return picker


@click.command()
@click.version_option(version=__version__)
def cli():
    """Pick a project from GIT_REPOS_PATH and open it in tmux.

    Each project gets a session named after its folder with two windows: an
    editor and a shell, both started in the project folder. Picking a project
    whose session already exists just switches to it.
    """
    settings = Settings.from_env()
    try:
        setup_logging(settings.log_path)
    except OSError as e:
        click.echo(f"Error opening log file: {e}", err=True)
        sys.exit(1)

    driver = TmuxDriver(timeout=settings.tmux_timeout)
    provisioner = Provisioner(driver, settings)
    projects = list_projects(settings.projects_root)

    try:
        running_sessions = set(driver.list_sessions())
    except TmuxError as e:
        logger.warning("Could not list tmux sessions: {}", e)
        running_sessions = set()

    picker = build_picker(settings, provisioner, projects, running_sessions)
    error = picker.run()
    if error is not None:
        click.echo(click.style(str(error), fg="red"), err=True)
        sys.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
