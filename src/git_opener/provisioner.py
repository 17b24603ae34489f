"""Create-or-attach workflow for project tmux sessions.

A project session holds two windows: the first runs the editor in the
project folder, the second (named "terminal") is a scratch shell in the same
folder. Provisioning an existing session only moves the client to it.
"""

import shlex
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Protocol

from loguru import logger

from git_opener.config import Settings
from git_opener.tmux import TmuxError, session_name_for

TERMINAL_WINDOW = "terminal"


class SessionDriver(Protocol):
    def session_exists(self, name: str) -> bool: ...
    def create_session(self, name: str, detached: bool = True) -> int: ...
    def count_windows(self, session: str) -> int: ...
    def create_window(self, session: str, name: str) -> int: ...
    def rename_window(self, session: str, index: int, name: str) -> None: ...
    def send_input(self, session: str, index: int, text: str) -> None: ...
    def select_window(self, session: str, index: int) -> None: ...
    def is_inside_session(self) -> bool: ...
    def attach_session(self, name: str) -> None: ...
    def switch_client(self, name: str) -> None: ...


class Step(Enum):
    CHECK_SESSION = "check session"
    CREATE_SESSION = "create session"
    CREATE_WINDOW = "create window"
    POPULATE_EDITOR = "populate editor window"
    POPULATE_TERMINAL = "populate terminal window"
    SELECT_WINDOW = "select window"
    ATTACH = "attach"


class ProvisionError(Exception):
    """A provisioning step failed; later steps were not attempted."""

    def __init__(self, session: str, step: Step, cause: TmuxError):
        self.session = session
        self.step = step
        self.cause = cause
        super().__init__(f"{step.value} failed for session '{session}': {cause.message}")


@dataclass
class ProvisionResult:
    ok: bool
    error: Optional[ProvisionError] = None


class Provisioner:
    """Drive a session driver through the fixed provisioning sequence."""

    def __init__(self, driver: SessionDriver, settings: Settings):
        self.driver = driver
        self.settings = settings

    def provision(self, project: str) -> ProvisionResult:
        """Open the session for ``project``, creating and laying it out if needed.

        Args:
            project: Directory name inside the projects root

        Returns:
            ProvisionResult; on failure ``error`` names the step that failed.
            A session whose attach failed is left in place.
        """
        session = session_name_for(project)
        try:
            self._provision(project, session)
        except ProvisionError as e:
            logger.error(str(e))
            return ProvisionResult(ok=False, error=e)
        return ProvisionResult(ok=True)

    def _provision(self, project: str, session: str) -> None:
        driver = self.driver

        with _step(session, Step.CHECK_SESSION):
            exists = driver.session_exists(session)
        if exists:
            logger.info("Session {} already exists. switching...", session)
            self.attach_or_switch(session)
            return

        project_path = self.settings.project_path(project)
        logger.info("The path is {}", project_path)

        with _step(session, Step.CREATE_SESSION):
            editor_window = driver.create_session(session, detached=True)
        logger.info("Tmux session {} created successfully.", session)

        with _step(session, Step.CREATE_WINDOW):
            windows = driver.count_windows(session)
            if windows != 1:
                logger.warning(
                    "Session {} has {} windows right after creation", session, windows
                )
            terminal_window = driver.create_window(session, TERMINAL_WINDOW)
            driver.rename_window(session, terminal_window, TERMINAL_WINDOW)

        cd = f"cd {shlex.quote(str(project_path))}"
        with _step(session, Step.POPULATE_EDITOR):
            driver.send_input(session, editor_window, cd)
            driver.send_input(session, editor_window, self.settings.editor_command)

        with _step(session, Step.POPULATE_TERMINAL):
            driver.send_input(session, terminal_window, cd)
            driver.send_input(session, terminal_window, "clear")

        with _step(session, Step.SELECT_WINDOW):
            driver.select_window(session, editor_window)

        self.attach_or_switch(session)

    def attach_or_switch(self, session: str) -> None:
        """Move the client to ``session``.

        Inside tmux the current client switches; otherwise the terminal
        attaches, which blocks until the user detaches.
        """
        with _step(session, Step.ATTACH):
            if self.driver.is_inside_session():
                self.driver.switch_client(session)
            else:
                self.driver.attach_session(session)


@contextmanager
def _step(session: str, step: Step) -> Iterator[None]:
    """Report a TmuxError raised inside the block as a failure of ``step``."""
    try:
        yield
    except TmuxError as e:
        raise ProvisionError(session, step, e) from e
