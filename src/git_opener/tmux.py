"""Thin driver over the tmux binary.

Every method maps to a single tmux invocation. Failures raise TmuxError with
the command that failed and whatever tmux printed on stderr; control calls
that exceed the timeout raise TmuxUnresponsiveError.
"""

import os
import subprocess
from typing import Optional, Sequence

from loguru import logger

TMUX = "tmux"

# tmux rewrites "." and ":" in session names; "%" is escaped so the mapping
# stays reversible
_UNSAFE_SESSION_CHARS = str.maketrans({"%": "%25", ".": "%2E", ":": "%3A"})


class TmuxError(Exception):
    """A tmux command failed."""

    def __init__(self, command: Sequence[str], message: str):
        self.command = list(command)
        self.message = message
        super().__init__(f"{' '.join(self.command)}: {message}")


class TmuxUnresponsiveError(TmuxError):
    """A tmux command did not return within the timeout."""


def session_name_for(project: str) -> str:
    """Session name tmux will store unchanged for ``project``.

    Distinct projects always get distinct session names.
    """
    return project.translate(_UNSAFE_SESSION_CHARS)


def _exact(session: str) -> str:
    # "=" disables tmux's prefix matching on session names
    return f"={session}"


def _window_target(session: str, index: int) -> str:
    return f"={session}:{index}"


class TmuxDriver:
    """Session-manager operations needed to provision project sessions."""

    def __init__(self, timeout: Optional[float] = 10.0, binary: str = TMUX):
        self.timeout = timeout
        self.binary = binary

    def _run(self, *args: str) -> str:
        """Run a tmux control command and return its stdout."""
        command = [self.binary, *args]
        logger.debug("Running {}", " ".join(command))
        try:
            proc = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired:
            raise TmuxUnresponsiveError(
                command, f"no response after {self.timeout} seconds"
            ) from None
        except OSError as e:
            raise TmuxError(command, str(e)) from e

        if proc.returncode != 0:
            message = proc.stderr.strip() or f"exit status {proc.returncode}"
            raise TmuxError(command, message)
        return proc.stdout

    def _run_index(self, *args: str) -> int:
        """Run a command printing a window index and parse it."""
        output = self._run(*args).strip()
        try:
            return int(output.splitlines()[-1])
        except (IndexError, ValueError):
            raise TmuxError([self.binary, *args], f"unexpected output {output!r}") from None

    def session_exists(self, name: str) -> bool:
        try:
            self._run("has-session", "-t", _exact(name))
        except TmuxUnresponsiveError:
            raise
        except TmuxError:
            return False
        return True

    def list_sessions(self) -> list[str]:
        """Names of all running sessions; empty when no server is running."""
        try:
            output = self._run("list-sessions", "-F", "#{session_name}")
        except TmuxUnresponsiveError:
            raise
        except TmuxError:
            return []
        return [line for line in output.splitlines() if line]

    def create_session(self, name: str, detached: bool = True) -> int:
        """Create a session and return the index of its first window."""
        args = ["new-session"]
        if detached:
            args.append("-d")
        args += ["-s", name, "-P", "-F", "#{window_index}"]
        return self._run_index(*args)

    def count_windows(self, session: str) -> int:
        output = self._run("list-windows", "-t", _exact(session), "-F", "#{window_index}")
        return len([line for line in output.splitlines() if line])

    def create_window(self, session: str, name: str) -> int:
        """Create a window at the end of ``session`` and return its index."""
        return self._run_index(
            "new-window", "-d", "-t", f"{_exact(session)}:", "-n", name,
            "-P", "-F", "#{window_index}",
        )

    def rename_window(self, session: str, index: int, name: str) -> None:
        self._run("rename-window", "-t", _window_target(session, index), name)

    def send_input(self, session: str, index: int, text: str) -> None:
        """Type ``text`` into a window followed by Enter."""
        self._run("send-keys", "-t", _window_target(session, index), text, "C-m")

    def select_window(self, session: str, index: int) -> None:
        self._run("select-window", "-t", _window_target(session, index))

    def is_inside_session(self) -> bool:
        """Whether this process runs inside a tmux client."""
        return bool(os.environ.get("TMUX"))

    def switch_client(self, name: str) -> None:
        self._run("switch-client", "-t", _exact(name))

    def attach_session(self, name: str) -> None:
        """Attach the controlling terminal to ``name``.

        Blocks until the client detaches, so no timeout applies.
        """
        command = [self.binary, "attach-session", "-t", _exact(name)]
        logger.debug("Running {}", " ".join(command))
        try:
            returncode = subprocess.run(command, check=False).returncode
        except OSError as e:
            raise TmuxError(command, str(e)) from e
        if returncode != 0:
            raise TmuxError(command, f"exit status {returncode}")
