"""Runtime settings for git-opener."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

# Environment variable naming the folder that holds the projects
ROOT_ENV_VAR = "GIT_REPOS_PATH"

LOG_FILE = Path("/tmp/git-opener.log")


def default_projects_root() -> Path:
    """Get the projects folder used when GIT_REPOS_PATH is not set."""
    return Path.home() / "git"


@dataclass(frozen=True)
class Settings:
    """Configuration built once at startup and shared by every component."""

    projects_root: Path
    root_is_default: bool = False
    log_path: Path = LOG_FILE
    editor_command: str = "vim ."
    tmux_timeout: float = 10.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the process environment.

        Args:
            environ: Mapping to read instead of os.environ (used by tests)

        Returns:
            Settings with the projects root taken from GIT_REPOS_PATH, or
            ~/git when it is unset or empty
        """
        if environ is None:
            environ = os.environ

        raw_root = environ.get(ROOT_ENV_VAR, "")
        if raw_root:
            return cls(projects_root=Path(raw_root).expanduser().resolve())
        return cls(projects_root=default_projects_root(), root_is_default=True)

    def project_path(self, name: str) -> Path:
        """Absolute path of a project inside the projects root."""
        return (self.projects_root / name).absolute()
