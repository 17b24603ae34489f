"""Project discovery inside the projects root."""

from pathlib import Path

from loguru import logger


def list_projects(root: Path) -> list[str]:
    """List the projects found in ``root``.

    Args:
        root: Folder whose immediate sub-directories are projects

    Returns:
        Sorted directory names, hidden ones excluded. An unreadable root is
        logged and yields an empty list.
    """
    try:
        names = [
            child.name
            for child in root.iterdir()
            if child.is_dir() and not child.name.startswith(".")
        ]
    except OSError as e:
        logger.error("Error reading directory {}: {}", root, e)
        return []

    names.sort()
    return names
