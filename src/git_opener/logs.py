"""Loguru setup: every diagnostic goes to a single append-only file."""

from pathlib import Path

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"


def setup_logging(path: Path) -> None:
    """Send log records to ``path`` only.

    The default stderr sink is removed because the picker owns the terminal.

    Raises:
        OSError: if the log file cannot be opened for appending
    """
    logger.remove()
    # Open eagerly so an unwritable path fails here instead of on first write
    logger.add(
        str(path),
        format=LOG_FORMAT,
        level="DEBUG",
        mode="a",
        delay=False,
        catch=False,
    )
