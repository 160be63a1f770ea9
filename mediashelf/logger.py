"""
Handles custom logger configuration.
"""


import sys
from pathlib import Path

from loguru import logger

_LOG_DIR = Path("/logs")
if not _LOG_DIR.exists():
    # Not running in a container. Just write to the current directory.
    _LOG_DIR = Path(".")
"""
Default log directory to use.
"""


def config_logger(
    name: str, *, console_level: str = "INFO", log_dir: Path = _LOG_DIR
) -> Path:
    """
    Configures the default logger. Everything from DEBUG up goes to a log
    file that is rotated daily, and only the more important messages are
    echoed to the console.

    Args:
        name: The name to use for the log file.
        console_level: The minimum level to show on stderr.
        log_dir: The directory to write the log file to.

    Returns:
        The path of the log file.

    """
    logger.remove()

    log_path = log_dir / f"{name}.log"
    logger.add(sys.stderr, level=console_level)
    logger.add(
        log_path,
        level="DEBUG",
        enqueue=True,
        rotation="00:00",
        retention="30 days",
        compression="zip",
    )

    logger.debug("Logging to {}.", log_path)
    return log_path
