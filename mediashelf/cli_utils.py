"""
Utilities for interacting with CLI applications.
"""


import shutil
from functools import cache
from pathlib import Path

from loguru import logger


@cache
def find_exe(tool_name: str) -> Path:
    """
    Finds a particular command-line tool on the `PATH`.

    Args:
        tool_name: The name of the tool.

    Raises:
        `OSError` if the tool could not be found.

    Returns:
        The path to the tool.

    """
    tool_path = shutil.which(tool_name)
    if tool_path is None:
        raise OSError(f"Could not find '{tool_name}'. Is it installed?")

    logger.debug("Using {} executable: {}", tool_name, tool_path)
    return Path(tool_path)
