"""
Executable lookup for third-party tools (BLAST+).

Tools are located once, before any input is read, so a missing binary
fails the run at startup.
"""

import logging
import os
import shutil
from typing import Optional

logger = logging.getLogger(__name__)

# Directory searched before PATH when set
BLAST_PATH_ENV = "BLAST_PATH"


def find_executable(name: str, search_dir: Optional[str] = None) -> str:
    """
    Return the full path of an executable.

    Args:
        name: Executable name (e.g. 'blastp')
        search_dir: Directory to try before PATH. Defaults to $BLAST_PATH.

    Raises:
        RuntimeError: If the executable cannot be found
    """
    search_dir = search_dir or os.environ.get(BLAST_PATH_ENV)
    if search_dir:
        found = shutil.which(name, path=search_dir)
        if found:
            logger.debug("Found %s in %s", name, search_dir)
            return found

    found = shutil.which(name)
    if found is None:
        raise RuntimeError(
            f"Required executable '{name}' not found on PATH"
            + (f" or in {search_dir}" if search_dir else "")
        )
    logger.debug("Found %s at %s", name, found)
    return found
