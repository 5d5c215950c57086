"""
Locations of the configuration directory and the address book.

Both default to entries in the home directory. The home directory is looked
up when a path is resolved, not at import time, so a missing $HOME surfaces
as HomeNotFoundError where the CLI can report it.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_DIR_NAME = ".abook-sync"
ADDRESSBOOK_NAME = ".addressbook"

# Environment variable for overriding config directory
CONFIG_DIR_ENV_VAR = "ABOOK_SYNC_CONFIG_DIR"


class HomeNotFoundError(Exception):
    """Raised when the user's home directory cannot be determined."""

    pass


def home_dir() -> Path:
    """
    Return the user's home directory.

    Raises:
        HomeNotFoundError: If neither $HOME nor the password database names one
    """
    try:
        return Path.home()
    except (RuntimeError, KeyError) as e:
        raise HomeNotFoundError(f"Could not determine home directory: {e}") from e


def expand_path(path: Path | str) -> Path:
    """Expand a leading ~ the way Path.expanduser does."""
    try:
        return Path(path).expanduser()
    except (RuntimeError, KeyError) as e:
        raise HomeNotFoundError(f"Could not expand {path}: {e}") from e


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """
    Resolve the configuration directory path.

    Priority:
        1. Explicit config_dir parameter
        2. ABOOK_SYNC_CONFIG_DIR environment variable
        3. ~/.abook-sync

    Raises:
        HomeNotFoundError: If the path needs the home directory and it is
            unknown
    """
    if config_dir is None:
        config_dir = os.environ.get(CONFIG_DIR_ENV_VAR) or None

    if config_dir is None:
        return (home_dir() / CONFIG_DIR_NAME).resolve()
    return expand_path(config_dir).resolve()


def resolve_addressbook_path(path: Path | str | None = None) -> Path:
    """
    Resolve the address book location, ~/.addressbook unless given.

    Unlike the config directory, the path is not made absolute.

    Raises:
        HomeNotFoundError: If the path needs the home directory and it is
            unknown
    """
    if not path:
        return home_dir() / ADDRESSBOOK_NAME
    return expand_path(path)
