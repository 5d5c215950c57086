"""
abook_sync.utils - Utility module

Common utilities including logging configuration and path resolution.
"""

from abook_sync.utils.paths import (
    HomeNotFoundError,
    resolve_addressbook_path,
    resolve_config_dir,
)

__all__ = ["HomeNotFoundError", "resolve_addressbook_path", "resolve_config_dir"]
