"""
Entry point for running abook_sync as a module.

Usage:
    python -m abook_sync --help
    python -m abook_sync init
    python -m abook_sync sync
"""

from abook_sync.cli import cli

if __name__ == "__main__":
    cli()
